"""Pytest configuration for shared test fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_path(source_file: Path) -> None:
    """Add the repository root to ``sys.path`` when running from subpackages."""

    for candidate in [source_file.parent, *source_file.parents]:
        shared_dir = candidate / "shared"
        if shared_dir.is_dir():
            project_root = str(candidate)
            if project_root not in sys.path:
                sys.path.insert(0, project_root)
            break


_ensure_project_root_on_path(Path(__file__).resolve())

from shared.testing.environment import apply_required_test_environment

apply_required_test_environment()


@pytest.fixture
def roster_file(tmp_path):
    """Write a small paid-learner roster and return its path."""

    import json

    path = tmp_path / "paidLearners.json"
    path.write_text(
        json.dumps(
            [
                {
                    "name": "Jane Doe",
                    "email": "Jane.Doe@Example.com",
                    "program": "Data Science",
                    "batch": "2025-A",
                },
                {"name": "Ravi Kumar", "email": "ravi@example.org"},
            ]
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture(autouse=True)
def restore_logging_config():
    """Undo ``setup_logging`` side effects so caplog keeps its own formatter."""

    import logging

    names = ("", "aiohttp.access", "discord.gateway", "discord.client", "googleapiclient.discovery_cache")
    saved = []
    for name in names:
        logger = logging.getLogger(name)
        handlers = [(handler, handler.formatter) for handler in logger.handlers]
        saved.append((logger, logger.level, logger.propagate, handlers))
    yield
    for logger, level, propagate, handlers in saved:
        logger.setLevel(level)
        logger.propagate = propagate
        logger.handlers[:] = [handler for handler, _ in handlers]
        for handler, formatter in handlers:
            handler.setFormatter(formatter)
