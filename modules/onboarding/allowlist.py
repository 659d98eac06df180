"""Paid-learner allow-list backed by a local JSON roster."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from shared.redaction import mask_email

log = logging.getLogger("learnerbot.onboarding.allowlist")

__all__ = ["LearnerRecord", "VerificationResult", "load_roster", "verify_paid_learner"]


@dataclass(frozen=True)
class LearnerRecord:
    name: str
    email: str
    program: str = ""
    batch: str = ""


@dataclass(frozen=True)
class VerificationResult:
    is_verified: bool
    learner: Optional[LearnerRecord] = None


def _normalize(email: Any) -> str:
    return str(email or "").strip().lower()


def _resolve_path(path: Path | str | None) -> Path:
    if path is not None:
        return Path(path)
    from shared.config import get_paid_learners_path

    return get_paid_learners_path()


def load_roster(path: Path | str | None = None) -> list[dict[str, Any]]:
    """Read the roster file; raises on missing file or malformed JSON."""

    roster_path = _resolve_path(path)
    with roster_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, list):
        raise ValueError(f"{roster_path} must contain a JSON list of learners")
    return [entry for entry in payload if isinstance(entry, dict)]


def verify_paid_learner(email: str, *, path: Path | str | None = None) -> VerificationResult:
    """Return whether ``email`` belongs to a paid learner.

    The roster is re-read on every call so edits take effect without a
    restart. Any problem reading it counts as "not verified".
    """

    try:
        roster = load_roster(path)
    except FileNotFoundError:
        log.error("paid learner roster not found", extra={"path": str(_resolve_path(path))})
        return VerificationResult(False)
    except (OSError, ValueError):
        log.exception("failed to read paid learner roster")
        return VerificationResult(False)

    target = _normalize(email)
    if not target:
        return VerificationResult(False)

    for entry in roster:
        candidate = _normalize(entry.get("email"))
        if candidate and candidate == target:
            learner = LearnerRecord(
                name=str(entry.get("name") or ""),
                email=str(entry.get("email") or ""),
                program=str(entry.get("program") or ""),
                batch=str(entry.get("batch") or ""),
            )
            log.info(
                "paid learner verified",
                extra={
                    "email": mask_email(email),
                    "program": learner.program,
                    "batch": learner.batch,
                },
            )
            return VerificationResult(True, learner)

    log.info("email not on paid learner roster", extra={"email": mask_email(email)})
    return VerificationResult(False)
