"""Runtime logging configuration utilities."""

from __future__ import annotations

import logging
from typing import Mapping

from .structured import JsonFormatter

__all__ = ["setup_logging"]

# discord.py and the Google client are chatty at INFO during reconnects.
_NOISY_LOGGERS = ("discord.gateway", "discord.client", "googleapiclient.discovery_cache")


def _ensure_stream_handler(logger: logging.Logger, formatter: logging.Formatter) -> None:
    """Ensure ``logger`` has a stream handler using ``formatter``."""

    stream_handler_found = False
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler):
            handler.setFormatter(formatter)
            stream_handler_found = True
    if not stream_handler_found:
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)


def setup_logging(
    *,
    level: str | int = logging.INFO,
    static_fields: Mapping[str, str] | None = None,
    access_logger_name: str = "aiohttp.access",
) -> logging.Logger:
    """Configure JSON logging for the bot process.

    Parameters
    ----------
    level:
        Root log level, either a name (``"DEBUG"``) or a numeric level.
        Unknown names fall back to ``INFO``.
    static_fields:
        Static fields (environment, bot name) included with every log event.
    access_logger_name:
        Name of the logger the health server uses for request lines.

    Returns
    -------
    logging.Logger
        The configured access logger instance.
    """

    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper() or "INFO")
        level = resolved if isinstance(resolved, int) else logging.INFO

    base_static = dict(static_fields or {})

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    _ensure_stream_handler(root_logger, JsonFormatter(static=base_static))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    access_static = dict(base_static)
    access_static.setdefault("logger", access_logger_name)

    access_logger = logging.getLogger(access_logger_name)
    access_logger.propagate = False
    access_logger.handlers.clear()

    access_handler = logging.StreamHandler()
    access_handler.setFormatter(JsonFormatter(static=access_static))
    access_logger.addHandler(access_handler)
    access_logger.setLevel(logging.INFO)

    return access_logger
