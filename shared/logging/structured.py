"""JSON log lines with a per-event trace id."""

from __future__ import annotations

import contextvars
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping

_trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("trace_id", default="")

# Attributes every LogRecord carries; only caller-supplied ``extra`` keys are emitted.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

_SCALARS = (str, int, float, bool, type(None))


def set_trace_id(value: str | None = None) -> str:
    """Tag the current context with ``value`` or a fresh 12-char hex id.

    Gateway events and health requests each run in their own task, so the id
    sticks to one event and never leaks into a sibling.
    """

    trace = value or uuid.uuid4().hex[:12]
    _trace_id_var.set(trace)
    return trace


def get_trace_id() -> str:
    return _trace_id_var.get()


def _timestamp(created: float) -> str:
    stamp = datetime.fromtimestamp(created, tz=timezone.utc)
    return stamp.strftime("%Y-%m-%dT%H:%M:%S.") + f"{stamp.microsecond // 1000:03d}Z"


class JsonFormatter(logging.Formatter):
    """One JSON object per record: core fields, static fields, scalar extras."""

    def __init__(self, static: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self._static = dict(static or {})

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": _timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "trace": getattr(record, "trace", "") or get_trace_id(),
            **self._static,
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
            and not key.startswith("_")
            and key not in payload
            and isinstance(value, _SCALARS)
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)
