"""Learner roster sheet: append one row per verified onboarding."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from shared import config
from shared.sheets import core
from shared.sheets.async_adapter import arun

log = logging.getLogger("learnerbot.sheets.learners")

HEADERS = ("Timestamp", "Name", "Email", "Phone", "Discord Username", "Channel")
HEADER_RANGE = "Sheet1!A1:F1"


@dataclass(frozen=True)
class LearnerSheetRecord:
    name: str
    email: str
    phone: str
    username: str
    channel: str


def _timestamp(now: datetime | None = None) -> str:
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_row(record: LearnerSheetRecord, *, now: datetime | None = None) -> list[str]:
    """Return the sheet row for ``record``; the timestamp is taken at call time."""

    return [
        _timestamp(now),
        record.name,
        record.email,
        record.phone,
        record.username,
        record.channel,
    ]


def _updated_range(response: Mapping[str, Any] | None) -> Optional[str]:
    if not isinstance(response, Mapping):
        return None
    updates = response.get("updates")
    if isinstance(updates, Mapping):
        value = updates.get("updatedRange")
        return str(value) if value else None
    return None


def append_learner_row(
    record: LearnerSheetRecord,
    *,
    spreadsheet_id: str | None = None,
    a1_range: str | None = None,
) -> Optional[str]:
    """Append ``record`` to the learner sheet and return the written range.

    Failures are logged with an operator hint for 404/403 responses and
    re-raised unchanged.
    """

    sheet_id = spreadsheet_id or config.get_spreadsheet_id()
    target = a1_range or config.get_sheet_range()
    row = build_row(record)
    try:
        response = core.values_append(sheet_id, target, [row])
    except Exception as exc:
        hint = core.describe_api_error(exc)
        log.error(
            "learner sheet append failed: %s",
            exc,
            extra={"status": core.api_error_status(exc), "hint": hint},
        )
        raise

    updated = _updated_range(response)
    log.info("learner sheet append ok", extra={"updated_range": updated})
    return updated


async def aappend_learner_row(
    record: LearnerSheetRecord,
    *,
    spreadsheet_id: str | None = None,
    a1_range: str | None = None,
) -> Optional[str]:
    return await arun(
        append_learner_row,
        record,
        spreadsheet_id=spreadsheet_id,
        a1_range=a1_range,
    )


def initialize_headers(*, spreadsheet_id: str | None = None) -> None:
    """Write the header row; safe to run repeatedly."""

    sheet_id = spreadsheet_id or config.get_spreadsheet_id()
    core.values_update(sheet_id, HEADER_RANGE, [list(HEADERS)])
    log.info("learner sheet headers initialised")


__all__ = [
    "HEADERS",
    "LearnerSheetRecord",
    "aappend_learner_row",
    "append_learner_row",
    "build_row",
    "initialize_headers",
]
