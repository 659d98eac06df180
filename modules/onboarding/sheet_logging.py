from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from shared.sheets.core import describe_api_error

T = TypeVar("T")

log = logging.getLogger("learnerbot.onboarding.sheet_logging")


def _format_actor(user: object | None) -> str:
    if user is None:
        return "<unknown>"
    if isinstance(user, str):
        return user.strip() or "<unknown>"
    identifier = getattr(user, "id", None)
    return f"<{identifier}>" if identifier is not None else "<unknown>"


async def log_sheet_write(
    *,
    phase: str,
    write_coro: Callable[[], Awaitable[T]],
    channel: str | None = None,
    logger: logging.Logger | None = None,
    user: object | None = None,
) -> T:
    """Await ``write_coro`` and emit one ok/failed line; errors are re-raised."""

    active_logger = logger or log
    base_fields = (
        f"phase={phase} • channel={channel or '-'} • user={_format_actor(user)}"
    )

    try:
        result = await write_coro()
    except Exception as exc:
        hint = describe_api_error(exc)
        hint_suffix = f" • hint={hint}" if hint else ""
        active_logger.error(
            "🧾 learner_sheet — sheet_update=failed • %s • error=%s%s",
            base_fields,
            exc,
            hint_suffix,
        )
        raise

    active_logger.info(
        "🧾 learner_sheet — sheet_update=ok • %s • range=%s",
        base_fields,
        result or "-",
    )
    return result
