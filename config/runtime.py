from __future__ import annotations

# config/runtime.py
import os
from typing import Optional


def get_port(default: int = 10000) -> int:
    """
    Returns the port for the aiohttp health server.
    Hosting platforms provide $PORT; locally we fall back to 10000.
    """
    try:
        return int(os.getenv("PORT", str(default)))
    except ValueError:
        return default


def get_env_name(default: str = "dev") -> str:
    return os.getenv("ENV_NAME", default)


def get_bot_name(default: str = "Learner-Onboarding") -> str:
    return os.getenv("BOT_NAME", default)


def _coerce_int(value: Optional[str], fallback: int) -> int:
    try:
        if value is None:
            raise TypeError
        return int(value)
    except (TypeError, ValueError):
        return fallback


def get_session_ttl_sec(default: int = 0) -> int:
    """
    Maximum age (seconds) of an unfinished onboarding session.

    0 disables expiry, so abandoned sessions live until the process restarts.
    Negative values are treated as 0.
    """

    return max(0, _coerce_int(os.getenv("ONBOARDING_SESSION_TTL_SEC"), default))


def get_session_sweep_sec(default: int = 300) -> int:
    """Interval (seconds) between session expiry sweeps when a TTL is set."""

    return max(1, _coerce_int(os.getenv("ONBOARDING_SESSION_SWEEP_SEC"), default))
