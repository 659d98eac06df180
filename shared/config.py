"""Runtime configuration helpers for the onboarding bot."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from config import runtime as _runtime
from shared.redaction import mask_secret, mask_service_account, sanitize_text

__all__ = [
    "DEFAULT_LEARNER_ROLE_NAME",
    "DEFAULT_SHEET_RANGE",
    "reload_config",
    "get_config_snapshot",
    "get_env_name",
    "get_bot_name",
    "get_port",
    "get_discord_token",
    "get_discord_client_id",
    "get_spreadsheet_id",
    "get_sheet_range",
    "get_google_credentials_path",
    "get_google_credentials_json",
    "get_learner_role_name",
    "get_paid_learners_path",
    "get_session_ttl_sec",
    "get_session_sweep_sec",
    "redact_value",
]

log = logging.getLogger("learnerbot.config")

# ===== Config Schema (authoritative) =====
_REQUIRED_ENV = (
    "DISCORD_TOKEN",
    "SPREADSHEET_ID",
    "GOOGLE_APPLICATION_CREDENTIALS",
)

DEFAULT_LEARNER_ROLE_NAME = "Learner"
DEFAULT_SHEET_RANGE = "Sheet1!A:F"
DEFAULT_PAID_LEARNERS_FILE = "paidLearners.json"


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or str(value).strip() == "":
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


for _name in _REQUIRED_ENV:
    _require_env(_name)

_MISSING_VALUE = "—"

_CONFIG: Dict[str, object] = {}

_SECRET_KEYS = {
    "DISCORD_TOKEN",
    "GOOGLE_CREDENTIALS",
}


def _redact_value(key: str, value: object) -> str:
    """Best-effort redaction for import-time logging."""

    key_upper = str(key).upper()

    if key_upper in _SECRET_KEYS or "TOKEN" in key_upper or key_upper.endswith("_SECRET"):
        if value in (None, "", [], (), {}):
            return _MISSING_VALUE
        text = str(value)
        stripped = text.strip()
        if not stripped:
            return _MISSING_VALUE
        if "service_account" in stripped and "private_key" in stripped:
            return mask_service_account(stripped)
        masked = sanitize_text(text)
        if isinstance(masked, str) and masked != text:
            return masked
        return mask_secret(stripped)

    if value in (None, "", [], (), {}):
        return _MISSING_VALUE

    return str(sanitize_text(value))


def redact_value(key: str, value: object) -> str:
    """Public wrapper around the snapshot redaction rules."""

    return _redact_value(key, value)


def _log_snapshot(snapshot: Dict[str, object]) -> None:
    redacted = {key: _redact_value(key, value) for key, value in snapshot.items()}
    log.info("config loaded", extra={"config": redacted})


def _load_config() -> Dict[str, object]:
    role_name = (os.getenv("LEARNER_ROLE_NAME") or "").strip() or DEFAULT_LEARNER_ROLE_NAME
    sheet_range = (os.getenv("SHEET_RANGE") or "").strip() or DEFAULT_SHEET_RANGE
    learners_path = (os.getenv("PAID_LEARNERS_PATH") or "").strip() or DEFAULT_PAID_LEARNERS_FILE

    return {
        "PORT": _runtime.get_port(),
        "BOT_NAME": _runtime.get_bot_name(),
        "ENV_NAME": _runtime.get_env_name(),
        "DISCORD_TOKEN": os.getenv("DISCORD_TOKEN", ""),
        "DISCORD_CLIENT_ID": (os.getenv("DISCORD_CLIENT_ID") or "").strip(),
        "SPREADSHEET_ID": (os.getenv("SPREADSHEET_ID") or "").strip(),
        "SHEET_RANGE": sheet_range,
        "GOOGLE_APPLICATION_CREDENTIALS": (
            os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or ""
        ).strip(),
        "GOOGLE_CREDENTIALS": os.getenv("GOOGLE_CREDENTIALS", ""),
        "LEARNER_ROLE_NAME": role_name,
        "PAID_LEARNERS_PATH": learners_path,
        "ONBOARDING_SESSION_TTL_SEC": _runtime.get_session_ttl_sec(),
        "ONBOARDING_SESSION_SWEEP_SEC": _runtime.get_session_sweep_sec(),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO"),
        "BOT_VERSION": os.getenv("BOT_VERSION", "dev"),
    }


def reload_config() -> Dict[str, object]:
    """Reload configuration from environment and return a snapshot."""

    for _name in _REQUIRED_ENV:
        _require_env(_name)

    snapshot = _load_config()

    global _CONFIG
    _CONFIG = snapshot
    _log_snapshot(snapshot)
    return dict(_CONFIG)


reload_config()


def get_config_snapshot(*, redacted: bool = False) -> Dict[str, object]:
    """Return a shallow copy of the cached config values."""

    if redacted:
        return {key: _redact_value(key, value) for key, value in _CONFIG.items()}
    return dict(_CONFIG)


def _text(key: str, default: str = "") -> str:
    value = _CONFIG.get(key)
    return str(value) if isinstance(value, str) and value else default


def get_env_name(default: str = "dev") -> str:
    return _text("ENV_NAME", default)


def get_bot_name(default: str = "Learner-Onboarding") -> str:
    return _text("BOT_NAME", default)


def get_port() -> int:
    value = _CONFIG.get("PORT")
    return value if isinstance(value, int) else _runtime.get_port()


def get_discord_token() -> str:
    return _text("DISCORD_TOKEN")


def get_discord_client_id() -> Optional[str]:
    return _text("DISCORD_CLIENT_ID") or None


def get_spreadsheet_id() -> str:
    return _text("SPREADSHEET_ID")


def get_sheet_range() -> str:
    return _text("SHEET_RANGE", DEFAULT_SHEET_RANGE)


def get_google_credentials_path() -> Optional[Path]:
    raw = _text("GOOGLE_APPLICATION_CREDENTIALS")
    return Path(raw).expanduser().resolve() if raw else None


def get_google_credentials_json() -> Optional[str]:
    raw = _text("GOOGLE_CREDENTIALS").strip()
    return raw or None


def get_learner_role_name() -> str:
    return _text("LEARNER_ROLE_NAME", DEFAULT_LEARNER_ROLE_NAME)


def get_paid_learners_path() -> Path:
    return Path(_text("PAID_LEARNERS_PATH", DEFAULT_PAID_LEARNERS_FILE))


def get_session_ttl_sec() -> int:
    value = _CONFIG.get("ONBOARDING_SESSION_TTL_SEC")
    return value if isinstance(value, int) else _runtime.get_session_ttl_sec()


def get_session_sweep_sec() -> int:
    value = _CONFIG.get("ONBOARDING_SESSION_SWEEP_SEC")
    return value if isinstance(value, int) else _runtime.get_session_sweep_sec()
