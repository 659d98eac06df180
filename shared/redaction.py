"""Secret and PII redaction helpers for config snapshots and log lines."""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any, Mapping

__all__ = [
    "mask_email",
    "mask_phone",
    "mask_secret",
    "mask_service_account",
    "sanitize_data",
    "sanitize_text",
]


_DISCORD_TOKEN_RE = re.compile(r"[A-Za-z0-9_-]{24}\.[A-Za-z0-9_-]{6}\.[A-Za-z0-9_-]{27,}")
_PRIVATE_KEY_BLOCK_RE = re.compile(r"-----BEGIN [^-]+-----.*?-----END [^-]+-----", re.DOTALL)
_GOOGLE_API_KEY_RE = re.compile(r"AIza[0-9A-Za-z\-_]{35}")
_OAUTH_TOKEN_RE = re.compile(r"ya29\.[0-9A-Za-z\-_]{20,}")
_SECRET_FIELD_RE = re.compile(
    r"(?P<prefix>(token|secret|credential|key)\s*[=:]\s*)(?P<secret>[^\s,;]+)",
    re.IGNORECASE,
)
_SERVICE_ACCOUNT_INLINE_RE = re.compile(
    r"\{[^{}]*\"type\"\s*:\s*\"service_account\".*?\}",
    re.DOTALL,
)


def _stable_suffix(text: str) -> str:
    digest = hashlib.sha1(text.encode("utf-8", "ignore")).hexdigest()
    return digest[:4]


def mask_secret(text: str) -> str:
    return f"***{_stable_suffix(text)}"


def mask_service_account(text: str) -> str:
    return f"***sa-json:len={len(text)}-{_stable_suffix(text)}"


def mask_email(email: str | None) -> str:
    """Keep the first character of the local part and the full domain.

    ``jane.doe@example.com`` -> ``j***@example.com``
    """

    text = (email or "").strip()
    if "@" not in text:
        return mask_secret(text) if text else ""
    local, _, domain = text.partition("@")
    head = local[:1] if local else ""
    return f"{head}***@{domain}"


def mask_phone(phone: str | None) -> str:
    """Keep only the last two digits of a phone number."""

    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        return ""
    return f"***{digits[-2:]}"


def _looks_like_service_account(text: str) -> bool:
    if "service_account" not in text or "private_key" not in text:
        return False
    try:
        data = json.loads(text)
    except ValueError:
        return False
    if not isinstance(data, Mapping):
        return False
    return str(data.get("type")) == "service_account" and "private_key" in data


def sanitize_text(value: Any) -> Any:
    if value is None:
        return value
    text = str(value)
    if not text:
        return text

    stripped = text.strip()
    if _looks_like_service_account(stripped):
        return mask_service_account(stripped)

    sanitized = _SERVICE_ACCOUNT_INLINE_RE.sub(
        lambda match: mask_service_account(match.group(0)), text
    )
    for pattern in (_PRIVATE_KEY_BLOCK_RE, _DISCORD_TOKEN_RE, _GOOGLE_API_KEY_RE, _OAUTH_TOKEN_RE):
        sanitized = pattern.sub(lambda match: mask_secret(match.group(0)), sanitized)
    sanitized = _SECRET_FIELD_RE.sub(
        lambda match: f"{match.group('prefix')}{mask_secret(match.group('secret'))}",
        sanitized,
    )
    return sanitized


def sanitize_data(value: Any) -> Any:
    if isinstance(value, str):
        return sanitize_text(value)
    if isinstance(value, Mapping):
        return {key: sanitize_data(val) for key, val in value.items()}
    if isinstance(value, tuple):
        return tuple(sanitize_data(item) for item in value)
    if isinstance(value, list):
        return [sanitize_data(item) for item in value]
    return value
