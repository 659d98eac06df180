"""Validation and sanitising helpers for onboarding answers."""

from __future__ import annotations

import re

__all__ = [
    "MAX_INPUT_LENGTH",
    "is_valid_email",
    "is_valid_name",
    "is_valid_phone",
    "sanitize_input",
]

MAX_INPUT_LENGTH = 500

_LABEL = r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
# Simplified RFC 5322: at least one dot in the domain, so "a@b" is rejected.
_EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@" + _LABEL + r"(?:\." + _LABEL + r")+$"
)
_CONTROL_WHITESPACE_RE = re.compile(r"[\r\n\t]")
_ASCII_LETTER_RE = re.compile(r"[a-zA-Z]")
_NON_DIGIT_RE = re.compile(r"[^0-9]")


def sanitize_input(text: str) -> str:
    """Trim, flatten CR/LF/TAB to spaces and cap the length."""

    return _CONTROL_WHITESPACE_RE.sub(" ", text.strip())[:MAX_INPUT_LENGTH]


def is_valid_name(name: str) -> bool:
    trimmed = name.strip()
    return len(trimmed) >= 2 and _ASCII_LETTER_RE.search(trimmed) is not None


def is_valid_email(email: str) -> bool:
    return _EMAIL_RE.fullmatch(email.strip()) is not None


def is_valid_phone(phone: str) -> bool:
    """Accept 10-15 digits in any format (``+1 (234) 567-8900``, ``98765 43210``)."""

    digits = _NON_DIGIT_RE.sub("", phone)
    return 10 <= len(digits) <= 15
