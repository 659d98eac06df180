"""Google Sheets adapter core used by the learner record sink."""

from __future__ import annotations

import json
import logging
import random
import threading
import time
from typing import Any, Callable, Mapping, Optional, TypeVar

import gspread
from google.oauth2.service_account import Credentials
from gspread import Spreadsheet
from gspread.exceptions import APIError
from requests import exceptions as requests_exceptions

from shared import config


log = logging.getLogger("learnerbot.sheets.core")

GSpreadClient = gspread.Client

_CLIENT_LOCK = threading.Lock()
_CLIENT: Optional[GSpreadClient] = None
_SPREADSHEETS: dict[str, Spreadsheet] = {}

# Sheets read/write only; the bot never touches Drive.
SCOPES = ("https://www.googleapis.com/auth/spreadsheets",)

_RETRY_STATUS = {408, 425, 429, 500, 502, 503, 504}

_STATUS_HINTS = {
    404: "Spreadsheet not found. Check SPREADSHEET_ID.",
    403: "Permission denied. Ensure the service account has edit access to the sheet.",
}

T = TypeVar("T")


def clear_cached_client() -> None:
    """Drop the cached gspread client and spreadsheet handles (mainly for tests)."""

    global _CLIENT
    with _CLIENT_LOCK:
        _CLIENT = None
        _SPREADSHEETS.clear()


def _load_inline_credentials(raw: str) -> Mapping[str, Any]:
    try:
        creds = json.loads(raw)
    except json.JSONDecodeError as exc:  # pragma: no cover - configuration error path
        raise RuntimeError("GOOGLE_CREDENTIALS must be valid JSON") from exc
    if not isinstance(creds, Mapping):  # pragma: no cover - configuration error path
        raise RuntimeError("GOOGLE_CREDENTIALS JSON must represent an object")
    return creds


def _authorise() -> GSpreadClient:
    inline = config.get_google_credentials_json()
    if inline:
        log.info("Using Google credentials from GOOGLE_CREDENTIALS")
        creds = Credentials.from_service_account_info(_load_inline_credentials(inline), scopes=SCOPES)
        return gspread.authorize(creds)

    path = config.get_google_credentials_path()
    if path is None:
        raise RuntimeError(
            "No Google credentials found. Set GOOGLE_CREDENTIALS or GOOGLE_APPLICATION_CREDENTIALS"
        )
    log.info("Using Google credentials from file", extra={"path": str(path)})
    creds = Credentials.from_service_account_file(str(path), scopes=SCOPES)
    return gspread.authorize(creds)


def get_client() -> GSpreadClient:
    """Return a cached gspread client authenticated via service-account credentials."""

    global _CLIENT
    if _CLIENT is not None:
        return _CLIENT
    with _CLIENT_LOCK:
        if _CLIENT is None:
            _CLIENT = _authorise()
            log.info("Google Sheets client initialised")
    return _CLIENT


def api_error_status(exc: BaseException) -> Optional[int]:
    """Return the HTTP status carried by a gspread ``APIError`` if any."""

    if not isinstance(exc, APIError):
        return None
    code = getattr(exc, "code", None)
    if isinstance(code, int):
        return code
    resp = getattr(exc, "response", None)
    status = getattr(resp, "status_code", None)
    return status if isinstance(status, int) else None


def describe_api_error(exc: BaseException) -> Optional[str]:
    """Return an operator hint for well-known Sheets failures."""

    status = api_error_status(exc)
    if status is None:
        return None
    return _STATUS_HINTS.get(status)


def _should_retry(exc: Exception) -> bool:
    status = api_error_status(exc)
    if status in _RETRY_STATUS:
        return True
    if isinstance(exc, APIError):
        blob = str(exc).lower()
        if "rate limit" in blob or "quota" in blob or "timeout" in blob:
            return True
    if isinstance(exc, requests_exceptions.RequestException):
        return True
    return False


def with_backoff(func: Callable[[], T], *, retries: int = 3, base_delay: float = 0.5, max_delay: float = 8.0) -> T:
    """Execute *func* with exponential backoff on transient failures.

    Only idempotent reads go through here; appends are never retried.
    """

    attempt = 0
    delay = base_delay
    while True:
        try:
            return func()
        except Exception as exc:
            attempt += 1
            if attempt > retries or not _should_retry(exc):
                raise
            sleep_for = min(max_delay, delay) + random.uniform(0.0, base_delay)
            log.warning("Sheets call failed (attempt %s/%s): %s", attempt, retries, exc)
            time.sleep(sleep_for)
            delay *= 2


def open_by_key(spreadsheet_id: str) -> Spreadsheet:
    """Return a cached spreadsheet handle for ``spreadsheet_id``."""

    cached = _SPREADSHEETS.get(spreadsheet_id)
    if cached is not None:
        return cached
    spreadsheet = with_backoff(lambda: get_client().open_by_key(spreadsheet_id))
    _SPREADSHEETS[spreadsheet_id] = spreadsheet
    return spreadsheet


def values_append(
    spreadsheet_id: str,
    a1_range: str,
    rows: list[list[Any]],
    *,
    value_input_option: str = "USER_ENTERED",
    insert_data_option: str = "INSERT_ROWS",
) -> Mapping[str, Any]:
    """Append ``rows`` after the table found in ``a1_range``; single attempt."""

    spreadsheet = open_by_key(spreadsheet_id)
    return spreadsheet.values_append(
        a1_range,
        params={
            "valueInputOption": value_input_option,
            "insertDataOption": insert_data_option,
        },
        body={"values": rows},
    )


def values_update(
    spreadsheet_id: str,
    a1_range: str,
    rows: list[list[Any]],
    *,
    value_input_option: str = "USER_ENTERED",
) -> Mapping[str, Any]:
    spreadsheet = open_by_key(spreadsheet_id)
    return with_backoff(
        lambda: spreadsheet.values_update(
            a1_range,
            params={"valueInputOption": value_input_option},
            body={"values": rows},
        )
    )
