"""
Failure classification for upstream errors.

The class decides how long a credential profile is put on cooldown:
HTTP-like status codes win, then timeout exception types, then keyword
families found in the lower-cased error message.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from typing import Any, Optional

import httpx

from llmfailover.models import FailureType

_STATUS_FAILURES = {
    401: FailureType.AUTH,
    429: FailureType.RATE_LIMIT,
    402: FailureType.BILLING,
}

_AUTH_MARKERS = ("unauthorized", "invalid api key", "authentication")
_RATE_LIMIT_MARKERS = ("rate limit", "too many requests", "quota exceeded")
_BILLING_MARKERS = ("billing", "payment", "insufficient", "credit")
_TIMEOUT_MARKERS = ("timeout", "etimedout", "econnreset", "socket hang up")

_TIMEOUT_TYPES = (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)


def _coerce_status(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def extract_status_code(error: Any) -> Optional[int]:
    """
    Read `status` / `status_code` / `statusCode` from a mapping or an
    exception, falling back to an attached httpx response.
    """
    if isinstance(error, Mapping):
        for key in ("status", "status_code", "statusCode"):
            status = _coerce_status(error.get(key))
            if status is not None:
                return status
        return None

    for attr in ("status", "status_code", "statusCode"):
        status = _coerce_status(getattr(error, attr, None))
        if status is not None:
            return status

    response = getattr(error, "response", None)
    if response is not None:
        return _coerce_status(getattr(response, "status_code", None))
    return None


def _message_from_json(obj: Any) -> Optional[str]:
    if isinstance(obj, dict):
        # OpenAI: {"error": {"message": "..."}}
        if isinstance(obj.get("error"), dict):
            msg = obj["error"].get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        msg = obj.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
        detail = obj.get("detail")
        if isinstance(detail, str) and detail.strip():
            return detail.strip()
    return None


def extract_error_message(error: Any) -> str:
    """
    Human-readable message of an error; JSON error bodies are unwrapped.
    """
    if error is None:
        return ""
    if isinstance(error, Mapping):
        raw = error.get("message")
    else:
        raw = getattr(error, "message", None)
        if not isinstance(raw, str):
            raw = str(error)
    if not isinstance(raw, str) or not raw:
        return ""

    text = raw.strip()
    if text.startswith("{"):
        try:
            parsed = json.loads(text)
        except ValueError:
            return raw
        return _message_from_json(parsed) or raw
    return raw


def categorize_error(error: Any) -> FailureType:
    status = extract_status_code(error)
    if status in _STATUS_FAILURES:
        return _STATUS_FAILURES[status]

    if isinstance(error, _TIMEOUT_TYPES):
        return FailureType.TIMEOUT

    msg = extract_error_message(error).lower()
    if any(marker in msg for marker in _AUTH_MARKERS):
        return FailureType.AUTH
    if any(marker in msg for marker in _RATE_LIMIT_MARKERS):
        return FailureType.RATE_LIMIT
    if any(marker in msg for marker in _BILLING_MARKERS):
        return FailureType.BILLING
    if any(marker in msg for marker in _TIMEOUT_MARKERS):
        return FailureType.TIMEOUT
    return FailureType.UNKNOWN


__all__ = ["categorize_error", "extract_error_message", "extract_status_code"]
