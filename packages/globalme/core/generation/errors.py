"""Generation failure types and provider error normalization."""

from __future__ import annotations

import json
import re

# Markers of provider-side rate limiting in a normalized error message
_THROTTLING_MARKERS = ("429", "quota", "resource_exhausted", "resource exhausted")

# e.g. "ClientError: 400 INVALID_ARGUMENT" -> "400 INVALID_ARGUMENT"
_ERROR_PREFIX = re.compile(r"^\s*[A-Za-z]*Error:\s*")

UNKNOWN_ERROR_MESSAGE = "Unknown error occurred"


class GenerationError(Exception):
    """Unrecoverable failure while generating one variant.

    Attributes:
        message: User-facing error text shown on the failed item.
    """

    def __init__(self, message: str) -> None:
        self.message = message or UNKNOWN_ERROR_MESSAGE
        super().__init__(self.message)


class ThrottlingError(GenerationError):
    """Provider rate limiting that outlasted the retry budget."""

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class SafetyBlockedError(GenerationError):
    """Provider declined to produce content."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Generation blocked by safety filters. Reason: {reason}")
        self.reason = reason


class MalformedResponseError(GenerationError):
    """Response lacked candidates, content, parts or image data."""


def _nested_error_message(raw: str) -> str | None:
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        body = json.loads(raw[start : end + 1])
    except json.JSONDecodeError:
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return None


def normalize_error_message(raw: str) -> str:
    """Reduce raw provider error text to a readable message.

    Provider errors often embed a JSON body as a string; the nested
    ``error.message`` wins when present. Otherwise a leading
    ``<Word>Error:`` prefix is stripped.

    Example:
        >>> normalize_error_message('{"error":{"message":"Quota exceeded"}}')
        'Quota exceeded'
        >>> normalize_error_message("RuntimeError: socket closed")
        'socket closed'
    """
    nested = _nested_error_message(raw)
    if nested is not None:
        return nested
    cleaned = _ERROR_PREFIX.sub("", raw, count=1).strip()
    return cleaned or raw.strip() or UNKNOWN_ERROR_MESSAGE


def is_throttling_message(message: str) -> bool:
    """Whether a normalized message signals rate limiting."""
    lowered = message.lower()
    return any(marker in lowered for marker in _THROTTLING_MARKERS)
