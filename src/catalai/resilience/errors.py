"""Domain exceptions and error classification.

Classifies exceptions by category to enable:
- Structured logging (which errors are transient vs permanent)
- Informative user messages (timeout vs auth vs server)
"""

from __future__ import annotations

import asyncio
from enum import Enum


class CatalaiError(Exception):
    """Base class for errors raised by the decision core."""


class MatrixValidationError(CatalaiError):
    """A decision matrix failed import-time validation."""


class MatrixVersionError(CatalaiError):
    """A matrix version is malformed, reused, or not increasing."""


class ClassificationFailedError(CatalaiError):
    """The core classification call failed; fatal to the pipeline."""

    def __init__(self, message: str, *, cause: Exception) -> None:
        super().__init__(message)
        self.cause = cause
        self.error_class = classify_error(cause)


class ErrorClass(Enum):
    TRANSIENT = "transient"  # 429, network errors; retryable
    SERVER = "server"  # 500, 502, 503; retryable
    TIMEOUT = "timeout"  # deadline exceeded; retryable with backoff
    CLIENT = "client"  # 400, 401, 403; do NOT retry
    PARSE = "parse"  # model answered but output was unusable
    UNKNOWN = "unknown"  # unclassified; do NOT retry


def classify_error(error: BaseException) -> ErrorClass:
    """Classify an error to determine handling strategy.

    Checks structured attributes first (status_code), falls back
    to string matching for untyped exceptions.
    """
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        if status_code == 429:
            return ErrorClass.TRANSIENT
        if 400 <= status_code < 500:
            return ErrorClass.CLIENT
        if 500 <= status_code < 600:
            return ErrorClass.SERVER

    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ErrorClass.TIMEOUT

    msg = str(error).lower()

    if "timeout" in msg or "timed out" in msg:
        return ErrorClass.TIMEOUT
    if "429" in msg or "rate limit" in msg or "rate_limit" in msg:
        return ErrorClass.TRANSIENT
    if any(code in msg for code in ("500", "502", "503", "504")):
        return ErrorClass.SERVER
    if "econnrefused" in msg or "connection" in msg:
        return ErrorClass.TRANSIENT
    if any(code in msg for code in ("400", "401", "403", "404")):
        return ErrorClass.CLIENT
    if "parse" in msg or "json" in msg:
        return ErrorClass.PARSE

    return ErrorClass.UNKNOWN


_RETRYABLE = frozenset({
    ErrorClass.TRANSIENT,
    ErrorClass.SERVER,
    ErrorClass.TIMEOUT,
})


def is_retryable(error: BaseException) -> bool:
    """Return True if the error category supports retry."""
    return classify_error(error) in _RETRYABLE


_USER_MESSAGES: dict[ErrorClass, str] = {
    ErrorClass.TIMEOUT: (
        "Classification request timed out. Please try again "
        "or flag for manual review."
    ),
    ErrorClass.TRANSIENT: (
        "The LLM provider is rate limiting requests. Please try "
        "again in a few moments."
    ),
    ErrorClass.SERVER: (
        "The LLM service is currently unavailable. Please try "
        "again later or flag for manual review."
    ),
    ErrorClass.CLIENT: (
        "The LLM provider rejected the request. Check the API "
        "key and the selected model."
    ),
    ErrorClass.PARSE: (
        "Failed to parse classification response. Please try "
        "again or flag for manual review."
    ),
}


def describe_error(error: BaseException) -> str:
    """User-facing message for a failed classification call."""
    return _USER_MESSAGES.get(
        classify_error(error),
        f"Classification failed: {error}",
    )
