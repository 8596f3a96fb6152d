"""
Deterministic classification of image analysis failures.

Maps exceptions raised while calling the vision model onto a small set
of failure classes, each with a fixed retry decision. HTTP status codes
win over message patterns; unknown errors are treated as transient so a
job is never dropped on its first surprise.

Dependencies: httpx, google-genai
System role: Retry policy input for the analysis adapter
"""

import asyncio
import enum
from dataclasses import dataclass

import httpx
from google.genai import errors as genai_errors

_BILLING_OR_QUOTA_PATTERNS: tuple[str, ...] = (
    "billing",
    "insufficient",
    "payment required",
    "quota exceeded for",
)
_ACCESS_OR_AUTH_PATTERNS: tuple[str, ...] = (
    "api key not valid",
    "invalid api key",
    "permission denied",
    "unauthorized",
    "forbidden",
    "unauthenticated",
)
_MODEL_NOT_AVAILABLE_PATTERNS: tuple[str, ...] = (
    "model not found",
    "is not found for api version",
    "unsupported model",
    "not available in your region",
)
_RATE_LIMIT_PATTERNS: tuple[str, ...] = (
    "resource_exhausted",
    "rate limit",
    "too many requests",
    "try again later",
)
_TRANSIENT_PATTERNS: tuple[str, ...] = (
    "temporarily unavailable",
    "deadline exceeded",
    "connection reset",
    "overloaded",
    "unavailable",
)


class FailureClass(str, enum.Enum):
    """Normalized failure classes for the analysis adapter."""

    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    RATE_LIMITED = "rate_limited"
    BACKEND_TRANSIENT = "backend_transient"
    OUTPUT_INVALID_JSON = "output_invalid_json"
    OUTPUT_INVALID_SCHEMA = "output_invalid_schema"
    ACCESS_OR_AUTH = "access_or_auth"
    BILLING_OR_QUOTA = "billing_or_quota"
    MODEL_NOT_AVAILABLE = "model_not_available"
    INPUT_INVALID = "input_invalid"
    BACKEND_NON_RETRYABLE = "backend_non_retryable"


RETRYABLE_CLASSES: frozenset[FailureClass] = frozenset(
    {
        FailureClass.TIMEOUT,
        FailureClass.TRANSPORT,
        FailureClass.RATE_LIMITED,
        FailureClass.BACKEND_TRANSIENT,
        FailureClass.OUTPUT_INVALID_JSON,
        FailureClass.OUTPUT_INVALID_SCHEMA,
    }
)


@dataclass(frozen=True, slots=True)
class FailureClassification:
    """Normalized failure classification result."""

    failure_class: FailureClass
    reason_code: str
    matched_pattern: str | None = None

    @property
    def retryable(self) -> bool:
        return self.failure_class in RETRYABLE_CLASSES


def classify_exception(exc: BaseException) -> FailureClassification:
    """
    Classify an exception raised by the model call.

    Args:
        exc: Exception from the SDK, the HTTP transport or asyncio

    Returns:
        FailureClassification
    """
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
        return FailureClassification(FailureClass.TIMEOUT, "model_call_timeout")

    if isinstance(exc, httpx.TransportError):
        return FailureClassification(FailureClass.TRANSPORT, "model_transport_error")

    if isinstance(exc, genai_errors.APIError):
        return classify_api_error(exc.code, f"{exc.status or ''} {exc.message or ''}")

    return _classify_message(str(exc), fallback=FailureClass.BACKEND_TRANSIENT)


def classify_api_error(code: int | None, message: str) -> FailureClassification:
    """
    Classify an API error from its HTTP status code and message.

    Args:
        code: HTTP status code, if known
        message: Error status and message text

    Returns:
        FailureClassification
    """
    if code == 429:
        by_message = _classify_message(message, fallback=FailureClass.RATE_LIMITED)
        if by_message.failure_class is FailureClass.BILLING_OR_QUOTA:
            return by_message
        return FailureClassification(FailureClass.RATE_LIMITED, "model_rate_limited")
    if code in (401, 403):
        return FailureClassification(FailureClass.ACCESS_OR_AUTH, "model_access_denied")
    if code == 404:
        return FailureClassification(FailureClass.MODEL_NOT_AVAILABLE, "model_not_available")
    if code is not None and (code >= 500 or code == 408):
        return FailureClassification(FailureClass.BACKEND_TRANSIENT, f"model_http_{code}")
    if code is not None and 400 <= code < 500:
        by_message = _classify_message(message, fallback=FailureClass.INPUT_INVALID)
        return by_message
    return _classify_message(message, fallback=FailureClass.BACKEND_TRANSIENT)


def _classify_message(message: str, fallback: FailureClass) -> FailureClassification:
    haystack = message.lower()
    rules: tuple[tuple[tuple[str, ...], FailureClass], ...] = (
        (_BILLING_OR_QUOTA_PATTERNS, FailureClass.BILLING_OR_QUOTA),
        (_ACCESS_OR_AUTH_PATTERNS, FailureClass.ACCESS_OR_AUTH),
        (_MODEL_NOT_AVAILABLE_PATTERNS, FailureClass.MODEL_NOT_AVAILABLE),
        (_RATE_LIMIT_PATTERNS, FailureClass.RATE_LIMITED),
        (_TRANSIENT_PATTERNS, FailureClass.BACKEND_TRANSIENT),
    )
    for patterns, failure_class in rules:
        pattern = _first_match(haystack, patterns)
        if pattern is not None:
            return FailureClassification(failure_class, f"model_{failure_class.value}", pattern)
    return FailureClassification(fallback, f"model_{fallback.value}")


def _first_match(haystack: str, patterns: tuple[str, ...]) -> str | None:
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None
