"""
Exception classes and error classification for the provider fallback chain.

This module defines one exception type per provider failure mode and the
classifier that maps a raw provider failure (status code and message) onto
those modes. All pattern matching on provider error messages lives here so
the fallback chain can branch on ``FailureKind`` alone.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class FailureKind(Enum):
    """Classification of a provider failure."""

    NOT_FOUND = "not_found"
    QUOTA_EXCEEDED = "quota_exceeded"
    TRANSIENT = "transient"
    AUTH_FAILURE = "auth_failure"
    FATAL = "fatal"


@dataclass(frozen=True)
class ProviderFailure:
    """A classified failure of a single provider request."""

    kind: FailureKind
    message: str
    retry_after_seconds: Optional[int] = None
    cause: Optional[BaseException] = None
    model: Optional[str] = None
    status_code: Optional[int] = None


class LLMError(Exception):
    """Base exception for all provider-related errors."""

    kind: Optional[str] = None
    recoverable = False

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.metadata = metadata or {}


class ProviderConfigurationError(LLMError):
    """Provider cannot be constructed from the given configuration."""

    kind = "configuration"


class ProviderRequestError(LLMError):
    """Raw failure of one provider request, before classification."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        retry_after: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, provider, status_code, **kwargs)
        self.retry_after = retry_after


class ClassifiedProviderError(LLMError):
    """A provider failure that has been through the classifier."""

    def __init__(self, failure: ProviderFailure, provider: Optional[str] = None):
        super().__init__(
            failure.message,
            provider=provider,
            status_code=failure.status_code,
            metadata={"model": failure.model},
        )
        self.failure = failure


class ModelNotFoundError(ClassifiedProviderError):
    """Requested model not found or not supported."""

    kind = FailureKind.NOT_FOUND.value
    recoverable = True


class TransientProviderError(ClassifiedProviderError):
    """Temporary provider-side failure; safe to try another candidate."""

    kind = FailureKind.TRANSIENT.value
    recoverable = True


class AuthFailureError(ClassifiedProviderError):
    """Authentication or permission failure; never retried."""

    kind = FailureKind.AUTH_FAILURE.value


class FatalProviderError(ClassifiedProviderError):
    """Unrecognized provider failure or empty response; never retried."""

    kind = FailureKind.FATAL.value


class QuotaExceededError(LLMError):
    """Quota or rate limit exceeded on every candidate that reported one."""

    kind = FailureKind.QUOTA_EXCEEDED.value
    recoverable = True

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        retry_after_seconds: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, provider, **kwargs)
        self.retry_after_seconds = retry_after_seconds


class FallbackTimeoutError(LLMError):
    """The total time budget ran out before a candidate succeeded."""

    kind = "timeout"

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        last_failure: Optional[ProviderFailure] = None,
        **kwargs,
    ):
        super().__init__(message, provider, **kwargs)
        self.last_failure = last_failure


class NoAvailableProviderError(LLMError):
    """Every candidate failed with a not-found or transient error."""

    kind = "no_available_provider"
    recoverable = True

    def __init__(
        self,
        attempted_models: Sequence[str],
        provider: Optional[str] = None,
        message: Optional[str] = None,
    ):
        self.attempted_models: List[str] = list(attempted_models)
        if message is None:
            message = (
                f"No supported model is available. Tried: {', '.join(self.attempted_models)}"
            )
        super().__init__(message, provider)


_ERRORS_BY_KIND = {
    FailureKind.NOT_FOUND: ModelNotFoundError,
    FailureKind.TRANSIENT: TransientProviderError,
    FailureKind.AUTH_FAILURE: AuthFailureError,
    FailureKind.FATAL: FatalProviderError,
}


def error_for_failure(
    failure: ProviderFailure, provider: Optional[str] = None
) -> LLMError:
    """Build the exception that represents a single classified failure."""
    if failure.kind == FailureKind.QUOTA_EXCEEDED:
        return QuotaExceededError(
            failure.message,
            provider,
            retry_after_seconds=failure.retry_after_seconds,
            status_code=failure.status_code,
        )
    return _ERRORS_BY_KIND[failure.kind](failure, provider)


# Classification patterns, evaluated in precedence order by classify()
_QUOTA_OVERRIDE_PATTERN = re.compile(r"quota exceeded", re.IGNORECASE)
_NOT_FOUND_PATTERN = re.compile(
    r"not found|no such model|model unavailable|not supported|unsupported model",
    re.IGNORECASE,
)
_QUOTA_PATTERN = re.compile(
    r"quota|too many requests|rate limit|resource exhausted", re.IGNORECASE
)
_TRANSIENT_PATTERN = re.compile(
    r"timed out|timeout|temporarily|rate-limited upstream|retry shortly|internal error|unavailable",
    re.IGNORECASE,
)
_AUTH_PATTERN = re.compile(
    r"api key|permission|unauthorized|forbidden|authenticat", re.IGNORECASE
)
_RETRY_AFTER_PATTERN = re.compile(
    r"retry[- ](?:after|in)[:\s]+(\d+(?:\.\d+)?)", re.IGNORECASE
)

TRANSIENT_STATUS_CODES = frozenset({402, 408, 429, 500, 502, 503, 504})
AUTH_STATUS_CODES = frozenset({401, 403})


def classify(status_code: Optional[int], message: Optional[str]) -> FailureKind:
    """
    Classify a raw provider failure.

    The mapping is deterministic and performs no I/O. Every input maps to
    exactly one FailureKind; FATAL is the catch-all.

    Args:
        status_code: HTTP status reported by the provider, if any
        message: Provider error message, if any

    Returns:
        The failure classification
    """
    message = message or ""

    if _QUOTA_OVERRIDE_PATTERN.search(message):
        return FailureKind.QUOTA_EXCEEDED

    if status_code == 404 or _NOT_FOUND_PATTERN.search(message):
        return FailureKind.NOT_FOUND

    if status_code == 429 or _QUOTA_PATTERN.search(message):
        return FailureKind.QUOTA_EXCEEDED

    if status_code in TRANSIENT_STATUS_CODES or _TRANSIENT_PATTERN.search(message):
        return FailureKind.TRANSIENT

    if status_code in AUTH_STATUS_CODES or _AUTH_PATTERN.search(message):
        return FailureKind.AUTH_FAILURE

    return FailureKind.FATAL


def extract_retry_after_seconds(message: Optional[str]) -> Optional[int]:
    """
    Parse a "retry after N seconds" hint from a provider message.

    Fractional values are rounded up. Returns None when no hint is present.
    """
    if not message:
        return None

    match = _RETRY_AFTER_PATTERN.search(message)
    if not match:
        return None

    return int(math.ceil(float(match.group(1))))


def classify_error(error: BaseException, model: Optional[str] = None) -> ProviderFailure:
    """
    Classify a raised exception into a ProviderFailure.

    Args:
        error: The exception raised by the provider call
        model: The candidate model that produced it

    Returns:
        ProviderFailure carrying classification and retry metadata
    """
    message = getattr(error, "message", None) or str(error) or type(error).__name__
    status_code = getattr(error, "status_code", None)
    kind = classify(status_code, message)

    retry_after = None
    if kind == FailureKind.QUOTA_EXCEEDED:
        retry_after = getattr(error, "retry_after", None)
        if retry_after is None:
            retry_after = extract_retry_after_seconds(message)

    return ProviderFailure(
        kind=kind,
        message=message,
        retry_after_seconds=retry_after,
        cause=error,
        model=model,
        status_code=status_code,
    )
