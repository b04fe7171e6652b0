"""
Provider layer for the TextFlow pipeline.

This package provides a single ProviderClient interface over the supported
generative text backends, the error classifier, and the fallback chain that
tries candidate models in order under a time budget.
"""

from .exceptions import (
    AuthFailureError,
    FailureKind,
    FallbackTimeoutError,
    FatalProviderError,
    LLMError,
    ModelNotFoundError,
    NoAvailableProviderError,
    ProviderConfigurationError,
    ProviderFailure,
    ProviderRequestError,
    QuotaExceededError,
    TransientProviderError,
    classify,
    classify_error,
)
from .factory import create_provider
from .fallback_chain import FallbackChain, build_model_candidates
from .provider import ProviderClient, ProviderHealthStatus

__all__ = [
    "ProviderClient",
    "ProviderHealthStatus",
    "FallbackChain",
    "build_model_candidates",
    "create_provider",
    "classify",
    "classify_error",
    "FailureKind",
    "ProviderFailure",
    "LLMError",
    "ProviderConfigurationError",
    "ProviderRequestError",
    "ModelNotFoundError",
    "QuotaExceededError",
    "TransientProviderError",
    "AuthFailureError",
    "FatalProviderError",
    "FallbackTimeoutError",
    "NoAvailableProviderError",
]
