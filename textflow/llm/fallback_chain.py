"""
Multi-candidate fallback chain.

This module drives one ProviderClient across an ordered, deduplicated list of
candidate models under a total time budget. Each attempt yields either the
generated text or a classified ProviderFailure; the chain branches on the
failure kind to advance, abort or report exhaustion.
"""

import asyncio
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from textflow.config import DEFAULT_MAX_CANDIDATES, PipelineConfig
from textflow.utils.logging import get_logger

from .exceptions import (
    FailureKind,
    FallbackTimeoutError,
    NoAvailableProviderError,
    ProviderFailure,
    QuotaExceededError,
    classify_error,
    error_for_failure,
)
from .provider import ProviderClient

logger = get_logger(__name__)


def build_model_candidates(
    primary_model: Optional[str],
    fallback_models: Iterable[str] = (),
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
) -> List[str]:
    """
    Build the ordered candidate list for a fallback chain.

    Names are stripped; blanks and repeats are dropped keeping the first
    occurrence, and the result is capped at ``max_candidates``.
    """
    candidates: List[str] = []
    for name in [primary_model or "", *fallback_models]:
        name = (name or "").strip()
        if name and name not in candidates:
            candidates.append(name)
    return candidates[: max(max_candidates, 0)]


class FallbackChain:
    """
    Tries candidate models in order until one returns text.

    NOT_FOUND and TRANSIENT failures advance to the next candidate.
    QUOTA_EXCEEDED advances too and is remembered for the final error.
    AUTH_FAILURE and FATAL abort immediately.
    """

    def __init__(
        self,
        provider: ProviderClient,
        config: PipelineConfig,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the chain.

        Args:
            provider: Backend that issues the requests
            config: Candidate models and time budgets
            clock: Monotonic clock in seconds
        """
        self.provider = provider
        self.config = config
        self.candidates = build_model_candidates(
            config.primary_model, config.fallback_models, config.max_candidates
        )
        self._clock = clock

    async def generate(
        self, prompt: str, parameters: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Generate text for a prompt using the first candidate that succeeds.

        Args:
            prompt: Input prompt
            parameters: Generation parameters passed to the provider

        Returns:
            Non-empty generated text, stripped

        Raises:
            AuthFailureError: A candidate rejected the credentials
            FatalProviderError: A candidate failed in an unrecognized way
            FallbackTimeoutError: The total time budget ran out
            QuotaExceededError: All candidates exhausted, at least one on quota
            NoAvailableProviderError: All candidates exhausted otherwise
        """
        if not self.candidates:
            raise NoAvailableProviderError(
                [],
                provider=self.provider.name,
                message="No model configured. Set TEXTFLOW_MODEL in your environment.",
            )

        start_time = self._clock()
        budget = self.config.total_timeout_ms / 1000.0
        quota_seen = False
        retry_after_seconds: Optional[int] = None
        last_failure: Optional[ProviderFailure] = None
        attempted: List[str] = []

        for model in self.candidates:
            elapsed = self._clock() - start_time
            self._check_budget(elapsed, budget, attempted, last_failure)

            attempted.append(model)
            result = await self._attempt(model, prompt, parameters, budget - elapsed)
            if isinstance(result, str):
                logger.debug(f"Generated response using model {model}")
                return result

            last_failure = result

            if result.kind in (FailureKind.AUTH_FAILURE, FailureKind.FATAL):
                logger.error(
                    f"{self.provider.name} {result.kind.value} on model {model}: {result.message}"
                )
                raise error_for_failure(result, self.provider.name) from result.cause

            if result.kind == FailureKind.QUOTA_EXCEEDED:
                quota_seen = True
                if retry_after_seconds is None:
                    retry_after_seconds = result.retry_after_seconds
                logger.warning(
                    f"{self.provider.name} quota/rate limit hit on model {model}"
                )
            elif result.kind == FailureKind.NOT_FOUND:
                logger.warning(f"{self.provider.name} model unavailable: {model}")
            else:
                logger.warning(
                    f"{self.provider.name} transient issue on model {model}: {result.message}"
                )

            # A request cut short by the remaining budget spends the whole budget
            self._check_budget(
                self._clock() - start_time, budget, attempted, last_failure
            )

        cause = last_failure.cause if last_failure else None

        if quota_seen:
            retry_message = (
                f" Retry after about {retry_after_seconds} seconds."
                if retry_after_seconds
                else ""
            )
            raise QuotaExceededError(
                f"{self.provider.name} quota/rate limit hit for configured models.{retry_message}",
                provider=self.provider.name,
                retry_after_seconds=retry_after_seconds,
            ) from cause

        raise NoAvailableProviderError(attempted, provider=self.provider.name) from cause

    def _check_budget(
        self,
        elapsed: float,
        budget: float,
        attempted: List[str],
        last_failure: Optional[ProviderFailure],
    ) -> None:
        """Raise FallbackTimeoutError once the total time budget is spent."""
        if elapsed < budget:
            return

        raise FallbackTimeoutError(
            f"Provider fallback exceeded the total timeout of "
            f"{self.config.total_timeout_ms}ms after trying: {', '.join(attempted)}",
            provider=self.provider.name,
            last_failure=last_failure,
        ) from (last_failure.cause if last_failure else None)

    async def _attempt(
        self,
        model: str,
        prompt: str,
        parameters: Optional[Dict[str, Any]],
        remaining: float,
    ) -> Union[str, ProviderFailure]:
        """Issue one bounded request and return its text or its classified failure."""
        timeout = min(self.config.per_request_timeout_ms / 1000.0, remaining)

        try:
            text = await asyncio.wait_for(
                self.provider.generate(model, prompt, parameters), timeout=timeout
            )
        except asyncio.TimeoutError as e:
            return ProviderFailure(
                kind=FailureKind.TRANSIENT,
                message=(
                    f"{self.provider.name} request timed out after "
                    f"{int(timeout * 1000)}ms for model {model}"
                ),
                cause=e,
                model=model,
                status_code=504,
            )
        except Exception as e:
            return classify_error(e, model)

        text = (text or "").strip()
        if not text:
            return ProviderFailure(
                kind=FailureKind.FATAL,
                message=f"{self.provider.name} returned an empty response for model {model}",
                model=model,
            )
        return text
