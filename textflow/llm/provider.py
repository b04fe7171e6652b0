"""
Abstract base class for generative text providers.

This module defines the interface every provider backend implements so the
fallback chain can drive any of them the same way: one bounded request to
one named model, returning generated text or raising ProviderRequestError.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .exceptions import ProviderRequestError

HEALTH_CHECK_TIMEOUT_SECONDS = 10.0


@dataclass
class ProviderHealthStatus:
    """Health status of a provider backend."""

    is_healthy: bool
    provider: str
    last_check: float
    response_time: Optional[float] = None
    error_message: Optional[str] = None

    def __post_init__(self):
        """Set last_check to current time if not provided."""
        if self.last_check == 0:
            self.last_check = time.time()


class ProviderClient(ABC):
    """
    Abstract base class for provider backends.

    Concrete providers own an ``httpx.AsyncClient`` and translate their API's
    error responses into ``ProviderRequestError`` with the HTTP status, the
    provider's message and any Retry-After hint. Classification happens in
    the caller.
    """

    default_base_url = ""

    def __init__(
        self,
        name: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the provider.

        Args:
            name: Provider identifier used in logs and errors
            api_key: API key for the provider
            base_url: API base URL (provider default when None)
            client: Preconfigured HTTP client, mainly for tests
        """
        self.name = name
        self.api_key = api_key
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        # Requests are bounded by the fallback chain, not by the HTTP client
        self._client = client or httpx.AsyncClient(timeout=None)

    @abstractmethod
    async def generate(
        self, model: str, prompt: str, parameters: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Generate text for a prompt with one model.

        Args:
            model: Model name to call
            prompt: The input prompt
            parameters: Provider-specific parameters (temperature, max_tokens)

        Returns:
            The generated text, unmodified

        Raises:
            ProviderRequestError: If the request fails
        """

    @abstractmethod
    async def check_health(self) -> ProviderHealthStatus:
        """
        Check that the provider API is reachable with the configured key.

        Returns:
            ProviderHealthStatus describing availability
        """

    async def _post_json(
        self, url: str, payload: Dict[str, Any], headers: Dict[str, str]
    ) -> Dict[str, Any]:
        """POST a JSON payload and return the decoded body of a 2xx response."""
        try:
            response = await self._client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise self._handle_transport_error(e) from e

        if response.status_code >= 300:
            raise self._handle_http_error(response)

        try:
            return response.json()
        except ValueError as e:
            raise ProviderRequestError(
                f"{self.name} returned a response that is not valid JSON",
                provider=self.name,
                status_code=response.status_code,
            ) from e

    async def _check_endpoint(self, url: str, headers: Dict[str, str]) -> ProviderHealthStatus:
        """Issue a GET against a cheap endpoint and report the outcome."""
        start_time = time.monotonic()

        try:
            response = await self._client.get(
                url, headers=headers, timeout=HEALTH_CHECK_TIMEOUT_SECONDS
            )
        except httpx.HTTPError as e:
            return ProviderHealthStatus(
                is_healthy=False,
                provider=self.name,
                last_check=time.time(),
                response_time=time.monotonic() - start_time,
                error_message=str(e) or type(e).__name__,
            )

        response_time = time.monotonic() - start_time
        if response.status_code == 200:
            return ProviderHealthStatus(
                is_healthy=True,
                provider=self.name,
                last_check=time.time(),
                response_time=response_time,
            )

        return ProviderHealthStatus(
            is_healthy=False,
            provider=self.name,
            last_check=time.time(),
            response_time=response_time,
            error_message=self._handle_http_error(response).message,
        )

    def _handle_http_error(self, response: httpx.Response) -> ProviderRequestError:
        """
        Convert a non-2xx HTTP response to ProviderRequestError.

        Both supported APIs wrap errors as ``{"error": {"message": ...}}``.
        """
        try:
            error_data = response.json()
            error = error_data.get("error", {}) if isinstance(error_data, dict) else {}
            error_message = error.get("message") if isinstance(error, dict) else None
        except ValueError:
            error_message = None

        if not error_message:
            error_message = f"HTTP {response.status_code}: {response.text[:500]}"

        retry_after = response.headers.get("retry-after")
        retry_after = int(retry_after) if retry_after and retry_after.isdigit() else None

        return ProviderRequestError(
            error_message,
            provider=self.name,
            status_code=response.status_code,
            retry_after=retry_after,
        )

    def _handle_transport_error(self, error: httpx.HTTPError) -> ProviderRequestError:
        """Convert a network-level failure to ProviderRequestError."""
        if isinstance(error, httpx.TimeoutException):
            return ProviderRequestError(
                f"{self.name} request timed out", provider=self.name, status_code=504
            )
        return ProviderRequestError(
            f"{self.name} service unavailable: {error}", provider=self.name
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
