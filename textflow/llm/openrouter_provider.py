"""
OpenRouter provider implementation.

This module implements ProviderClient for OpenRouter's OpenAI-compatible
chat completions API.
"""

from typing import Any, Dict, Optional

import httpx

from textflow.utils.logging import get_logger

from .exceptions import ProviderRequestError
from .provider import ProviderClient, ProviderHealthStatus

logger = get_logger(__name__)


class OpenRouterProvider(ProviderClient):
    """
    OpenRouter provider using the chat completions endpoint.
    """

    default_base_url = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(
            "openrouter", api_key=api_key, base_url=base_url, client=client
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def generate(
        self, model: str, prompt: str, parameters: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Generate text using an OpenRouter model.

        Args:
            model: OpenRouter model slug (e.g. ``google/gemini-2.0-flash-001``)
            prompt: The input prompt
            parameters: Optional ``temperature`` and ``max_tokens``

        Returns:
            Content of the first choice's message (may be empty)
        """
        payload: Dict[str, Any] = {
            "model": model.strip(),
            "messages": [{"role": "user", "content": prompt}],
        }
        for key in ("temperature", "max_tokens"):
            if parameters and key in parameters:
                payload[key] = parameters[key]

        logger.debug(f"Making OpenRouter request with model: {payload['model']}")

        data = await self._post_json(
            f"{self.base_url}/chat/completions", payload, self._headers()
        )

        # OpenRouter can return HTTP 200 with an error body when upstream fails
        if isinstance(data.get("error"), dict):
            error = data["error"]
            status = error.get("code")
            raise ProviderRequestError(
                error.get("message") or "Upstream provider error",
                provider=self.name,
                status_code=status if isinstance(status, int) else None,
            )

        choices = data.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        return message.get("content") or ""

    async def check_health(self) -> ProviderHealthStatus:
        """Check API reachability by listing models."""
        return await self._check_endpoint(f"{self.base_url}/models", self._headers())

