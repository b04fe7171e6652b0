"""
Gemini provider implementation.

This module implements ProviderClient for Google's Generative Language REST
API, handling model name normalization, request payloads and response text
extraction.
"""

from typing import Any, Dict, List, Optional

import httpx

from textflow.utils.logging import get_logger

from .provider import ProviderClient, ProviderHealthStatus

logger = get_logger(__name__)


def normalize_model_name(model: str) -> str:
    """Return the model name in the ``models/<id>`` form the API expects."""
    model = model.strip()
    if not model or model.startswith("models/") or model.startswith("tunedModels/"):
        return model
    return f"models/{model}"


class GeminiProvider(ProviderClient):
    """
    Gemini provider using the Generative Language API.
    """

    default_base_url = "https://generativelanguage.googleapis.com"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__("gemini", api_key=api_key, base_url=base_url, client=client)

    def _headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key or "",
            "Content-Type": "application/json",
        }

    async def generate(
        self, model: str, prompt: str, parameters: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Generate text using a Gemini model.

        Args:
            model: Model name, with or without the ``models/`` prefix
            prompt: The input prompt
            parameters: Optional generation config:
                - temperature: Sampling temperature
                - max_tokens: Maximum output tokens

        Returns:
            Concatenated text of the first candidate (may be empty)
        """
        model = normalize_model_name(model)
        payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}

        generation_config = self._normalize_parameters(parameters)
        if generation_config:
            payload["generationConfig"] = generation_config

        logger.debug(f"Making Gemini request with model: {model}")

        data = await self._post_json(
            f"{self.base_url}/v1beta/{model}:generateContent",
            payload,
            self._headers(),
        )
        return self._extract_text(data)

    async def check_health(self) -> ProviderHealthStatus:
        """Check API access by listing models."""
        return await self._check_endpoint(f"{self.base_url}/v1beta/models", self._headers())

    @staticmethod
    def _normalize_parameters(
        parameters: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """Map common parameter names to Gemini generationConfig fields."""
        if not parameters:
            return {}

        normalized = {}
        if "temperature" in parameters:
            normalized["temperature"] = parameters["temperature"]
        if "max_tokens" in parameters:
            normalized["maxOutputTokens"] = parameters["max_tokens"]
        return normalized

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        candidates: List[Dict[str, Any]] = data.get("candidates") or []
        if not candidates:
            return ""

        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)
