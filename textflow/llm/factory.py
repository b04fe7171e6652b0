"""
Provider factory.

Selects and constructs the ProviderClient backend named by the pipeline
configuration.
"""

import re
from typing import Optional

import httpx

from textflow.config import API_KEY_ENV_VARS, PipelineConfig
from textflow.utils.logging import get_logger

from .exceptions import ProviderConfigurationError
from .gemini_provider import GeminiProvider
from .openrouter_provider import OpenRouterProvider
from .provider import ProviderClient

logger = get_logger(__name__)

PROVIDER_CLASSES = {
    "gemini": GeminiProvider,
    "openrouter": OpenRouterProvider,
}

_OPENROUTER_KEY_PATTERN = re.compile(r"^sk-or-v1", re.IGNORECASE)


def create_provider(
    config: PipelineConfig, client: Optional[httpx.AsyncClient] = None
) -> ProviderClient:
    """
    Create the provider backend selected by ``config.provider``.

    Args:
        config: Pipeline configuration
        client: Optional preconfigured HTTP client

    Returns:
        A ProviderClient instance

    Raises:
        ProviderConfigurationError: If the provider is unknown or its key is
            missing or belongs to another provider
    """
    provider_class = PROVIDER_CLASSES.get(config.provider)
    if provider_class is None:
        raise ProviderConfigurationError(
            f"Unknown provider '{config.provider}'. "
            f"Expected one of: {', '.join(sorted(PROVIDER_CLASSES))}",
            provider=config.provider,
        )

    api_key = (config.api_key or "").strip()
    if not api_key:
        raise ProviderConfigurationError(
            f"Please define {API_KEY_ENV_VARS[config.provider]} in your environment",
            provider=config.provider,
        )

    if config.provider == "gemini" and _OPENROUTER_KEY_PATTERN.match(api_key):
        raise ProviderConfigurationError(
            "GEMINI_API_KEY appears to be an OpenRouter key (sk-or-v1...). "
            "Use your Google Gemini API key instead.",
            provider=config.provider,
        )

    logger.info(f"Using {config.provider} provider")
    return provider_class(api_key=api_key, base_url=config.base_url, client=client)
