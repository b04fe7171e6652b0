"""
Configuration management for the TextFlow pipeline.

This module loads the provider selection, candidate models, time budgets and
local fallback switch from environment variables (with ``.env`` support) or
from a YAML file layered over the environment.
"""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from dotenv import load_dotenv

from textflow.utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_PROVIDERS = ("gemini", "openrouter")

DEFAULT_PROVIDER = "gemini"
DEFAULT_MODEL = "models/gemini-2.0-flash"
DEFAULT_MAX_CANDIDATES = 2
DEFAULT_PER_REQUEST_TIMEOUT_MS = 10000
DEFAULT_TOTAL_TIMEOUT_MS = 45000

API_KEY_ENV_VARS = {
    "gemini": "GEMINI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}


class EnvironmentConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(*names: str, default: int) -> int:
    for name in names:
        value = os.getenv(name)
        if value is not None and value.strip():
            try:
                return int(value)
            except ValueError as e:
                raise EnvironmentConfigError(
                    f"Invalid integer for {name}: {value!r}"
                ) from e
    return default


def _split_models(value: Union[str, List[str], Tuple[str, ...], None]) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(item.strip() for item in value if item and item.strip())


@dataclass(frozen=True)
class PipelineConfig:
    """
    Configuration for one pipeline run.

    Instances are immutable; use ``with_overrides`` to derive a variant.
    """

    provider: str = DEFAULT_PROVIDER
    primary_model: str = DEFAULT_MODEL
    fallback_models: Tuple[str, ...] = field(default_factory=tuple)
    max_candidates: int = DEFAULT_MAX_CANDIDATES
    per_request_timeout_ms: int = DEFAULT_PER_REQUEST_TIMEOUT_MS
    total_timeout_ms: int = DEFAULT_TOTAL_TIMEOUT_MS
    allow_local_fallback: bool = False
    api_key: Optional[str] = field(default=None, repr=False)
    base_url: Optional[str] = None

    @classmethod
    def from_environment(cls) -> "PipelineConfig":
        """Create configuration from environment variables."""
        load_dotenv()

        provider = (os.getenv("TEXTFLOW_PROVIDER") or DEFAULT_PROVIDER).strip().lower()
        api_key = os.getenv(API_KEY_ENV_VARS.get(provider, ""), "").strip() or None

        return cls(
            provider=provider,
            primary_model=(
                os.getenv("TEXTFLOW_MODEL") or os.getenv("GEMINI_MODEL") or DEFAULT_MODEL
            ).strip(),
            fallback_models=_split_models(os.getenv("TEXTFLOW_FALLBACK_MODELS")),
            max_candidates=_env_int(
                "TEXTFLOW_MAX_CANDIDATES", default=DEFAULT_MAX_CANDIDATES
            ),
            per_request_timeout_ms=_env_int(
                "TEXTFLOW_REQUEST_TIMEOUT_MS",
                "GEMINI_TIMEOUT_MS",
                default=DEFAULT_PER_REQUEST_TIMEOUT_MS,
            ),
            total_timeout_ms=_env_int(
                "TEXTFLOW_TOTAL_TIMEOUT_MS", default=DEFAULT_TOTAL_TIMEOUT_MS
            ),
            allow_local_fallback=_env_bool("ALLOW_LOCAL_AI_FALLBACK"),
            api_key=api_key,
            base_url=os.getenv("TEXTFLOW_BASE_URL") or None,
        )

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        """Return a copy with the given fields replaced; None values are ignored."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if "fallback_models" in changes:
            changes["fallback_models"] = _split_models(changes["fallback_models"])
        return replace(self, **changes)

    def validate(self) -> List[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if self.provider not in SUPPORTED_PROVIDERS:
            issues.append(f"Unsupported provider: {self.provider}")

        if not self.primary_model.strip():
            issues.append("No primary model configured")

        if self.max_candidates < 1:
            issues.append(f"Invalid max candidates: {self.max_candidates}")

        if self.per_request_timeout_ms <= 0:
            issues.append(
                f"Invalid per-request timeout: {self.per_request_timeout_ms}ms"
            )

        if self.total_timeout_ms <= 0:
            issues.append(f"Invalid total timeout: {self.total_timeout_ms}ms")
        elif self.per_request_timeout_ms > self.total_timeout_ms:
            issues.append(
                f"Per-request timeout ({self.per_request_timeout_ms}ms) exceeds "
                f"total timeout ({self.total_timeout_ms}ms)"
            )

        return issues


def load_config(config_path: Optional[Union[str, Path]] = None) -> PipelineConfig:
    """
    Load configuration from a YAML file layered over the environment.

    Keys in the file use the PipelineConfig field names. A missing file
    falls back to the environment configuration.

    Args:
        config_path: Path to the YAML file, or None for environment only

    Returns:
        PipelineConfig

    Raises:
        EnvironmentConfigError: If an integer setting in the environment is invalid
        ValueError: If the file is not a YAML mapping or has unknown keys
    """
    config = PipelineConfig.from_environment()
    if config_path is None:
        return config

    path = Path(config_path)
    if not path.exists():
        logger.warning(f"Config file not found: {path}, using environment defaults")
        return config

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    known = {f.name for f in fields(PipelineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {', '.join(unknown)}")

    overrides: Dict[str, Any] = dict(data)
    if "provider" in overrides:
        overrides["provider"] = str(overrides["provider"]).strip().lower()

    config = config.with_overrides(**overrides)

    # A provider switched in the file takes its key from that provider's env var
    if "provider" in data and "api_key" not in data:
        env_key = os.getenv(API_KEY_ENV_VARS.get(config.provider, ""), "").strip()
        config = replace(config, api_key=env_key or None)

    logger.info(f"Loaded pipeline configuration from {path}")
    return config
