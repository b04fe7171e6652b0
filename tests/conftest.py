"""Shared fixtures for TextFlow tests."""

import asyncio
import inspect
from typing import Any, Dict, List, Optional, Tuple

import pytest

from textflow.config import PipelineConfig
from textflow.llm.exceptions import ProviderRequestError
from textflow.llm.provider import ProviderClient, ProviderHealthStatus


class FakeProvider(ProviderClient):
    """
    Provider whose behaviour is scripted per model.

    A behaviour is one of:
        - str: returned as the generated text
        - BaseException: raised
        - list: one item consumed per call, each item itself a behaviour
        - callable: called with the prompt (may be async); its result is
          treated as a behaviour
    Models with no behaviour raise a 404-style "not found" error.
    """

    def __init__(self, behaviours: Optional[Dict[str, Any]] = None, name: str = "fake"):
        super().__init__(name, api_key="test-key", base_url="http://fake.local")
        self.behaviours = dict(behaviours or {})
        self.calls: List[Tuple[str, str]] = []

    async def generate(self, model, prompt, parameters=None):
        self.calls.append((model, prompt))
        return await self._resolve(self.behaviours.get(model, _MISSING), model, prompt)

    async def _resolve(self, behaviour, model, prompt):
        if behaviour is _MISSING:
            raise ProviderRequestError(
                f"models/{model} is not found", provider=self.name, status_code=404
            )
        if isinstance(behaviour, list):
            return await self._resolve(behaviour.pop(0), model, prompt)
        if isinstance(behaviour, BaseException):
            raise behaviour
        if callable(behaviour):
            result = behaviour(prompt)
            if inspect.isawaitable(result):
                result = await result
            return await self._resolve(result, model, prompt)
        return behaviour

    async def check_health(self):
        return ProviderHealthStatus(
            is_healthy=True, provider=self.name, last_check=0, response_time=0.001
        )

    @property
    def models_called(self) -> List[str]:
        return [model for model, _ in self.calls]


_MISSING = object()


class FakeClock:
    """Clock that advances a fixed step on every read."""

    def __init__(self, step: float):
        self.now = 0.0
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


def sleeper(seconds: float, text: str = "late"):
    """Behaviour that blocks for ``seconds`` before answering."""

    async def _sleep(prompt):
        await asyncio.sleep(seconds)
        return text

    return _sleep


@pytest.fixture
def pipeline_config():
    """Two-candidate configuration with local fallback disabled."""
    return PipelineConfig(
        provider="gemini",
        primary_model="primary",
        fallback_models=("secondary",),
        max_candidates=2,
        per_request_timeout_ms=1000,
        total_timeout_ms=5000,
        allow_local_fallback=False,
        api_key="test-key",
    )


@pytest.fixture
def fake_provider():
    return FakeProvider()
