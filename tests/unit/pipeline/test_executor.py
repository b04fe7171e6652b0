"""Tests for the pipeline executor."""

import asyncio
import functools
from dataclasses import replace
from unittest.mock import patch

import pytest

from tests.conftest import FakeClock, FakeProvider, sleeper
from textflow.llm.exceptions import (
    AuthFailureError,
    FallbackTimeoutError,
    NoAvailableProviderError,
    ProviderRequestError,
    QuotaExceededError,
)
from textflow.llm.fallback_chain import FallbackChain
from textflow.pipeline.errors import PipelineError, UnknownStepError
from textflow.pipeline.executor import (
    PipelineExecutor,
    normalize_sentiment,
    strip_title_quotes,
)
from textflow.pipeline.heuristics import LOCAL_HEURISTICS
from textflow.pipeline.prompts import PROMPT_TEMPLATES, build_prompt
from textflow.pipeline.steps import StepType


def echo_last_line(prompt):
    """Behaviour that answers with the text the prompt was built around."""
    return prompt.rsplit("\n", 1)[-1].upper()


class TestHelpers:
    """Test output post-processing."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Positive", "Positive"),
            ("The sentiment is NEGATIVE.", "Negative"),
            ("positive and negative", "Positive"),
            ("Mixed", "Neutral"),
            ("", "Neutral"),
        ],
    )
    def test_normalize_sentiment(self, text, expected):
        """Test reduction to the three labels."""
        assert normalize_sentiment(text) == expected

    @pytest.mark.parametrize(
        "text,expected",
        [
            ('"Quarterly Results"', "Quarterly Results"),
            ("'Launch Plan'", "Launch Plan"),
            ("“Smart Quotes”", "Smart Quotes"),
            ("  Plain Title  ", "Plain Title"),
        ],
    )
    def test_strip_title_quotes(self, text, expected):
        """Test removal of surrounding quotes."""
        assert strip_title_quotes(text) == expected


class TestPromptTemplates:
    """Test prompt construction."""

    def test_every_provider_step_has_a_template(self):
        """Test template coverage."""
        assert set(PROMPT_TEMPLATES) == {step for step in StepType if not step.is_local}

    def test_build_prompt_embeds_text(self):
        """Test that the input text appears in the prompt."""
        prompt = build_prompt(StepType.SUMMARIZE, "Body {text} braces")
        assert "Body {text} braces" in prompt


class TestPipelineExecutor:
    """Test step chaining and failure handling."""

    @pytest.mark.asyncio
    async def test_outputs_in_order(self, pipeline_config):
        """Test one output per step, in request order."""
        provider = FakeProvider({"primary": "Summary text"})
        executor = PipelineExecutor(provider, pipeline_config)

        result = await executor.execute(["clean_text", "summarize"], "  Some   input. ")

        assert [output.step_name for output in result.step_outputs] == [
            StepType.CLEAN_TEXT,
            StepType.SUMMARIZE,
        ]
        assert result.step_outputs[0].output == "Some input."
        assert result.final_output == "Summary text"
        assert result.execution_time_ms >= 0

    @pytest.mark.asyncio
    async def test_each_step_receives_previous_output(self, pipeline_config):
        """Test that a step's prompt is built from the preceding output."""
        prompts = []

        def record(prompt):
            prompts.append(prompt)
            return f"output {len(prompts)}"

        provider = FakeProvider({"primary": record})
        executor = PipelineExecutor(provider, pipeline_config)

        result = await executor.execute(
            ["clean_text", "summarize", "rewrite_professional"], "raw   text"
        )

        assert prompts[0] == build_prompt(StepType.SUMMARIZE, "raw text")
        assert prompts[1] == build_prompt(StepType.REWRITE_PROFESSIONAL, "output 1")
        assert result.final_output == "output 2"

    @pytest.mark.asyncio
    async def test_clean_then_sentiment_with_local_fallback(self, pipeline_config):
        """Test local degradation when no candidate model exists."""
        config = replace(pipeline_config, allow_local_fallback=True)
        provider = FakeProvider()
        executor = PipelineExecutor(provider, config)

        result = await executor.execute(
            ["clean_text", "sentiment_analysis"], "  This   is bad.  \n\n"
        )

        assert [output.output for output in result.step_outputs] == [
            "This is bad.",
            "Negative",
        ]
        assert provider.models_called == ["primary", "secondary"]

    @pytest.mark.asyncio
    async def test_local_fallback_positive(self, pipeline_config):
        """Test the local sentiment heuristic through the executor."""
        config = replace(pipeline_config, allow_local_fallback=True)
        provider = FakeProvider(
            {
                "primary": ProviderRequestError("overloaded", status_code=503),
                "secondary": ProviderRequestError("overloaded", status_code=503),
            }
        )
        executor = PipelineExecutor(provider, config)

        result = await executor.execute(
            ["clean_text", "sentiment_analysis"], "This is a great improvement"
        )
        assert result.final_output == "Positive"

    @pytest.mark.asyncio
    async def test_no_local_fallback_when_disabled(self, pipeline_config):
        """Test that exhaustion aborts and no heuristic runs when disabled."""
        provider = FakeProvider()
        executor = PipelineExecutor(provider, pipeline_config)

        with patch.dict(
            LOCAL_HEURISTICS,
            {StepType.SUMMARIZE: lambda text: pytest.fail("heuristic called")},
        ):
            with pytest.raises(PipelineError) as exc_info:
                await executor.execute(["clean_text", "summarize"], "Text.")

        error = exc_info.value
        assert error.step_index == 1
        assert error.step_name == "summarize"
        assert error.kind == "no_available_provider"
        assert error.message.startswith("Failed to process step: summarize.")
        assert isinstance(error.__cause__, NoAvailableProviderError)

    @pytest.mark.asyncio
    async def test_auth_failure_never_degrades(self, pipeline_config):
        """Test that auth failures abort even with local fallback enabled."""
        config = replace(pipeline_config, allow_local_fallback=True)
        provider = FakeProvider(
            {"primary": ProviderRequestError("API key not valid", status_code=400)}
        )
        executor = PipelineExecutor(provider, config)

        with pytest.raises(PipelineError) as exc_info:
            await executor.execute(["clean_text", "tag_category"], "Text.")

        assert exc_info.value.kind == "auth_failure"
        assert isinstance(exc_info.value.__cause__, AuthFailureError)
        assert provider.models_called == ["primary"]

    @pytest.mark.asyncio
    async def test_quota_error_carries_retry_hint(self, pipeline_config):
        """Test that the retry hint reaches the pipeline error."""
        provider = FakeProvider(
            {
                "primary": ProviderRequestError(
                    "Quota exceeded. Retry after 12 seconds.", status_code=429
                ),
                "secondary": ProviderRequestError("Too many requests", status_code=429),
            }
        )
        executor = PipelineExecutor(provider, pipeline_config)

        with pytest.raises(PipelineError) as exc_info:
            await executor.execute(["summarize", "generate_title"], "Text.")

        error = exc_info.value
        assert error.step_index == 0
        assert error.kind == "quota_exceeded"
        assert error.retry_after_seconds == 12
        assert isinstance(error.__cause__, QuotaExceededError)
        assert error.to_dict()["retryAfterSeconds"] == 12

    @pytest.mark.asyncio
    async def test_quota_degrades_when_enabled(self, pipeline_config):
        """Test that quota exhaustion is recoverable locally."""
        config = replace(pipeline_config, allow_local_fallback=True)
        provider = FakeProvider(
            {"primary": ProviderRequestError("Resource exhausted", status_code=429)}
        )
        executor = PipelineExecutor(provider, config)

        result = await executor.execute(["clean_text", "generate_title"], "hello there world")
        assert result.final_output == "Hello there world"

    @pytest.mark.asyncio
    async def test_total_timeout_aborts_even_with_fallback(self, pipeline_config):
        """Test that running out of time aborts instead of degrading."""
        config = replace(pipeline_config, allow_local_fallback=True, total_timeout_ms=1000)
        provider = FakeProvider(
            {"primary": ProviderRequestError("overloaded", status_code=503), "secondary": "never"}
        )
        executor = PipelineExecutor(provider, config)
        chain_with_clock = functools.partial(FallbackChain, clock=FakeClock(step=0.6))

        with patch("textflow.pipeline.executor.FallbackChain", chain_with_clock):
            with pytest.raises(PipelineError) as exc_info:
                await executor.execute(["clean_text", "summarize"], "Text.")

        assert exc_info.value.kind == "timeout"
        assert isinstance(exc_info.value.__cause__, FallbackTimeoutError)
        assert provider.models_called == ["primary"]

    @pytest.mark.asyncio
    async def test_budget_spent_on_final_candidate_aborts(self, pipeline_config):
        """Test that a budget running out mid-request aborts instead of degrading."""
        config = replace(
            pipeline_config,
            allow_local_fallback=True,
            per_request_timeout_ms=200,
            total_timeout_ms=300,
        )
        provider = FakeProvider({"primary": sleeper(1.0), "secondary": sleeper(1.0)})
        executor = PipelineExecutor(provider, config)

        with patch.dict(
            LOCAL_HEURISTICS,
            {StepType.SENTIMENT_ANALYSIS: lambda text: pytest.fail("heuristic called")},
        ):
            with pytest.raises(PipelineError) as exc_info:
                await executor.execute(["clean_text", "sentiment_analysis"], "This is bad.")

        assert exc_info.value.kind == "timeout"
        assert exc_info.value.step_index == 1
        assert isinstance(exc_info.value.__cause__, FallbackTimeoutError)
        assert provider.models_called == ["primary", "secondary"]

    @pytest.mark.asyncio
    async def test_unknown_step_makes_no_provider_calls(self, pipeline_config):
        """Test that every step is validated before anything runs."""
        provider = FakeProvider({"primary": "ok"})
        executor = PipelineExecutor(provider, pipeline_config)

        with pytest.raises(UnknownStepError) as exc_info:
            await executor.execute(["summarize", "translate"], "Text.")

        assert exc_info.value.step_index == 1
        assert exc_info.value.step_name == "translate"
        assert exc_info.value.kind == "unknown_step"
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_sentiment_and_title_are_normalized(self, pipeline_config):
        """Test post-processing of provider output."""
        provider = FakeProvider(
            {"primary": ["The overall tone is negative.", '"Weekly Report"']}
        )
        executor = PipelineExecutor(provider, pipeline_config)

        result = await executor.execute(["sentiment_analysis", "generate_title"], "Text.")

        assert [output.output for output in result.step_outputs] == [
            "Negative",
            "Weekly Report",
        ]

    @pytest.mark.asyncio
    async def test_per_run_config_override(self, pipeline_config):
        """Test that a config passed to execute wins over the default."""
        provider = FakeProvider({"other": "from other"})
        executor = PipelineExecutor(provider, pipeline_config)
        override = replace(pipeline_config, primary_model="other", fallback_models=())

        result = await executor.execute(["clean_text", "summarize"], "Text.", config=override)

        assert result.final_output == "from other"
        assert provider.models_called == ["other"]

    @pytest.mark.asyncio
    async def test_concurrent_runs_are_isolated(self, pipeline_config):
        """Test that concurrent runs on one executor do not share state."""

        async def slow_echo(prompt):
            await asyncio.sleep(0.01)
            return echo_last_line(prompt)

        provider = FakeProvider({"primary": slow_echo})
        executor = PipelineExecutor(provider, pipeline_config)

        results = await asyncio.gather(
            *(
                executor.execute(["clean_text", "rewrite_professional"], f"run {i}")
                for i in range(5)
            )
        )

        assert [result.final_output for result in results] == [
            f"RUN {i}" for i in range(5)
        ]
