"""
Pipeline executor.

Runs an ordered list of steps over input text. Each step's output is the next
step's input. ``clean_text`` runs locally; every other step goes through the
provider fallback chain and, when enabled, degrades to its local heuristic on
recoverable provider failures. A run either returns a complete
PipelineResult or raises a single PipelineError naming the failing step.
"""

import time
from typing import List, Optional, Sequence

from textflow.config import PipelineConfig
from textflow.llm.exceptions import LLMError, QuotaExceededError
from textflow.llm.fallback_chain import FallbackChain
from textflow.llm.provider import ProviderClient
from textflow.utils.logging import LogContext, get_logger

from .errors import PipelineError, UnknownStepError
from .heuristics import LOCAL_HEURISTICS, clean_text
from .models import PipelineResult, StepOutput, StepState
from .prompts import build_prompt
from .steps import StepType

logger = get_logger(__name__)

SENTIMENT_LABELS = ("Positive", "Negative")
TITLE_QUOTE_CHARS = "\"'“”‘’"


def normalize_sentiment(text: str) -> str:
    """Reduce provider or heuristic output to Positive, Negative or Neutral."""
    lowered = text.lower()
    for label in SENTIMENT_LABELS:
        if label.lower() in lowered:
            return label
    return "Neutral"


def strip_title_quotes(text: str) -> str:
    return text.strip().strip(TITLE_QUOTE_CHARS).strip()


def parse_steps(steps: Sequence) -> List[StepType]:
    """
    Parse every step identifier before anything runs.

    Raises:
        UnknownStepError: For the first identifier not in the catalog
    """
    parsed = []
    for index, step in enumerate(steps):
        try:
            parsed.append(StepType.parse(step))
        except ValueError:
            raise UnknownStepError(index, str(step)) from None
    return parsed


class PipelineExecutor:
    """
    Executes step chains against an injected provider.

    The executor keeps no per-run state, so one instance may serve
    concurrent runs.
    """

    def __init__(self, provider: ProviderClient, config: Optional[PipelineConfig] = None):
        """
        Initialize the executor.

        Args:
            provider: Backend used by AI-backed steps
            config: Default configuration for runs (environment when None)
        """
        self.provider = provider
        self.config = config or PipelineConfig.from_environment()

    async def execute(
        self,
        steps: Sequence,
        input_text: str,
        config: Optional[PipelineConfig] = None,
    ) -> PipelineResult:
        """
        Run the steps in order over the input text.

        Args:
            steps: Ordered step identifiers (StepType or string)
            input_text: Text fed to the first step
            config: Configuration for this run only

        Returns:
            PipelineResult with one StepOutput per step

        Raises:
            UnknownStepError: If any step identifier is unknown
            PipelineError: If a step fails unrecoverably
        """
        config = config or self.config
        step_types = parse_steps(steps)
        chain = FallbackChain(self.provider, config)

        start_time = time.monotonic()
        step_outputs: List[StepOutput] = []
        current_text = input_text

        for index, step in enumerate(step_types):
            with LogContext(logger, step_index=index, step_name=step.value):
                output = await self._run_step(index, step, current_text, chain, config)

            step_outputs.append(StepOutput(step_name=step, output=output))
            current_text = output

        execution_time_ms = int(round((time.monotonic() - start_time) * 1000))
        logger.info(
            f"Pipeline completed {len(step_outputs)} steps in {execution_time_ms}ms"
        )

        return PipelineResult(
            step_outputs=tuple(step_outputs), execution_time_ms=execution_time_ms
        )

    async def _run_step(
        self,
        index: int,
        step: StepType,
        text: str,
        chain: FallbackChain,
        config: PipelineConfig,
    ) -> str:
        logger.debug(f"Step {index} ({step.value}): {StepState.RUNNING.value}")

        if step.is_local:
            output = clean_text(text)
        else:
            output = await self._run_ai_step(index, step, text, chain, config)

        if step is StepType.SENTIMENT_ANALYSIS:
            output = normalize_sentiment(output)
        elif step is StepType.GENERATE_TITLE:
            output = strip_title_quotes(output)

        logger.debug(f"Step {index} ({step.value}): {StepState.SUCCEEDED.value}")
        return output

    async def _run_ai_step(
        self,
        index: int,
        step: StepType,
        text: str,
        chain: FallbackChain,
        config: PipelineConfig,
    ) -> str:
        try:
            return await chain.generate(build_prompt(step, text))
        except LLMError as e:
            if e.recoverable:
                logger.debug(f"Step {index} ({step.value}): {StepState.RECOVERABLE.value}")
                if config.allow_local_fallback:
                    logger.warning(
                        f"Falling back to local processing for step: {step.value} ({e.message})"
                    )
                    logger.debug(
                        f"Step {index} ({step.value}): {StepState.LOCAL_FALLBACK.value}"
                    )
                    return LOCAL_HEURISTICS[step](text)

            logger.error(
                f"Step {index} ({step.value}): {StepState.ABORTED.value}: {e.message}"
            )
            raise PipelineError(
                f"Failed to process step: {step.value}. {e.message}",
                step_index=index,
                step_name=step.value,
                kind=e.kind or "provider_error",
                retry_after_seconds=(
                    e.retry_after_seconds if isinstance(e, QuotaExceededError) else None
                ),
            ) from e
