"""
Step chain execution for TextFlow.

This package contains the step catalog, the local text algorithms, the
provider prompts and the executor that threads each step's output into the
next step.
"""

from .errors import PipelineError, UnknownStepError
from .executor import PipelineExecutor
from .models import PipelineResult, StepOutput, StepState
from .steps import STEP_NAMES, StepType
from .validation import RunRequest, validate_run_request

__all__ = [
    "PipelineExecutor",
    "PipelineResult",
    "StepOutput",
    "StepState",
    "StepType",
    "STEP_NAMES",
    "PipelineError",
    "UnknownStepError",
    "RunRequest",
    "validate_run_request",
]
