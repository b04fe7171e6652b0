"""
Result models for pipeline runs.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from .steps import StepType


class StepState(Enum):
    """Dispatch states a step moves through during a run."""

    PENDING = "pending"
    RUNNING = "running"
    RECOVERABLE = "recoverable"
    LOCAL_FALLBACK = "local_fallback"
    SUCCEEDED = "succeeded"
    ABORTED = "aborted"


@dataclass(frozen=True)
class StepOutput:
    """Output of one completed step."""

    step_name: StepType
    output: str

    def to_dict(self) -> Dict[str, Any]:
        return {"stepName": self.step_name.value, "output": self.output}


@dataclass(frozen=True)
class PipelineResult:
    """Outputs of every step of a successful run, in execution order."""

    step_outputs: Tuple[StepOutput, ...]
    execution_time_ms: int

    def __post_init__(self):
        if self.execution_time_ms < 0:
            raise ValueError("Execution time cannot be negative")

    @property
    def final_output(self) -> str:
        return self.step_outputs[-1].output if self.step_outputs else ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in the shape the run history store expects."""
        return {
            "stepOutputs": [output.to_dict() for output in self.step_outputs],
            "executionTime": self.execution_time_ms,
        }
