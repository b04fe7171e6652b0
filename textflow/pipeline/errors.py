"""
Pipeline-level errors.

A failed run surfaces as exactly one PipelineError that names the failing
step. The provider exception that caused it is chained as ``__cause__``.
"""

from typing import Optional


class PipelineError(Exception):
    """A pipeline run aborted at a specific step."""

    def __init__(
        self,
        message: str,
        step_index: int,
        step_name: str,
        kind: str,
        retry_after_seconds: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.step_index = step_index
        self.step_name = step_name
        self.kind = kind
        self.retry_after_seconds = retry_after_seconds

    def to_dict(self):
        data = {
            "error": self.message,
            "kind": self.kind,
            "stepIndex": self.step_index,
            "stepName": self.step_name,
        }
        if self.retry_after_seconds is not None:
            data["retryAfterSeconds"] = self.retry_after_seconds
        return data


class UnknownStepError(PipelineError):
    """A step identifier is not in the step catalog."""

    def __init__(self, step_index: int, step_name: str):
        super().__init__(
            f"Unknown step type at position {step_index}: {step_name}",
            step_index=step_index,
            step_name=step_name,
            kind="unknown_step",
        )
