"""
Run request validation.

Enforces the limits a caller must check before handing a chain to the
executor: 2 to 4 known steps and 1 to 5000 characters of input.
"""

from typing import List, Sequence

from pydantic import BaseModel, Field, ValidationError, field_validator

from .steps import StepType

MIN_STEPS = 2
MAX_STEPS = 4
MAX_INPUT_CHARS = 5000


class RunRequest(BaseModel):
    """A validated request to run a chain over some text."""

    steps: List[StepType] = Field(
        ..., min_length=MIN_STEPS, max_length=MAX_STEPS, description="Ordered step types"
    )
    input_text: str = Field(
        ..., min_length=1, max_length=MAX_INPUT_CHARS, description="Text to process"
    )

    @field_validator("steps", mode="before")
    @classmethod
    def parse_steps(cls, value):
        if not isinstance(value, (list, tuple)):
            return value
        parsed = []
        for step in value:
            try:
                parsed.append(StepType.parse(step))
            except ValueError:
                raise ValueError(f"Unknown step type: {step}")
        return parsed


def validate_run_request(steps: Sequence[str], input_text: str) -> RunRequest:
    """
    Validate a run request.

    Raises:
        pydantic.ValidationError: If the steps or input are out of bounds
    """
    return RunRequest(steps=list(steps), input_text=input_text)


def format_validation_error(error: ValidationError) -> str:
    """Render a ValidationError as one line per problem."""
    lines = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        lines.append(f"{location}: {item.get('msg')}")
    return "\n".join(lines)
