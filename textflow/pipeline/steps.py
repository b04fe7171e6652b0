"""
Step catalog.

The fixed set of step types a chain can be built from, with their display
names.
"""

from enum import Enum
from typing import Dict


class StepType(Enum):
    """Available step types for a chain."""

    CLEAN_TEXT = "clean_text"
    SUMMARIZE = "summarize"
    EXTRACT_KEY_POINTS = "extract_key_points"
    TAG_CATEGORY = "tag_category"
    SENTIMENT_ANALYSIS = "sentiment_analysis"
    REWRITE_PROFESSIONAL = "rewrite_professional"
    GENERATE_TITLE = "generate_title"

    @classmethod
    def parse(cls, value) -> "StepType":
        """
        Parse a step identifier.

        Accepts a StepType, its snake_case value, or the kebab-case spelling
        (``clean-text``).

        Raises:
            ValueError: If the identifier is not a known step
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unknown step type: {value!r}")
        return cls(value.strip().replace("-", "_"))

    @property
    def display_name(self) -> str:
        return STEP_NAMES[self]

    @property
    def is_local(self) -> bool:
        """True for steps that never call a provider."""
        return self is StepType.CLEAN_TEXT


STEP_NAMES: Dict[StepType, str] = {
    StepType.CLEAN_TEXT: "Clean Text",
    StepType.SUMMARIZE: "Summarize",
    StepType.EXTRACT_KEY_POINTS: "Extract Key Points",
    StepType.TAG_CATEGORY: "Tag Category",
    StepType.SENTIMENT_ANALYSIS: "Sentiment Analysis",
    StepType.REWRITE_PROFESSIONAL: "Rewrite Professional",
    StepType.GENERATE_TITLE: "Generate Title",
}
