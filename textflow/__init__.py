"""
TextFlow package for running short chains of text-transformation steps.

Steps run locally or through a generative text provider with multi-model
fallback and optional local heuristics.
"""

__version__ = "0.1.0"

from .config import PipelineConfig, load_config
from .pipeline import PipelineExecutor, PipelineResult, StepType

__all__ = [
    "PipelineConfig",
    "PipelineExecutor",
    "PipelineResult",
    "StepType",
    "load_config",
    "__version__",
]
