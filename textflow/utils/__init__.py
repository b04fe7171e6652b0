"""
Utilities package for TextFlow.

This package contains utility modules used throughout the application,
currently the shared logging setup.
"""

from .logging import LogContext, get_logger

__all__ = [
    "LogContext",
    "get_logger",
]
