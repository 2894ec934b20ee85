"""Core algorithms and errors shared across smartpath."""

from .difficulty import BASELINE_LEVEL, MAX_LEVEL, MIN_LEVEL, next_level
from .exceptions import ConfigurationError, GenerationError, SmartPathError

__all__ = [
    "BASELINE_LEVEL",
    "MAX_LEVEL",
    "MIN_LEVEL",
    "next_level",
    "SmartPathError",
    "GenerationError",
    "ConfigurationError",
]
