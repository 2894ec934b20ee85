"""
Custom exceptions for smartpath.

GenerationError is the only error the session layer handles; it is never
fatal and always ends in a fallback value.
"""
from __future__ import annotations


class SmartPathError(Exception):
    """Base exception for all smartpath errors."""


class GenerationError(SmartPathError):
    """Raised when the content source fails to produce a usable result."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        cause: BaseException | None = None,
    ):
        self.operation = operation
        self.cause = cause
        super().__init__(message)


class ConfigurationError(SmartPathError):
    """Raised when a content source cannot be built from the current settings."""
