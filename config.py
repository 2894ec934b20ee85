"""
Configuration settings for the smartpath adaptive tutor.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Content Source
    # ========================================
    content_backend: Literal["gemini", "http"] = Field(
        default="gemini",
        description="Which content source generates questions, plans and material",
    )
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Gemini API key",
    )
    ai_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used for generation",
    )
    content_api_url: str | None = Field(
        default=None,
        description="Base URL of a remote content service (http backend)",
    )
    content_timeout_seconds: float = Field(
        default=60.0,
        description="Request timeout for the http backend",
    )

    # ========================================
    # Adaptive Session
    # ========================================
    baseline_level: int = Field(
        default=50,
        ge=0,
        le=100,
        description="Difficulty level every new topic session starts at",
    )
    prefetch_initial_count: int = Field(
        default=5,
        gt=0,
        description="Questions requested when a quiz starts",
    )
    prefetch_batch_size: int = Field(
        default=5,
        gt=0,
        description="Questions requested by each background refill",
    )
    prefetch_refill_threshold: int = Field(
        default=4,
        ge=0,
        description="Refill when the lookahead buffer holds this many or fewer",
    )
    history_tail_size: int = Field(
        default=5,
        gt=0,
        description="Recent question texts sent back to discourage repeats",
    )

    # ========================================
    # Study Plan
    # ========================================
    plan_length_days: int = Field(
        default=5,
        gt=0,
        description="Days in a generated study plan",
    )
    day_completion_min_answers: int = Field(
        default=3,
        ge=0,
        description="Answered questions needed before a plan day can be completed",
    )
    explain_max_chars: int = Field(
        default=200,
        gt=0,
        description="Longest text selection sent for explanation",
    )

    # ========================================
    # Local State
    # ========================================
    streak_file: Path = Field(
        default=Path.home() / ".smartpath" / "streak.json",
        description="Where the daily streak counter is stored",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level for the file sink",
    )
    log_file: str | None = Field(
        default="logs/smartpath.log",
        description="Rotating log file (None disables file logging)",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def has_ai_configured(self) -> bool:
        """Check if the selected content backend has what it needs."""
        if self.content_backend == "http":
            return bool(self.content_api_url)
        return bool(self.gemini_api_key)

    def get_prefetch_config(self) -> dict[str, Any]:
        """Get prefetch queue configuration as a dictionary."""
        return {
            "initial_count": self.prefetch_initial_count,
            "batch_size": self.prefetch_batch_size,
            "refill_threshold": self.prefetch_refill_threshold,
            "history_tail_size": self.history_tail_size,
        }

    def get_session_config(self) -> dict[str, Any]:
        """Get session state machine configuration as a dictionary."""
        return {
            "baseline_level": self.baseline_level,
            "plan_length_days": self.plan_length_days,
            "day_completion_min_answers": self.day_completion_min_answers,
            "explain_max_chars": self.explain_max_chars,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
