"""
Domain records produced by the content source.

Questions are immutable once produced; plan days carry a mutable status
owned by the plan progression tracker.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Question:
    """A single multiple-choice question."""

    text: str
    options: tuple[str, ...]
    correct_index: int
    explanation: str
    sub_topic: str
    is_fallback: bool = False

    def is_correct(self, option_index: int) -> bool:
        """Check a chosen option against the answer key."""
        if not 0 <= option_index < len(self.options):
            raise ValueError(
                f"option index {option_index} out of range for {len(self.options)} options"
            )
        return option_index == self.correct_index

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire format."""
        return {
            "text": self.text,
            "options": list(self.options),
            "correctIndex": self.correct_index,
            "explanation": self.explanation,
            "topicSubCategory": self.sub_topic,
        }


class DayStatus(str, Enum):
    """Progression status of a plan day."""

    LOCKED = "locked"
    CURRENT = "current"
    COMPLETED = "completed"


@dataclass
class PlanDay:
    """One day of a multi-day study plan."""

    day: int
    topic: str
    focus: str
    activities: list[str] = field(default_factory=list)
    status: DayStatus = DayStatus.LOCKED

    @property
    def is_startable(self) -> bool:
        return self.status != DayStatus.LOCKED


@dataclass(frozen=True)
class StudyMaterial:
    """Markdown study material for one plan day."""

    markdown: str
    is_fallback: bool = False
