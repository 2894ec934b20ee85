"""
Session context: every counter and flag of one active study session.

The state machine owns exactly one SessionContext; the prefetch manager and
plan tracker mutate it through their own operations. Nothing here is module
state, so independent sessions (and tests) never share anything.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Deque

from smartpath.content.models import PlanDay, Question, StudyMaterial
from smartpath.core.difficulty import BASELINE_LEVEL


class SessionMode(str, Enum):
    """Coarse mode of the session."""

    DASHBOARD = "dashboard"
    MATERIAL_VIEW = "material_view"
    QUIZ = "quiz"


class LoadingMode(str, Enum):
    """Whether the UI must block, show a background indicator, or neither."""

    BLOCKED = "blocked"
    BACKGROUND = "background"
    IDLE = "idle"


class QuizPhase(str, Enum):
    """Per-question lifecycle inside quiz mode."""

    AWAITING_ANSWER = "awaiting_answer"
    FEEDBACK_SHOWN = "feedback_shown"


class MaterialPhase(str, Enum):
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class AnswerRecord:
    """One answered question. The answer log is append-only."""

    question: str
    chosen_index: int
    correct_index: int
    is_correct: bool
    timestamp: datetime
    difficulty_before: int
    difficulty_after: int


@dataclass
class SessionContext:
    """Mutable state of one session."""

    topic: str = ""
    level: int = BASELINE_LEVEL
    mode: SessionMode = SessionMode.DASHBOARD

    # Quiz
    current_question: Question | None = None
    phase: QuizPhase = QuizPhase.AWAITING_ANSWER
    selected_option: int | None = None
    last_answer_correct: bool | None = None
    history: list[AnswerRecord] = field(default_factory=list)

    # Prefetch
    queue: Deque[Question] = field(default_factory=deque)
    fetching: bool = False
    loading: LoadingMode = LoadingMode.IDLE
    epoch: int = 0
    consecutive_failures: int = 0

    # Plan / material
    plan: list[PlanDay] = field(default_factory=list)
    active_day: int | None = None
    material: StudyMaterial | None = None
    material_phase: MaterialPhase | None = None

    last_error: str | None = None

    @property
    def degraded(self) -> bool:
        """True while the most recent fetches have been failing."""
        return self.consecutive_failures > 0

    @property
    def material_context(self) -> str | None:
        """Material text that switches question generation to comprehension mode."""
        if self.material is None or self.material.is_fallback:
            return None
        return self.material.markdown

    def history_tail(self, size: int = 5) -> list[str]:
        """Texts of the last ``size`` answered questions."""
        if size <= 0:
            return []
        return [record.question for record in self.history[-size:]]

    def present(self, question: Question | None) -> None:
        """Make ``question`` the displayed question, ready for an answer."""
        self.current_question = question
        self.phase = QuizPhase.AWAITING_ANSWER
        self.selected_option = None
        self.last_answer_correct = None

    def clear_queue(self) -> None:
        """
        Drop buffered questions and release the fetch guard.

        Bumping the epoch marks any in-flight fetch as stale so its late
        batch is discarded instead of landing in the new session.
        """
        self.queue.clear()
        self.fetching = False
        self.loading = LoadingMode.IDLE
        self.epoch += 1
        self.consecutive_failures = 0
