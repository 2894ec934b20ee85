"""
Adaptive session layer.

Components:
- context: the session context value object and its enums
- prefetch: lookahead buffer with single-flight refills and blocked-state recovery
- state_machine: session modes and the per-question lifecycle
- plan: multi-day plan progression
- streak: daily streak persistence
"""

from .context import (
    AnswerRecord,
    LoadingMode,
    MaterialPhase,
    QuizPhase,
    SessionContext,
    SessionMode,
)
from .plan import PlanProgressionTracker
from .prefetch import PrefetchQueueManager
from .state_machine import SessionStateMachine, SessionSummary
from .streak import Streak, StreakStore

__all__ = [
    "AnswerRecord",
    "LoadingMode",
    "MaterialPhase",
    "QuizPhase",
    "SessionContext",
    "SessionMode",
    "PlanProgressionTracker",
    "PrefetchQueueManager",
    "SessionStateMachine",
    "SessionSummary",
    "Streak",
    "StreakStore",
]
