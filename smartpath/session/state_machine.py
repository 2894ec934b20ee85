"""
Session State Machine.

Coarse modes:

    DASHBOARD --start_quiz--> QUIZ
    DASHBOARD --start_day--> MATERIAL_VIEW(loading -> ready) --start_day_quiz--> QUIZ
    QUIZ --end_quiz / complete_day--> DASHBOARD

Inside QUIZ each question goes AWAITING_ANSWER -> FEEDBACK_SHOWN and back
on next_question(). Every answer updates the level and the answer log in one
synchronous step, then applies the refill policy with the new level.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from config import Settings
from smartpath.content.models import PlanDay, Question
from smartpath.content.source import FALLBACK_EXPLANATION, FALLBACK_MATERIAL, ContentSource
from smartpath.core.difficulty import BASELINE_LEVEL, next_level
from smartpath.core.exceptions import GenerationError
from smartpath.session.context import (
    AnswerRecord,
    LoadingMode,
    MaterialPhase,
    QuizPhase,
    SessionContext,
    SessionMode,
)
from smartpath.session.plan import DEFAULT_MIN_ANSWERS, PlanProgressionTracker
from smartpath.session.prefetch import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_HISTORY_TAIL,
    DEFAULT_REFILL_THRESHOLD,
    PrefetchQueueManager,
)

DEFAULT_INITIAL_COUNT = 5
DEFAULT_EXPLAIN_MAX_CHARS = 200


@dataclass
class SessionSummary:
    """Progress numbers for the current quiz."""

    topic: str
    answered: int
    correct: int
    level: int
    trajectory: list[int] = field(default_factory=list)

    @property
    def accuracy(self) -> float:
        if self.answered == 0:
            return 0.0
        return round(self.correct / self.answered * 100, 1)


class SessionStateMachine:
    """Drives one adaptive study session."""

    def __init__(
        self,
        source: ContentSource,
        context: SessionContext | None = None,
        baseline_level: int = BASELINE_LEVEL,
        initial_count: int = DEFAULT_INITIAL_COUNT,
        batch_size: int = DEFAULT_BATCH_SIZE,
        refill_threshold: int = DEFAULT_REFILL_THRESHOLD,
        history_tail_size: int = DEFAULT_HISTORY_TAIL,
        day_completion_min_answers: int = DEFAULT_MIN_ANSWERS,
        explain_max_chars: int = DEFAULT_EXPLAIN_MAX_CHARS,
    ):
        self.source = source
        self.baseline_level = baseline_level
        self.initial_count = initial_count
        self.history_tail_size = history_tail_size
        self.explain_max_chars = explain_max_chars
        self.context = context or SessionContext(level=baseline_level)
        self.prefetch = PrefetchQueueManager(
            self.context,
            source,
            batch_size=batch_size,
            refill_threshold=refill_threshold,
            history_tail_size=history_tail_size,
        )
        self.plan = PlanProgressionTracker(self.context, min_answers=day_completion_min_answers)

    @classmethod
    def from_settings(cls, source: ContentSource, settings: Settings) -> "SessionStateMachine":
        prefetch = settings.get_prefetch_config()
        return cls(
            source,
            baseline_level=settings.baseline_level,
            initial_count=prefetch["initial_count"],
            batch_size=prefetch["batch_size"],
            refill_threshold=prefetch["refill_threshold"],
            history_tail_size=prefetch["history_tail_size"],
            day_completion_min_answers=settings.day_completion_min_answers,
            explain_max_chars=settings.explain_max_chars,
        )

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def mode(self) -> SessionMode:
        return self.context.mode

    @property
    def loading(self) -> LoadingMode:
        return self.context.loading

    @property
    def level(self) -> int:
        return self.context.level

    @property
    def current_question(self) -> Question | None:
        return self.context.current_question

    @property
    def is_blocked(self) -> bool:
        return self.context.loading == LoadingMode.BLOCKED

    # =========================================================================
    # Quiz
    # =========================================================================

    async def start_quiz(self, topic: str) -> Question | None:
        """
        Start a standalone quiz on ``topic``.

        Resets the answer log and buffer, drops any plan-day material and
        restarts the level at the baseline, then blocks on the first batch.
        """
        topic = topic.strip()
        if not topic:
            raise ValueError("topic must not be empty")

        ctx = self.context
        if topic != ctx.topic:
            self.plan.clear()
        ctx.topic = topic
        ctx.level = self.baseline_level
        ctx.active_day = None
        ctx.material = None
        ctx.material_phase = None
        logger.info("Starting quiz on {!r} at level {}", topic, ctx.level)
        return await self._begin_quiz()

    async def start_day_quiz(self) -> Question | None:
        """Start the quiz for the active plan day, continuing the topic's level."""
        ctx = self.context
        if ctx.mode != SessionMode.MATERIAL_VIEW or ctx.material_phase != MaterialPhase.READY:
            raise RuntimeError("Day quiz can only start from ready study material")
        logger.info("Starting day {} quiz on {!r} at level {}", ctx.active_day, ctx.topic, ctx.level)
        return await self._begin_quiz()

    async def _begin_quiz(self) -> Question | None:
        ctx = self.context
        self.prefetch.reset()
        ctx.history = []
        ctx.last_error = None
        ctx.mode = SessionMode.QUIZ
        ctx.present(None)
        await self.prefetch.request_batch(
            ctx.topic,
            ctx.level,
            [],
            self.initial_count,
            blocking=True,
            material=ctx.material_context,
        )
        return ctx.current_question

    def submit_answer(self, option_index: int) -> AnswerRecord | None:
        """
        Answer the displayed question.

        Accepted once per question; a second submission while feedback is
        shown (or with no question displayed) is rejected and returns None.

        Raises:
            ValueError: If ``option_index`` is not one of the question's options
        """
        ctx = self.context
        question = ctx.current_question
        if ctx.mode != SessionMode.QUIZ or question is None:
            logger.debug("No question displayed, ignoring answer")
            return None
        if ctx.phase == QuizPhase.FEEDBACK_SHOWN:
            logger.debug("Answer already submitted for this question")
            return None

        is_correct = question.is_correct(option_index)
        before = ctx.level
        after = next_level(before, is_correct)
        record = AnswerRecord(
            question=question.text,
            chosen_index=option_index,
            correct_index=question.correct_index,
            is_correct=is_correct,
            timestamp=datetime.now(),
            difficulty_before=before,
            difficulty_after=after,
        )
        ctx.history.append(record)
        ctx.level = after
        ctx.phase = QuizPhase.FEEDBACK_SHOWN
        ctx.selected_option = option_index
        ctx.last_answer_correct = is_correct
        logger.debug("Answer {} ({}), level {} -> {}", option_index, is_correct, before, after)

        self.prefetch.maybe_refill(
            after,
            ctx.history_tail(self.history_tail_size),
            ctx.material_context,
        )
        return record

    async def next_question(self) -> Question | None:
        """
        Advance to the next question.

        Serves straight from the buffer when possible. Otherwise the session
        goes Blocked and issues a blocking fetch; if that fetch is dropped
        because a refill is already running, the refill's arrival surfaces
        the question through reconcile().
        """
        ctx = self.context
        if ctx.mode != SessionMode.QUIZ:
            raise RuntimeError("No quiz in progress")
        if ctx.current_question is not None and ctx.phase == QuizPhase.AWAITING_ANSWER:
            return ctx.current_question

        question = self.prefetch.take_next()
        if question is not None:
            ctx.present(question)
            return question

        ctx.present(None)
        ctx.loading = LoadingMode.BLOCKED
        logger.info("Buffer empty, waiting for questions")
        await self.prefetch.request_batch(
            ctx.topic,
            ctx.level,
            ctx.history_tail(self.history_tail_size),
            self.prefetch.batch_size,
            blocking=True,
            material=ctx.material_context,
        )
        self.prefetch.reconcile()
        return ctx.current_question

    async def wait_for_question(self) -> Question | None:
        """Let outstanding fetches land; used by front ends while Blocked."""
        await self.prefetch.drain()
        self.prefetch.reconcile()
        return self.context.current_question

    async def retry(self) -> Question | None:
        """Manual re-request offered to the user after a failed or stuck load."""
        ctx = self.context
        if ctx.mode != SessionMode.QUIZ:
            raise RuntimeError("No quiz in progress")
        ctx.present(None)
        ctx.loading = LoadingMode.BLOCKED
        await self.prefetch.request_batch(
            ctx.topic,
            ctx.level,
            ctx.history_tail(self.history_tail_size),
            self.prefetch.batch_size,
            blocking=True,
            material=ctx.material_context,
        )
        self.prefetch.reconcile()
        return ctx.current_question

    def end_quiz(self) -> SessionMode:
        """
        Leave the quiz and return to the dashboard.

        A standalone quiz forgets its topic and level. A plan-day quiz keeps
        both so the next day continues where this one ended.
        """
        ctx = self.context
        from_plan = ctx.active_day is not None
        self.prefetch.reset()
        ctx.history = []
        ctx.present(None)
        ctx.material = None
        ctx.material_phase = None
        ctx.active_day = None
        if not from_plan:
            ctx.topic = ""
            ctx.level = self.baseline_level
        ctx.mode = SessionMode.DASHBOARD
        logger.info("Quiz ended, returning to {}", "plan" if from_plan else "dashboard")
        return ctx.mode

    def summary(self) -> SessionSummary:
        ctx = self.context
        trajectory = [ctx.history[0].difficulty_before] if ctx.history else [ctx.level]
        trajectory.extend(record.difficulty_after for record in ctx.history)
        return SessionSummary(
            topic=ctx.topic,
            answered=len(ctx.history),
            correct=sum(1 for record in ctx.history if record.is_correct),
            level=ctx.level,
            trajectory=trajectory,
        )

    # =========================================================================
    # Plan & material
    # =========================================================================

    async def create_plan(self, topic: str) -> bool:
        """
        Generate a study plan for ``topic``.

        On failure (or an empty plan) no plan is installed and the session
        stays on the dashboard with ``last_error`` set.
        """
        topic = topic.strip()
        if not topic:
            raise ValueError("topic must not be empty")

        ctx = self.context
        if ctx.mode == SessionMode.QUIZ:
            self.end_quiz()
        if topic != ctx.topic:
            self.prefetch.reset()
            ctx.topic = topic
            ctx.level = self.baseline_level
        ctx.mode = SessionMode.DASHBOARD
        ctx.last_error = None

        try:
            days = await self.source.generate_plan(topic, ctx.level)
        except GenerationError as e:
            logger.error("Plan generation failed for {!r}: {}", topic, e)
            ctx.last_error = "学习计划生成失败，请重试。"
            return False
        if not days:
            logger.error("Plan generation for {!r} returned no days", topic)
            ctx.last_error = "学习计划生成失败，请重试。"
            return False

        self.plan.load(days)
        return True

    async def start_day(self, day_number: int) -> bool:
        """
        Open the study material for a plan day.

        Locked (or unknown) days are rejected as a no-op.
        """
        ctx = self.context
        if not self.plan.can_start(day_number):
            logger.info("Day {} is locked, ignoring start request", day_number)
            return False

        day: PlanDay = self.plan.get(day_number)
        ctx.active_day = day_number
        ctx.mode = SessionMode.MATERIAL_VIEW
        ctx.material = None
        ctx.material_phase = MaterialPhase.LOADING

        try:
            material = await self.source.generate_material(ctx.topic, day.topic, day.focus, ctx.level)
        except GenerationError as e:
            logger.warning("Material generation failed for day {}: {}", day_number, e)
            material = FALLBACK_MATERIAL

        if ctx.active_day != day_number or ctx.mode != SessionMode.MATERIAL_VIEW:
            logger.warning("Discarding material for day {}, session moved on", day_number)
            return False

        ctx.material = material
        ctx.material_phase = MaterialPhase.READY
        return True

    def complete_day(self) -> bool:
        """
        Complete the active plan day from its quiz.

        Needs the day's minimum answer count; on success the next day is
        unlocked and the session returns to the plan.
        """
        ctx = self.context
        if ctx.active_day is None:
            return False
        if not self.plan.complete(ctx.active_day, len(ctx.history)):
            return False
        self.end_quiz()
        return True

    async def explain_selection(self, selected_text: str) -> str:
        """Explain a highlighted passage in the context of the current topic."""
        selection = selected_text.strip()[: self.explain_max_chars]
        if not selection:
            raise ValueError("selection must not be empty")
        try:
            return await self.source.explain_selection(selection, self.context.topic)
        except GenerationError as e:
            logger.warning("Explanation failed: {}", e)
            return FALLBACK_EXPLANATION
