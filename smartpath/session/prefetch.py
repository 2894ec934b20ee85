"""
Prefetch Queue Manager.

Hides content generation latency behind a bounded lookahead buffer:

- A single-flight guard (``SessionContext.fetching``) admits at most one
  question fetch per session. The check-and-set happens synchronously, so in
  one event loop it is atomic; a request that loses the race is dropped, not
  queued.
- Refills start once the buffer drops to the refill threshold, early enough
  that a normal answering pace does not drain it.
- A blocking consumer may have its request dropped while a background refill
  is in flight. ``reconcile()`` runs after every queue mutation and surfaces
  the front question whenever the session is Blocked and the buffer is
  non-empty, so the wait always ends when data arrives.
"""
from __future__ import annotations

import asyncio
from typing import Sequence

from loguru import logger

from smartpath.content.models import Question
from smartpath.content.source import FALLBACK_QUESTION, ContentSource
from smartpath.core.exceptions import GenerationError
from smartpath.session.context import LoadingMode, SessionContext

DEFAULT_BATCH_SIZE = 5
DEFAULT_REFILL_THRESHOLD = 4
DEFAULT_HISTORY_TAIL = 5


class PrefetchQueueManager:
    """Owns the lookahead buffer, the fetch guard and the refill policy."""

    def __init__(
        self,
        context: SessionContext,
        source: ContentSource,
        batch_size: int = DEFAULT_BATCH_SIZE,
        refill_threshold: int = DEFAULT_REFILL_THRESHOLD,
        history_tail_size: int = DEFAULT_HISTORY_TAIL,
    ):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.context = context
        self.source = source
        self.batch_size = batch_size
        self.refill_threshold = refill_threshold
        self.history_tail_size = history_tail_size
        self._tasks: set[asyncio.Task] = set()

    # =========================================================================
    # Fetching
    # =========================================================================

    def _try_acquire(self, blocking: bool) -> bool:
        """Compare-and-set the fetch guard and mark the loading mode."""
        ctx = self.context
        if ctx.fetching:
            return False
        ctx.fetching = True
        if blocking:
            ctx.loading = LoadingMode.BLOCKED
        elif ctx.loading == LoadingMode.IDLE:
            ctx.loading = LoadingMode.BACKGROUND
        return True

    def _is_stale(self, epoch: int, topic: str) -> bool:
        return self.context.epoch != epoch or self.context.topic != topic

    async def request_batch(
        self,
        topic: str,
        level: int,
        history_tail: Sequence[str],
        count: int,
        blocking: bool,
        material: str | None = None,
    ) -> bool:
        """
        Fetch a batch of questions into the buffer.

        Args:
            topic: Subject being studied
            level: Difficulty level to generate at
            history_tail: Recently answered question texts (trimmed to the last 5)
            count: Questions to request
            blocking: Whether a consumer is waiting on this fetch
            material: Study material for comprehension-mode questions

        Returns:
            True if the fetch ran, False if it was dropped by the single-flight guard
        """
        if count <= 0:
            raise ValueError("count must be positive")
        if not self._try_acquire(blocking):
            logger.debug("Fetch already in flight, dropping {} request", "blocking" if blocking else "background")
            return False
        await self._run_fetch(topic, level, list(history_tail), count, blocking, material)
        return True

    def schedule_refill(
        self,
        topic: str,
        level: int,
        history_tail: Sequence[str],
        material: str | None = None,
    ) -> asyncio.Task | None:
        """
        Start a background refill without waiting for it.

        The guard is taken before the task is created, so a second call in the
        same tick is already dropped.
        """
        if not self._try_acquire(blocking=False):
            return None
        task = asyncio.create_task(
            self._run_fetch(topic, level, list(history_tail), self.batch_size, False, material)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_fetch(
        self,
        topic: str,
        level: int,
        history_tail: list[str],
        count: int,
        blocking: bool,
        material: str | None,
    ) -> None:
        """Body of an admitted fetch. Caller must hold the guard."""
        ctx = self.context
        epoch = ctx.epoch
        was_empty = not ctx.queue
        tail = history_tail[-self.history_tail_size:] if self.history_tail_size > 0 else []

        try:
            failed = False
            try:
                batch = await self.source.generate_questions(topic, level, tail, count, material)
            except GenerationError as e:
                logger.warning("Question generation failed, using fallback question: {}", e)
                batch = [FALLBACK_QUESTION]
                failed = True

            if self._is_stale(epoch, topic):
                logger.warning(
                    "Discarding {} questions fetched for stale session (topic={!r})",
                    len(batch),
                    topic,
                )
                return

            ctx.consecutive_failures = ctx.consecutive_failures + 1 if failed else 0
            if ctx.degraded:
                logger.warning("Prefetch degraded: {} consecutive failures", ctx.consecutive_failures)

            ctx.queue.extend(batch)
            logger.info(
                "Fetched {} questions at level {} (buffer={}, blocking={})",
                len(batch),
                level,
                len(ctx.queue),
                blocking,
            )
            if blocking and was_empty:
                ctx.present(ctx.queue.popleft())
                ctx.loading = LoadingMode.IDLE
        finally:
            # After a reset the guard and loading mode belong to the new session
            if not self._is_stale(epoch, topic):
                ctx.fetching = False
                if ctx.loading == LoadingMode.BACKGROUND:
                    ctx.loading = LoadingMode.IDLE
                self.reconcile()

    async def drain(self) -> None:
        """Wait for every outstanding background fetch to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    # =========================================================================
    # Consumption
    # =========================================================================

    def take_next(self) -> Question | None:
        """Pop the front of the buffer, or None if it is empty."""
        ctx = self.context
        if not ctx.queue:
            return None
        question = ctx.queue.popleft()
        logger.debug("Took question from buffer ({} left)", len(ctx.queue))
        return question

    def needs_refill(self) -> bool:
        return len(self.context.queue) <= self.refill_threshold and not self.context.fetching

    def maybe_refill(
        self,
        level: int,
        history_tail: Sequence[str],
        material: str | None = None,
    ) -> asyncio.Task | None:
        """Apply the refill policy after an answer; returns the refill task if one started."""
        if not self.needs_refill():
            return None
        logger.debug(
            "Buffer at {} (threshold {}), starting refill at level {}",
            len(self.context.queue),
            self.refill_threshold,
            level,
        )
        return self.schedule_refill(self.context.topic, level, history_tail, material)

    def reconcile(self) -> Question | None:
        """
        Recover a blocked consumer once data is available.

        Whenever loading is Blocked and the buffer is non-empty, the front
        question is surfaced and loading returns to Idle.
        """
        ctx = self.context
        if ctx.loading != LoadingMode.BLOCKED or not ctx.queue:
            return None
        question = ctx.queue.popleft()
        ctx.present(question)
        ctx.loading = LoadingMode.IDLE
        logger.info("Recovered blocked session with buffered question ({} left)", len(ctx.queue))
        return question

    def reset(self) -> None:
        """Clear the buffer and guard; in-flight fetches become stale."""
        self.context.clear_queue()
        logger.debug("Prefetch queue reset (epoch={})", self.context.epoch)
