"""
Plan Progression Tracker.

Status ladder per plan day:

    locked --(previous day completed)--> current --(completion)--> completed

Day 1 starts current, all others locked. Completion is gated on a minimum
number of answered questions in the day's quiz and unlocks exactly the next
day.
"""
from __future__ import annotations

from typing import Sequence

from loguru import logger

from smartpath.content.models import DayStatus, PlanDay
from smartpath.session.context import SessionContext

DEFAULT_MIN_ANSWERS = 3


class PlanProgressionTracker:
    """Gate which plan day may be started and advance the plan on completion."""

    def __init__(self, context: SessionContext, min_answers: int = DEFAULT_MIN_ANSWERS):
        self.context = context
        self.min_answers = min_answers

    @property
    def days(self) -> list[PlanDay]:
        return self.context.plan

    def load(self, days: Sequence[PlanDay]) -> list[PlanDay]:
        """Install a freshly generated plan: day 1 current, the rest locked."""
        ordered = sorted(days, key=lambda d: d.day)
        for index, day in enumerate(ordered):
            day.status = DayStatus.CURRENT if index == 0 else DayStatus.LOCKED
        self.context.plan = ordered
        logger.info("Loaded {}-day plan for {!r}", len(ordered), self.context.topic)
        return ordered

    def clear(self) -> None:
        self.context.plan = []

    def get(self, day_number: int) -> PlanDay:
        for day in self.days:
            if day.day == day_number:
                return day
        raise ValueError(f"Plan has no day {day_number}")

    @property
    def current_day(self) -> PlanDay | None:
        return next((d for d in self.days if d.status == DayStatus.CURRENT), None)

    @property
    def is_finished(self) -> bool:
        return bool(self.days) and all(d.status == DayStatus.COMPLETED for d in self.days)

    def can_start(self, day_number: int) -> bool:
        """Locked days reject start requests; current and completed days may be (re)started."""
        try:
            return self.get(day_number).is_startable
        except ValueError:
            return False

    def complete(self, day_number: int, answered: int) -> bool:
        """
        Mark a day completed and unlock the next one.

        Args:
            day_number: Day to complete
            answered: Questions answered in that day's quiz

        Returns:
            True if the plan advanced, False if the request was rejected
        """
        day = self.get(day_number)
        if day.status != DayStatus.CURRENT:
            logger.debug("Day {} is {}, not completing", day_number, day.status.value)
            return False
        if answered < self.min_answers:
            logger.debug(
                "Day {} needs {} answers before completion, has {}",
                day_number,
                self.min_answers,
                answered,
            )
            return False

        day.status = DayStatus.COMPLETED
        position = self.days.index(day)
        if position + 1 < len(self.days):
            following = self.days[position + 1]
            following.status = DayStatus.CURRENT
            logger.info("Completed day {}, unlocked day {}", day.day, following.day)
        else:
            logger.info("Completed final day {}", day.day)
        return True
