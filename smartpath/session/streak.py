"""
Daily streak persistence.

The streak is a single counter plus the date of the last check-in, stored as
JSON (default ~/.smartpath/streak.json). It is read once at startup and
written on check-in.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

from loguru import logger

DEFAULT_STREAK_FILE = Path.home() / ".smartpath" / "streak.json"


@dataclass
class Streak:
    """Serializable streak state."""

    count: int = 0
    last_date: Optional[str] = None  # ISO format

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Streak":
        return cls(count=int(data.get("count", 0)), last_date=data.get("last_date"))


class StreakStore:
    """Reads and updates the daily streak file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_STREAK_FILE

    def load(self) -> Streak:
        """Load the streak; a missing or corrupt file reads as no streak."""
        if not self.path.exists():
            return Streak()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return Streak.from_dict(json.load(f))
        except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Ignoring unreadable streak file {}: {}", self.path, e)
            return Streak()

    def save(self, streak: Streak) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(streak.to_dict(), f, indent=2)
        return self.path

    def check_in(self, today: Optional[date] = None) -> Streak:
        """
        Record today's study.

        Same day: unchanged. Day after the last check-in: +1. Otherwise the
        streak restarts at 1.
        """
        today = today or date.today()
        streak = self.load()
        last = date.fromisoformat(streak.last_date) if streak.last_date else None

        if last == today:
            return streak
        if last is not None and last + timedelta(days=1) == today:
            streak.count += 1
        else:
            streak.count = 1
        streak.last_date = today.isoformat()
        self.save(streak)
        logger.info("Streak check-in: {} day(s)", streak.count)
        return streak
