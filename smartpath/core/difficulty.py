"""
Difficulty Controller.

Maps (current level, correctness) to the next proficiency level on a 0-100
scale. The rule is a heuristic, not a calibrated IRT/ELO estimate:

- Correct: boost = max(2, round(10 * (1 - level / 110))), shrinking towards
  mastery but never stalling.
- Incorrect: penalty = max(3, round(8 * level / 100)), growing with level so
  strong learners descend faster than they climb.

Both branches clamp to [0, 100] as the final step.
"""
from __future__ import annotations

import math

MIN_LEVEL = 0
MAX_LEVEL = 100
BASELINE_LEVEL = 50

MIN_BOOST = 2
MIN_PENALTY = 3


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_level(level: int) -> int:
    """Clamp a level into [MIN_LEVEL, MAX_LEVEL]."""
    return max(MIN_LEVEL, min(MAX_LEVEL, level))


def next_level(current: int, correct: bool) -> int:
    """
    Compute the level after one answered question.

    Args:
        current: Level before the answer (0-100)
        correct: Whether the answer was correct

    Returns:
        New level in [0, 100]

    Example:
        >>> next_level(50, True)
        55
        >>> next_level(55, False)
        51
    """
    if not MIN_LEVEL <= current <= MAX_LEVEL:
        raise ValueError(f"level must be within [{MIN_LEVEL}, {MAX_LEVEL}], got {current}")

    if correct:
        boost = max(MIN_BOOST, _round_half_up(10 * (1 - current / 110)))
        return min(MAX_LEVEL, current + boost)

    penalty = max(MIN_PENALTY, _round_half_up(8 * current / 100))
    return max(MIN_LEVEL, current - penalty)


def describe_level(level: int) -> str:
    """Band label used in prompts and the CLI."""
    if level <= 20:
        return "beginner"
    if level <= 50:
        return "intermediate"
    if level <= 80:
        return "advanced"
    return "expert"
