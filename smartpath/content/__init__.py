"""
Content records and the sources that generate them.

The session layer only depends on the ContentSource protocol; concrete
backends are built by create_content_source().
"""

from .models import DayStatus, PlanDay, Question, StudyMaterial
from .source import (
    FALLBACK_EXPLANATION,
    FALLBACK_MATERIAL,
    FALLBACK_QUESTION,
    ContentSource,
)

__all__ = [
    "Question",
    "PlanDay",
    "DayStatus",
    "StudyMaterial",
    "ContentSource",
    "FALLBACK_QUESTION",
    "FALLBACK_MATERIAL",
    "FALLBACK_EXPLANATION",
]
