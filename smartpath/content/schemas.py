"""
Wire schemas for content source payloads.

Generated JSON is untrusted; these models validate it before it becomes a
domain record.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from smartpath.content.models import PlanDay, Question


class QuestionPayload(BaseModel):
    """Question as emitted by the generator (camelCase keys)."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=2)
    correct_index: int = Field(..., alias="correctIndex", ge=0)
    explanation: str = ""
    topic_sub_category: str = Field(default="", alias="topicSubCategory")

    @model_validator(mode="after")
    def _correct_index_in_range(self) -> "QuestionPayload":
        if self.correct_index >= len(self.options):
            raise ValueError(
                f"correctIndex {self.correct_index} out of range for {len(self.options)} options"
            )
        return self

    def to_question(self) -> Question:
        return Question(
            text=self.text,
            options=tuple(self.options),
            correct_index=self.correct_index,
            explanation=self.explanation,
            sub_topic=self.topic_sub_category,
        )


class PlanDayPayload(BaseModel):
    """Plan day as emitted by the generator."""

    day: int = Field(..., ge=1)
    topic: str
    focus: str = ""
    activities: list[str] = Field(default_factory=list)

    def to_plan_day(self) -> PlanDay:
        return PlanDay(
            day=self.day,
            topic=self.topic,
            focus=self.focus,
            activities=list(self.activities),
        )


class MaterialPayload(BaseModel):
    """Study material response."""

    markdown: str = Field(..., min_length=1)


class ExplanationPayload(BaseModel):
    """Concept explanation response."""

    explanation: str = Field(..., min_length=1)


QUESTION_LIST = TypeAdapter(list[QuestionPayload])
PLAN_DAY_LIST = TypeAdapter(list[PlanDayPayload])
