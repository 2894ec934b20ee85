"""
Content Source contract and shared payload handling.

A content source is an opaque async request/response collaborator. Every
implementation raises GenerationError on any transport or parsing problem;
the fallbacks defined here are what the session layer substitutes.
"""
from __future__ import annotations

import json
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from smartpath.content.models import PlanDay, Question, StudyMaterial
from smartpath.content.schemas import (
    PLAN_DAY_LIST,
    QUESTION_LIST,
    ExplanationPayload,
    MaterialPayload,
)
from smartpath.core.exceptions import GenerationError

# =============================================================================
# Fallbacks
# =============================================================================

FALLBACK_QUESTION = Question(
    text="联系 AI 导师时遇到错误。请重试。",
    options=("重试", "检查网络", "重新加载", "等待"),
    correct_index=0,
    explanation="网络或 API 出现错误。",
    sub_topic="错误处理",
    is_fallback=True,
)

FALLBACK_MATERIAL = StudyMaterial(
    markdown="# 内容生成失败\n\n无法生成学习资料，请稍后重试。",
    is_fallback=True,
)

FALLBACK_EXPLANATION = "暂时无法解释该内容，请稍后重试。"


@runtime_checkable
class ContentSource(Protocol):
    """Generates questions, plans, material and explanations."""

    async def generate_questions(
        self,
        topic: str,
        level: int,
        recent_texts: list[str],
        count: int,
        material: str | None = None,
    ) -> list[Question]: ...

    async def generate_plan(self, topic: str, level: int) -> list[PlanDay]: ...

    async def generate_material(
        self,
        topic: str,
        sub_topic: str,
        focus: str,
        level: int,
    ) -> StudyMaterial: ...

    async def explain_selection(self, selected_text: str, context_topic: str) -> str: ...


# =============================================================================
# Payload parsing
# =============================================================================


def load_json(raw: str | None, operation: str) -> Any:
    """Decode a generated JSON document, tolerating markdown code fences."""
    if not raw or not raw.strip():
        raise GenerationError("Empty response from content source", operation=operation)

    cleaned = raw.strip()
    if cleaned.startswith("```"):
        # Only the outer fence; string values may hold their own code blocks
        lines = cleaned.splitlines()[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines).strip()

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise GenerationError(
            f"Invalid JSON from content source: {e}", operation=operation, cause=e
        ) from e


def parse_questions(data: Any, operation: str = "generate_questions") -> list[Question]:
    # Some generators wrap the array in an object
    if isinstance(data, dict) and "questions" in data:
        data = data["questions"]
    try:
        payloads = QUESTION_LIST.validate_python(data)
    except ValidationError as e:
        raise GenerationError(
            f"Malformed question payload: {e.error_count()} errors",
            operation=operation,
            cause=e,
        ) from e
    if not payloads:
        raise GenerationError("Content source returned no questions", operation=operation)
    return [p.to_question() for p in payloads]


def parse_plan(data: Any, operation: str = "generate_plan") -> list[PlanDay]:
    if isinstance(data, dict) and "days" in data:
        data = data["days"]
    try:
        payloads = PLAN_DAY_LIST.validate_python(data)
    except ValidationError as e:
        raise GenerationError(
            f"Malformed plan payload: {e.error_count()} errors",
            operation=operation,
            cause=e,
        ) from e
    numbers = [p.day for p in payloads]
    if len(set(numbers)) != len(numbers):
        raise GenerationError(f"Plan repeats day numbers: {numbers}", operation=operation)
    days = [p.to_plan_day() for p in payloads]
    days.sort(key=lambda d: d.day)
    return days


def parse_material(data: Any, operation: str = "generate_material") -> StudyMaterial:
    try:
        payload = MaterialPayload.model_validate(data)
    except ValidationError as e:
        raise GenerationError("Malformed material payload", operation=operation, cause=e) from e
    return StudyMaterial(markdown=payload.markdown)


def parse_explanation(data: Any, operation: str = "explain_selection") -> str:
    if isinstance(data, str):
        data = {"explanation": data}
    try:
        payload = ExplanationPayload.model_validate(data)
    except ValidationError as e:
        raise GenerationError("Malformed explanation payload", operation=operation, cause=e) from e
    return payload.explanation
