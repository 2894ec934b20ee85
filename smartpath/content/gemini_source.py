"""
Gemini-backed content source.

Uses google.generativeai with JSON response mode. A fresh GenerativeModel is
built per call because the system instruction carries the request
parameters (topic, level, recent questions).
"""
from __future__ import annotations

import time

import google.generativeai as genai
from loguru import logger

from smartpath.content import prompts
from smartpath.content.models import PlanDay, Question, StudyMaterial
from smartpath.content.source import (
    load_json,
    parse_explanation,
    parse_material,
    parse_plan,
    parse_questions,
)
from smartpath.core.exceptions import ConfigurationError, GenerationError

DEFAULT_MODEL = "gemini-2.5-flash"

JSON_GENERATION_CONFIG = {"response_mime_type": "application/json"}


class GeminiContentSource:
    """Content source that prompts a Gemini model for structured JSON."""

    def __init__(
        self,
        api_key: str | None,
        model_name: str = DEFAULT_MODEL,
        plan_days: int = 5,
    ):
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set")
        self.model_name = model_name
        self.plan_days = plan_days
        genai.configure(api_key=api_key)
        logger.info("Gemini content source initialized: {}", model_name)

    async def _generate(self, operation: str, system_prompt: str, user_prompt: str) -> str:
        """Run one JSON-mode generation, converting every failure to GenerationError."""
        started = time.monotonic()
        try:
            model = genai.GenerativeModel(
                model_name=self.model_name,
                system_instruction=system_prompt,
            )
            response = await model.generate_content_async(
                user_prompt,
                generation_config=JSON_GENERATION_CONFIG,
            )
            text = response.text
        except Exception as e:
            logger.error("Gemini {} failed: {}", operation, e)
            raise GenerationError(f"Gemini request failed: {e}", operation=operation, cause=e) from e

        logger.debug(
            "Gemini {} completed in {}ms",
            operation,
            int((time.monotonic() - started) * 1000),
        )
        return text

    async def generate_questions(
        self,
        topic: str,
        level: int,
        recent_texts: list[str],
        count: int,
        material: str | None = None,
    ) -> list[Question]:
        system, user = prompts.build_question_prompts(topic, level, recent_texts, count, material)
        raw = await self._generate("generate_questions", system, user)
        return parse_questions(load_json(raw, "generate_questions"))

    async def generate_plan(self, topic: str, level: int) -> list[PlanDay]:
        system = prompts.PLAN_SYSTEM_PROMPT.format(days=self.plan_days, topic=topic, level=level)
        user = prompts.PLAN_USER_PROMPT.format(days=self.plan_days, topic=topic)
        raw = await self._generate("generate_plan", system, user)
        return parse_plan(load_json(raw, "generate_plan"))

    async def generate_material(
        self,
        topic: str,
        sub_topic: str,
        focus: str,
        level: int,
    ) -> StudyMaterial:
        system = prompts.MATERIAL_SYSTEM_PROMPT.format(
            topic=topic, sub_topic=sub_topic, focus=focus, level=level
        )
        user = prompts.MATERIAL_USER_PROMPT.format(sub_topic=sub_topic)
        raw = await self._generate("generate_material", system, user)
        return parse_material(load_json(raw, "generate_material"))

    async def explain_selection(self, selected_text: str, context_topic: str) -> str:
        system = prompts.EXPLAIN_SYSTEM_PROMPT.format(topic=context_topic)
        user = prompts.EXPLAIN_USER_PROMPT.format(selection=selected_text)
        raw = await self._generate("explain_selection", system, user)
        return parse_explanation(load_json(raw, "explain_selection"))
