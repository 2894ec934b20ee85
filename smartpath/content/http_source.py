"""
HTTP content source client.

Talks to a remote generation service over JSON:

    POST {api_url}/questions  {"topic", "level", "recentTexts", "count", "material"}
    POST {api_url}/plan       {"topic", "level"}
    POST {api_url}/material   {"topic", "subTopic", "focus", "level"}
    POST {api_url}/explain    {"selectedText", "contextTopic"}

Timeouts are enforced by the underlying httpx client. There is no retry;
failures surface as GenerationError and the session layer falls back.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from smartpath.content.models import PlanDay, Question, StudyMaterial
from smartpath.content.source import (
    parse_explanation,
    parse_material,
    parse_plan,
    parse_questions,
)
from smartpath.core.exceptions import ConfigurationError, GenerationError


class HttpContentSource:
    """HTTP client for a remote content generation service."""

    def __init__(
        self,
        api_url: str | None,
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            api_url: Base URL of the content service
            timeout_seconds: Request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        if not api_url:
            raise ConfigurationError("CONTENT_API_URL is not set")
        self.api_url = api_url.rstrip("/")
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def _post(self, path: str, payload: dict[str, Any], operation: str) -> Any:
        try:
            response = await self.client.post(f"{self.api_url}{path}", json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Content service {} returned {}", operation, e.response.status_code)
            raise GenerationError(
                f"Content service error {e.response.status_code}",
                operation=operation,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            logger.error("Content service {} request failed: {}", operation, e)
            raise GenerationError(f"Content service unreachable: {e}", operation=operation, cause=e) from e
        except ValueError as e:
            # response.json() on a non-JSON body
            raise GenerationError("Content service returned invalid JSON", operation=operation, cause=e) from e

    async def generate_questions(
        self,
        topic: str,
        level: int,
        recent_texts: list[str],
        count: int,
        material: str | None = None,
    ) -> list[Question]:
        data = await self._post(
            "/questions",
            {
                "topic": topic,
                "level": level,
                "recentTexts": list(recent_texts),
                "count": count,
                "material": material,
            },
            "generate_questions",
        )
        return parse_questions(data)

    async def generate_plan(self, topic: str, level: int) -> list[PlanDay]:
        data = await self._post("/plan", {"topic": topic, "level": level}, "generate_plan")
        return parse_plan(data)

    async def generate_material(
        self,
        topic: str,
        sub_topic: str,
        focus: str,
        level: int,
    ) -> StudyMaterial:
        data = await self._post(
            "/material",
            {"topic": topic, "subTopic": sub_topic, "focus": focus, "level": level},
            "generate_material",
        )
        return parse_material(data)

    async def explain_selection(self, selected_text: str, context_topic: str) -> str:
        data = await self._post(
            "/explain",
            {"selectedText": selected_text, "contextTopic": context_topic},
            "explain_selection",
        )
        return parse_explanation(data)
