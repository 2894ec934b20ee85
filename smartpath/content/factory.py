"""Build the configured content source."""
from __future__ import annotations

from config import Settings
from smartpath.content.source import ContentSource


def create_content_source(settings: Settings) -> ContentSource:
    """
    Create the content source selected by ``settings.content_backend``.

    Raises:
        ConfigurationError: If the backend's API key or URL is missing
    """
    if settings.content_backend == "http":
        from smartpath.content.http_source import HttpContentSource

        return HttpContentSource(
            api_url=settings.content_api_url,
            timeout_seconds=settings.content_timeout_seconds,
        )

    from smartpath.content.gemini_source import GeminiContentSource

    return GeminiContentSource(
        api_key=settings.gemini_api_key,
        model_name=settings.ai_model,
        plan_days=settings.plan_length_days,
    )
