from __future__ import annotations

from ocr_queue.core.config import settings
from ocr_queue.extraction.base_client import ExtractionClient
from ocr_queue.extraction.mock_client import MockExtractionClient


def get_extraction_client(provider: str | None = None) -> ExtractionClient:
    """Return the configured extraction client instance.

    EXTRACTION_PROVIDER options:
        gemini: GeminiExtractionClient (GEMINI_API_KEY)
        openai: OpenAIExtractionClient (OPENAI_API_KEY)
        mock  : synthetic text (dev/test, no network)
    """
    provider = (provider or settings.extraction_provider).lower().strip()

    if provider == "mock":
        return MockExtractionClient()

    if provider == "gemini":
        from ocr_queue.extraction.clients import GeminiExtractionClient
        return GeminiExtractionClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            prompt=settings.extraction_prompt,
        )

    if provider == "openai":
        from ocr_queue.extraction.clients import OpenAIExtractionClient
        return OpenAIExtractionClient(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            prompt=settings.extraction_prompt,
        )

    raise ValueError(f"Unknown EXTRACTION_PROVIDER={provider!r}")
