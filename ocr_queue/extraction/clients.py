"""Remote extraction clients: Google Gemini (default) and OpenAI vision models."""
from __future__ import annotations

import logging

from google import genai
from google.genai import types
from openai import AsyncOpenAI

from ocr_queue.core.errors import ConfigurationError, ExtractionFailure
from ocr_queue.extraction.base_client import ExtractionClient, ImagePayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# GeminiExtractionClient
# ---------------------------------------------------------------------------

class GeminiExtractionClient(ExtractionClient):
    """Extraction backed by a Gemini multimodal model.

    Config (via .env):
        EXTRACTION_PROVIDER=gemini
        GEMINI_API_KEY=...        (API_KEY is also accepted)
        GEMINI_MODEL=gemini-2.5-flash

    A missing key is reported on each call as ConfigurationError, not at startup.
    """

    def __init__(self, api_key: str | None, model: str, prompt: str) -> None:
        self._api_key = api_key
        self._model = model
        self._prompt = prompt
        self._client: genai.Client | None = None

    def _get_client(self) -> genai.Client:
        if not self._api_key:
            raise ConfigurationError("Gemini is not configured: set GEMINI_API_KEY (or API_KEY).")
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def extract(self, payload: ImagePayload) -> str:
        self.check_payload(payload)
        client = self._get_client()

        image_part = types.Part.from_bytes(data=payload.data, mime_type=payload.media_type)
        try:
            response = await client.aio.models.generate_content(
                model=self._model,
                contents=[image_part, self._prompt],
            )
        except Exception as exc:
            raise ExtractionFailure(f"Gemini request failed: {exc}") from exc

        text = response.text
        if text is None:
            raise ExtractionFailure("Gemini returned no text candidates")

        logger.info(
            "gemini_extraction_complete",
            extra={"upload_filename": payload.name, "model": self._model, "chars": len(text)},
        )
        return text


# ---------------------------------------------------------------------------
# OpenAIExtractionClient
# ---------------------------------------------------------------------------

class OpenAIExtractionClient(ExtractionClient):
    """Extraction backed by an OpenAI vision-capable chat model.

    Config (via .env):
        EXTRACTION_PROVIDER=openai
        OPENAI_API_KEY=...
        OPENAI_MODEL=gpt-4o-mini
    """

    def __init__(self, api_key: str | None, model: str, prompt: str) -> None:
        self._api_key = api_key
        self._model = model
        self._prompt = prompt
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if not self._api_key:
            raise ConfigurationError("OpenAI is not configured: set OPENAI_API_KEY.")
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def extract(self, payload: ImagePayload) -> str:
        self.check_payload(payload)
        client = self._get_client()

        try:
            response = await client.chat.completions.create(
                model=self._model,
                temperature=0.0,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": self._prompt},
                            {"type": "image_url", "image_url": {"url": payload.to_data_url()}},
                        ],
                    }
                ],
            )
        except Exception as exc:
            raise ExtractionFailure(f"OpenAI request failed: {exc}") from exc

        if not response.choices or response.choices[0].message.content is None:
            raise ExtractionFailure("OpenAI returned an empty response")
        text = response.choices[0].message.content

        logger.info(
            "openai_extraction_complete",
            extra={"upload_filename": payload.name, "model": self._model, "chars": len(text)},
        )
        return text
