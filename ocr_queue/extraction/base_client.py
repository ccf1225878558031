from __future__ import annotations

import base64
import logging
from dataclasses import dataclass

from ocr_queue.core.errors import ExtractionFailure

logger = logging.getLogger(__name__)

SUPPORTED_MEDIA_TYPES: frozenset[str] = frozenset({"image/jpeg", "image/png", "image/webp"})


@dataclass(frozen=True)
class ImagePayload:
    """Immutable source image: bytes + declared media type + display name."""

    name: str
    data: bytes
    media_type: str

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.to_base64()}"


@dataclass(frozen=True)
class ExtractionOutcome:
    """Either extracted text or a failure description, never both."""

    text: str | None = None
    failure: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class ExtractionClient:
    """One image in, one text out. Holds no state across calls and never retries."""

    async def extract(self, payload: ImagePayload) -> str:
        raise NotImplementedError

    @staticmethod
    def check_payload(payload: ImagePayload) -> None:
        if payload.media_type not in SUPPORTED_MEDIA_TYPES:
            raise ExtractionFailure(f"Unsupported media type {payload.media_type!r} for {payload.name!r}")
        if not payload.data:
            raise ExtractionFailure(f"Image {payload.name!r} is empty")


async def extract_outcome(client: ExtractionClient, payload: ImagePayload) -> ExtractionOutcome:
    """Run one extraction and fold any exception into a failed outcome.

    Cancellation is not an ``Exception`` and still propagates.
    """
    try:
        text = await client.extract(payload)
    except Exception as exc:
        message = str(exc) or "An unknown error occurred."
        logger.warning(
            "extraction_failed",
            extra={"upload_filename": payload.name, "error_type": type(exc).__name__, "error": message},
        )
        return ExtractionOutcome(failure=message)
    if not isinstance(text, str):
        message = f"Malformed response: expected text, got {type(text).__name__}"
        logger.warning("extraction_failed", extra={"upload_filename": payload.name, "error": message})
        return ExtractionOutcome(failure=message)
    return ExtractionOutcome(text=text)
