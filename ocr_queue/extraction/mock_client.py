from __future__ import annotations

from ocr_queue.extraction.base_client import ExtractionClient, ImagePayload


class MockExtractionClient(ExtractionClient):
    async def extract(self, payload: ImagePayload) -> str:
        # Deterministic text for development/testing, no network access
        self.check_payload(payload)
        return f"Sample text extracted from {payload.name}\n({len(payload.data)} bytes, {payload.media_type})"
