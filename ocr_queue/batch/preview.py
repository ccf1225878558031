"""Preview resources: registered image blobs addressable by an opaque token.

A handle is owned by exactly one queue item and must be released exactly
once; the registry counts acquisitions and releases so leaks are visible.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from ocr_queue.core.errors import InvariantViolation
from ocr_queue.extraction.base_client import ImagePayload

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class PreviewHandle:
    token: str
    media_type: str
    _registry: PreviewRegistry = field(repr=False)
    released: bool = False

    def release(self) -> None:
        self._registry.release(self)


class PreviewRegistry:
    def __init__(self) -> None:
        self._blobs: dict[str, tuple[bytes, str]] = {}
        self.acquired = 0
        self.released = 0

    @property
    def outstanding(self) -> int:
        return len(self._blobs)

    def acquire(self, payload: ImagePayload) -> PreviewHandle:
        token = uuid.uuid4().hex
        self._blobs[token] = (payload.data, payload.media_type)
        self.acquired += 1
        return PreviewHandle(token=token, media_type=payload.media_type, _registry=self)

    def release(self, handle: PreviewHandle) -> None:
        if handle.released or handle.token not in self._blobs:
            raise InvariantViolation(f"Preview {handle.token} released twice")
        del self._blobs[handle.token]
        handle.released = True
        self.released += 1
        logger.debug("preview_released", extra={"preview_token": handle.token})

    def read(self, token: str) -> tuple[bytes, str] | None:
        """Return ``(data, media_type)`` for a live preview, or None once released."""
        return self._blobs.get(token)
