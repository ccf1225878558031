"""Error taxonomy for the batch OCR queue."""
from __future__ import annotations


class OCRQueueError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(OCRQueueError):
    """A required setting (usually an API credential) is missing."""


class ExtractionFailure(OCRQueueError):
    """A single extraction call failed; the item ends in Error, the batch continues."""


class InvariantViolation(OCRQueueError):
    """Programmer error: an illegal status transition or a double release."""


class UnsupportedUpload(OCRQueueError):
    """An upload was rejected before reaching the queue."""

    def __init__(self, message: str, *, status_code: int = 415) -> None:
        super().__init__(message)
        self.status_code = status_code
