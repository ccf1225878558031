"""Capture-side validation: only supported, non-empty, reasonably sized images reach the queue."""
from __future__ import annotations

from pathlib import Path

from ocr_queue.core.errors import UnsupportedUpload
from ocr_queue.extraction.base_client import SUPPORTED_MEDIA_TYPES, ImagePayload

_SUFFIX_MEDIA_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}


def guess_media_type(filename: str) -> str | None:
    return _SUFFIX_MEDIA_TYPES.get(Path(filename).suffix.lower())


def build_payload(
    name: str,
    data: bytes,
    media_type: str | None,
    *,
    max_bytes: int,
) -> ImagePayload:
    """Validate one upload and wrap it as an ImagePayload.

    The declared media type wins; generic or missing types fall back to the
    filename suffix.
    """
    declared = (media_type or "").split(";", 1)[0].strip().lower()
    if not declared or declared == "application/octet-stream":
        declared = guess_media_type(name) or declared

    if declared not in SUPPORTED_MEDIA_TYPES:
        raise UnsupportedUpload(
            f"Unsupported media type {declared or 'unknown'!r} for {name!r}; expected JPG, PNG, or WEBP",
            status_code=415,
        )
    if not data:
        raise UnsupportedUpload(f"File {name!r} is empty", status_code=400)
    if len(data) > max_bytes:
        raise UnsupportedUpload(
            f"File {name!r} is {len(data)} bytes; the limit is {max_bytes}",
            status_code=413,
        )
    return ImagePayload(name=name, data=data, media_type=declared)


def load_file(path: Path, *, max_bytes: int) -> ImagePayload:
    return build_payload(path.name, path.read_bytes(), guess_media_type(path.name), max_bytes=max_bytes)
