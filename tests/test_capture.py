"""Capture-side upload validation tests."""
from __future__ import annotations

from pathlib import Path

import pytest

from ocr_queue.capture.uploads import build_payload, guess_media_type, load_file
from ocr_queue.core.errors import UnsupportedUpload

LIMIT = 1024


def test_declared_media_type_is_used() -> None:
    payload = build_payload("scan.bin", b"data", "image/jpeg", max_bytes=LIMIT)
    assert payload.media_type == "image/jpeg"
    assert payload.name == "scan.bin"


def test_media_type_parameters_are_ignored() -> None:
    payload = build_payload("a.png", b"data", "image/PNG; charset=binary", max_bytes=LIMIT)
    assert payload.media_type == "image/png"


def test_generic_type_falls_back_to_suffix() -> None:
    payload = build_payload("photo.WEBP", b"data", "application/octet-stream", max_bytes=LIMIT)
    assert payload.media_type == "image/webp"


def test_unsupported_type_rejected() -> None:
    with pytest.raises(UnsupportedUpload) as excinfo:
        build_payload("anim.gif", b"data", "image/gif", max_bytes=LIMIT)
    assert excinfo.value.status_code == 415


def test_empty_file_rejected() -> None:
    with pytest.raises(UnsupportedUpload) as excinfo:
        build_payload("a.png", b"", "image/png", max_bytes=LIMIT)
    assert excinfo.value.status_code == 400


def test_oversize_file_rejected() -> None:
    with pytest.raises(UnsupportedUpload) as excinfo:
        build_payload("a.png", b"x" * (LIMIT + 1), "image/png", max_bytes=LIMIT)
    assert excinfo.value.status_code == 413


def test_guess_media_type() -> None:
    assert guess_media_type("a.jpeg") == "image/jpeg"
    assert guess_media_type("a.JPG") == "image/jpeg"
    assert guess_media_type("notes.txt") is None


def test_load_file(tmp_path: Path) -> None:
    path = tmp_path / "page.png"
    path.write_bytes(b"\x89PNG")
    payload = load_file(path, max_bytes=LIMIT)
    assert payload.data == b"\x89PNG"
    assert payload.media_type == "image/png"
