"""Shared pytest configuration and fixtures."""
from __future__ import annotations

import asyncio
import os

# Provide required env vars before any package module is imported
os.environ.setdefault("EXTRACTION_PROVIDER", "mock")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402

from ocr_queue.core.errors import ExtractionFailure  # noqa: E402
from ocr_queue.extraction.base_client import ExtractionClient, ImagePayload  # noqa: E402


def make_payload(name: str = "scan.png", data: bytes = b"\x89PNG fake image", media_type: str = "image/png") -> ImagePayload:
    return ImagePayload(name=name, data=data, media_type=media_type)


class ScriptedClient(ExtractionClient):
    """Fake remote client.

    Returns ``text of <name>`` unless *failures* maps the name to an exception.
    With ``hold=True`` every call blocks until ``release(name)`` is called.
    """

    def __init__(self, failures: dict[str, Exception] | None = None, hold: bool = False) -> None:
        self.failures = failures or {}
        self.hold = hold
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0
        self._gates: dict[str, asyncio.Event] = {}

    def _gate(self, name: str) -> asyncio.Event:
        return self._gates.setdefault(name, asyncio.Event())

    def release(self, name: str) -> None:
        self._gate(name).set()

    async def extract(self, payload: ImagePayload) -> str:
        self.calls.append(payload.name)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.hold:
                await self._gate(payload.name).wait()
            else:
                await asyncio.sleep(0)
            if payload.name in self.failures:
                raise self.failures[payload.name]
            return f"text of {payload.name}"
        finally:
            self.active -= 1


async def until(predicate, attempts: int = 200) -> None:
    """Yield to the event loop until *predicate* holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.fixture
def scripted_client() -> ScriptedClient:
    return ScriptedClient()


@pytest.fixture
def failing_b_client() -> ScriptedClient:
    return ScriptedClient(failures={"b.png": ExtractionFailure("remote model unavailable")})
