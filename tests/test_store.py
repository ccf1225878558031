"""Queue store and preview registry tests: no event loop required."""
from __future__ import annotations

import pytest

from conftest import make_payload
from ocr_queue.batch.models import QueueStatus
from ocr_queue.batch.preview import PreviewRegistry
from ocr_queue.batch.store import QueueStore
from ocr_queue.core.errors import InvariantViolation


def _store() -> tuple[QueueStore, PreviewRegistry]:
    previews = PreviewRegistry()
    return QueueStore(previews), previews


def test_append_preserves_order_and_starts_queued() -> None:
    store, _ = _store()
    items = store.append([make_payload("a.png"), make_payload("b.jpg", media_type="image/jpeg")])

    assert [item.name for item in store.items] == ["a.png", "b.jpg"]
    assert all(item.status is QueueStatus.QUEUED for item in items)
    assert all(item.result is None and item.failure is None for item in items)


def test_append_assigns_unique_ids() -> None:
    store, _ = _store()
    first = store.append([make_payload("a.png")] * 3)
    second = store.append([make_payload("a.png")])
    ids = [item.id for item in first + second]
    assert len(set(ids)) == 4


def test_update_status_writes_fields() -> None:
    store, _ = _store()
    (item,) = store.append([make_payload()])

    assert store.update_status(item.id, QueueStatus.ERROR, failure="boom") is True
    assert store.get(item.id).status is QueueStatus.ERROR
    assert store.get(item.id).failure == "boom"
    assert store.get(item.id).result is None


def test_update_status_ignores_unknown_id() -> None:
    store, _ = _store()
    store.append([make_payload()])
    assert store.update_status("missing", QueueStatus.DONE, result="x") is False


def test_find_first_scans_in_insertion_order() -> None:
    store, _ = _store()
    a, b, c = store.append([make_payload("a.png"), make_payload("b.png"), make_payload("c.png")])
    store.update_status(a.id, QueueStatus.DONE, result="x")

    assert store.find_first(QueueStatus.QUEUED) is b
    assert store.has_status(QueueStatus.PROCESSING) is False


def test_clear_releases_every_preview_once() -> None:
    store, previews = _store()
    items = store.append([make_payload("a.png"), make_payload("b.png")])

    assert store.clear() == 2
    assert len(store) == 0
    assert store.get(items[0].id) is None
    assert previews.acquired == 2
    assert previews.released == 2
    assert all(item.preview.released for item in items)

    # Nothing left to release the second time
    assert store.clear() == 0
    assert previews.released == 2


def test_preview_double_release_raises() -> None:
    previews = PreviewRegistry()
    handle = previews.acquire(make_payload())
    handle.release()

    with pytest.raises(InvariantViolation, match="released twice"):
        handle.release()
    assert previews.released == 1


def test_preview_read_until_released() -> None:
    previews = PreviewRegistry()
    payload = make_payload(data=b"pixels", media_type="image/webp")
    handle = previews.acquire(payload)

    assert previews.read(handle.token) == (b"pixels", "image/webp")
    handle.release()
    assert previews.read(handle.token) is None
    assert previews.outstanding == 0
