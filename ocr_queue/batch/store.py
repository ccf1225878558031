from __future__ import annotations

import uuid
from collections.abc import Iterable

from ocr_queue.batch.models import QueueItem, QueueStatus
from ocr_queue.batch.preview import PreviewRegistry
from ocr_queue.extraction.base_client import ImagePayload


class QueueStore:
    """Ordered item container. Holds no transition rules; QueueController owns those."""

    def __init__(self, previews: PreviewRegistry) -> None:
        self._previews = previews
        self._items: list[QueueItem] = []
        self._index: dict[str, QueueItem] = {}

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> tuple[QueueItem, ...]:
        return tuple(self._items)

    def get(self, item_id: str) -> QueueItem | None:
        return self._index.get(item_id)

    def find_first(self, status: QueueStatus) -> QueueItem | None:
        return next((item for item in self._items if item.status is status), None)

    def has_status(self, status: QueueStatus) -> bool:
        return self.find_first(status) is not None

    def append(self, payloads: Iterable[ImagePayload]) -> list[QueueItem]:
        added: list[QueueItem] = []
        for payload in payloads:
            item = QueueItem(
                id=uuid.uuid4().hex,
                payload=payload,
                preview=self._previews.acquire(payload),
            )
            self._items.append(item)
            self._index[item.id] = item
            added.append(item)
        return added

    def update_status(
        self,
        item_id: str,
        status: QueueStatus,
        *,
        result: str | None = None,
        failure: str | None = None,
    ) -> bool:
        """Write a status; returns False when the id is no longer in the store."""
        item = self._index.get(item_id)
        if item is None:
            return False
        item.status = status
        item.result = result
        item.failure = failure
        return True

    def clear(self) -> int:
        """Drop every item, then release its preview. Returns the number released."""
        dropped = self._items
        self._items = []
        self._index = {}
        for item in dropped:
            item.preview.release()
        return len(dropped)
