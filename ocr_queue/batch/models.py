from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ocr_queue.batch.preview import PreviewHandle
from ocr_queue.extraction.base_client import ImagePayload


class QueueStatus(str, Enum):
    QUEUED = "Queued"
    PROCESSING = "Processing"
    DONE = "Done"
    ERROR = "Error"

    @property
    def terminal(self) -> bool:
        return self in (QueueStatus.DONE, QueueStatus.ERROR)


@dataclass(eq=False)
class QueueItem:
    """One unit of work. Mutated only through QueueStore.update_status."""

    id: str
    payload: ImagePayload
    preview: PreviewHandle
    status: QueueStatus = QueueStatus.QUEUED
    result: str | None = None     # set iff status == DONE
    failure: str | None = None    # set iff status == ERROR

    @property
    def name(self) -> str:
        return self.payload.name

    def view(self) -> ItemView:
        return ItemView(
            id=self.id,
            name=self.payload.name,
            media_type=self.payload.media_type,
            size_bytes=len(self.payload.data),
            preview_token=self.preview.token,
            status=self.status,
            result=self.result,
            failure=self.failure,
        )


@dataclass(frozen=True)
class ItemView:
    """Read-only, point-in-time copy of a QueueItem for observers."""

    id: str
    name: str
    media_type: str
    size_bytes: int
    preview_token: str
    status: QueueStatus
    result: str | None = None
    failure: str | None = None


@dataclass(frozen=True)
class QueueSnapshot:
    items: tuple[ItemView, ...] = field(default_factory=tuple)
    is_processing: bool = False

    def count(self, status: QueueStatus) -> int:
        return sum(1 for item in self.items if item.status is status)
