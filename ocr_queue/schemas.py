from __future__ import annotations

from pydantic import BaseModel, Field

from ocr_queue.batch.models import ItemView, QueueSnapshot, QueueStatus


class QueueItemOut(BaseModel):
    id: str
    name: str
    media_type: str
    size_bytes: int
    preview_url: str
    status: QueueStatus
    result: str | None = None
    failure: str | None = None

    @classmethod
    def from_view(cls, view: ItemView) -> QueueItemOut:
        return cls(
            id=view.id,
            name=view.name,
            media_type=view.media_type,
            size_bytes=view.size_bytes,
            preview_url=f"/previews/{view.preview_token}",
            status=view.status,
            result=view.result,
            failure=view.failure,
        )


class QueueSnapshotOut(BaseModel):
    items: list[QueueItemOut] = Field(default_factory=list)
    is_processing: bool

    @classmethod
    def from_snapshot(cls, snapshot: QueueSnapshot) -> QueueSnapshotOut:
        return cls(
            items=[QueueItemOut.from_view(v) for v in snapshot.items],
            is_processing=snapshot.is_processing,
        )
