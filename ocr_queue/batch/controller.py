"""Queue controller: single-flight, FIFO draining of a batch of images.

Every store mutation publishes a snapshot to subscribers and then runs the
pump. The pump starts the first Queued item unless one is already
Processing, so at most one remote call is outstanding at any time. The
status write to Processing and the task start happen without an ``await``
in between, which makes the guard safe on a single event loop without locks.

Known limitation: an in-flight call cannot be cancelled by ``clear()``; the
clear is refused instead. Only ``aclose()`` (process teardown) cancels it.
"""
from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
import time
from collections.abc import Callable, Iterable

from ocr_queue.batch.models import ItemView, QueueItem, QueueSnapshot, QueueStatus
from ocr_queue.batch.preview import PreviewRegistry
from ocr_queue.batch.store import QueueStore
from ocr_queue.core.errors import InvariantViolation
from ocr_queue.export.aggregator import aggregate
from ocr_queue.extraction.base_client import ExtractionClient, ImagePayload, extract_outcome

logger = logging.getLogger(__name__)

Observer = Callable[[QueueSnapshot], None]

_TRANSITIONS: dict[QueueStatus, frozenset[QueueStatus]] = {
    QueueStatus.QUEUED: frozenset({QueueStatus.PROCESSING}),
    QueueStatus.PROCESSING: frozenset({QueueStatus.DONE, QueueStatus.ERROR}),
    QueueStatus.DONE: frozenset(),
    QueueStatus.ERROR: frozenset(),
}


class QueueController:
    def __init__(self, client: ExtractionClient, previews: PreviewRegistry | None = None) -> None:
        self._client = client
        self._previews = previews if previews is not None else PreviewRegistry()
        self._store = QueueStore(self._previews)
        self._observers: list[Observer] = []
        self._inflight: asyncio.Task[None] | None = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

    # ------------------------------------------------------------------ #
    #  Observation                                                         #
    # ------------------------------------------------------------------ #

    @property
    def previews(self) -> PreviewRegistry:
        return self._previews

    @property
    def is_processing(self) -> bool:
        return self._store.has_status(QueueStatus.PROCESSING) or self._store.has_status(QueueStatus.QUEUED)

    def snapshot(self) -> QueueSnapshot:
        return QueueSnapshot(
            items=tuple(item.view() for item in self._store.items),
            is_processing=self.is_processing,
        )

    def get(self, item_id: str) -> ItemView | None:
        item = self._store.get(item_id)
        return item.view() if item is not None else None

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register *observer* for a snapshot after every mutation; returns an unsubscribe callable."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def aggregate(self) -> str:
        return aggregate(self._store.items)

    # ------------------------------------------------------------------ #
    #  Commands                                                            #
    # ------------------------------------------------------------------ #

    def enqueue(self, payloads: Iterable[ImagePayload]) -> list[ItemView]:
        """Append *payloads* in order and start draining.

        Must be called from a running event loop.
        """
        if self._closed:
            raise RuntimeError("QueueController is closed")
        payloads = list(payloads)
        if not payloads:
            return []
        asyncio.get_running_loop()  # fail before mutating when there is no loop to pump on

        items = self._store.append(payloads)
        self._idle.clear()
        logger.info(
            "items_enqueued",
            extra={"count": len(items), "queue_length": len(self._store)},
        )
        self._changed()
        return [item.view() for item in items]

    def clear(self) -> bool:
        """Discard the whole batch. Refused (returns False) while an item is Processing."""
        if self._store.has_status(QueueStatus.PROCESSING):
            logger.warning("clear_rejected_processing", extra={"queue_length": len(self._store)})
            return False
        released = self._store.clear()
        logger.info("queue_cleared", extra={"released_previews": released})
        self._changed()
        return True

    async def wait_idle(self) -> None:
        """Return once the pump has found nothing left to start."""
        await self._idle.wait()

    async def aclose(self) -> None:
        """Teardown: cancel any in-flight call and release every preview."""
        if self._closed:
            return
        self._closed = True
        task = self._inflight
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        released = self._store.clear()
        self._idle.set()
        self._publish()
        logger.info("controller_closed", extra={"released_previews": released})

    # ------------------------------------------------------------------ #
    #  Pump                                                                #
    # ------------------------------------------------------------------ #

    def _changed(self) -> None:
        self._publish()
        self._pump()

    def _publish(self) -> None:
        if not self._observers:
            return
        snapshot = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("observer_failed")

    def _pump(self) -> None:
        if self._closed:
            return
        # Re-entrancy guard: the Processing write below re-enters here and stops.
        if self._store.has_status(QueueStatus.PROCESSING):
            return

        item = self._store.find_first(QueueStatus.QUEUED)
        if item is None:
            if not self._idle.is_set():
                logger.info("queue_idle", extra={"queue_length": len(self._store)})
                self._idle.set()
            return

        self._transition(item.id, QueueStatus.PROCESSING)
        task = asyncio.get_running_loop().create_task(self._process(item), name=f"ocr-item-{item.id}")
        task.add_done_callback(functools.partial(self._on_task_done, item.id))
        self._inflight = task

    async def _process(self, item: QueueItem) -> None:
        logger.info("item_processing_started", extra={"item_id": item.id, "upload_filename": item.name})
        t0 = time.monotonic()

        outcome = await extract_outcome(self._client, item.payload)

        duration_ms = int((time.monotonic() - t0) * 1000)
        if outcome.ok:
            logger.info(
                "item_completed",
                extra={"item_id": item.id, "upload_filename": item.name, "duration_ms": duration_ms},
            )
            self._transition(item.id, QueueStatus.DONE, result=outcome.text)
        else:
            logger.warning(
                "item_failed",
                extra={
                    "item_id": item.id,
                    "upload_filename": item.name,
                    "duration_ms": duration_ms,
                    "error": outcome.failure,
                },
            )
            self._transition(item.id, QueueStatus.ERROR, failure=outcome.failure)

    def _transition(
        self,
        item_id: str,
        status: QueueStatus,
        *,
        result: str | None = None,
        failure: str | None = None,
    ) -> None:
        item = self._store.get(item_id)
        if item is None:
            logger.warning("status_update_dropped", extra={"item_id": item_id, "status": status.value})
            return

        if status not in _TRANSITIONS[item.status]:
            raise InvariantViolation(f"Illegal transition {item.status.value} -> {status.value} for {item_id}")
        if (status is QueueStatus.DONE) != (result is not None) or (status is QueueStatus.ERROR) != (failure is not None):
            raise InvariantViolation(f"{status.value} requires exactly the matching result/failure field")

        self._store.update_status(item_id, status, result=result, failure=failure)
        self._changed()

    def _on_task_done(self, item_id: str, task: asyncio.Task[None]) -> None:
        if task.cancelled() or self._closed:
            return
        exc = task.exception()
        if exc is None:
            return

        logger.error("item_task_crashed", extra={"item_id": item_id}, exc_info=exc)
        # A crashed task must not leave its item Processing, or the pump stalls for good
        item = self._store.get(item_id)
        if item is not None and item.status is QueueStatus.PROCESSING:
            self._transition(item_id, QueueStatus.ERROR, failure=f"Internal error: {exc}")
        else:
            self._pump()
