from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile
from fastapi.responses import PlainTextResponse

from ocr_queue.batch.controller import QueueController
from ocr_queue.capture.uploads import build_payload
from ocr_queue.core.config import settings
from ocr_queue.core.errors import UnsupportedUpload
from ocr_queue.export.aggregator import EXPORT_FILENAME
from ocr_queue.schemas import QueueItemOut, QueueSnapshotOut

logger = logging.getLogger(__name__)
router = APIRouter()


def get_controller(request: Request) -> QueueController:
    return request.app.state.controller


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/queue", response_model=QueueSnapshotOut)
async def enqueue_files(
    files: list[UploadFile] = File(...),
    wait: bool = False,
    controller: QueueController = Depends(get_controller),
) -> QueueSnapshotOut:
    # Validate the whole request first so a bad file enqueues nothing
    payloads = []
    for upload in files:
        if not upload.filename:
            raise HTTPException(status_code=400, detail="Missing filename")
        data = await upload.read()
        try:
            payloads.append(
                build_payload(upload.filename, data, upload.content_type, max_bytes=settings.max_upload_bytes)
            )
        except UnsupportedUpload as exc:
            logger.info("upload_rejected", extra={"upload_filename": upload.filename, "reason": str(exc)})
            raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

    controller.enqueue(payloads)
    if wait:
        await controller.wait_idle()
    return QueueSnapshotOut.from_snapshot(controller.snapshot())


@router.get("/queue", response_model=QueueSnapshotOut)
async def get_queue(controller: QueueController = Depends(get_controller)) -> QueueSnapshotOut:
    return QueueSnapshotOut.from_snapshot(controller.snapshot())


@router.get("/queue/{item_id}", response_model=QueueItemOut)
async def get_queue_item(item_id: str, controller: QueueController = Depends(get_controller)) -> QueueItemOut:
    view = controller.get(item_id)
    if view is None:
        raise HTTPException(status_code=404, detail="Queue item not found")
    return QueueItemOut.from_view(view)


@router.delete("/queue", response_model=QueueSnapshotOut)
async def clear_queue(controller: QueueController = Depends(get_controller)) -> QueueSnapshotOut:
    if not controller.clear():
        raise HTTPException(status_code=409, detail="Cannot clear the queue while an item is processing")
    return QueueSnapshotOut.from_snapshot(controller.snapshot())


@router.get("/export")
async def export_text(download: bool = False, controller: QueueController = Depends(get_controller)) -> Response:
    text = controller.aggregate()
    if not text:
        return Response(status_code=204)
    headers = {"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'} if download else None
    return PlainTextResponse(text, headers=headers)


@router.get("/previews/{token}")
async def get_preview(token: str, controller: QueueController = Depends(get_controller)) -> Response:
    blob = controller.previews.read(token)
    if blob is None:
        raise HTTPException(status_code=404, detail="Preview not found")
    data, media_type = blob
    return Response(content=data, media_type=media_type)
