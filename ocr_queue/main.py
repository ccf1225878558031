from __future__ import annotations

import logging

from fastapi import FastAPI

from ocr_queue.api.routes import router
from ocr_queue.batch.controller import QueueController
from ocr_queue.core.config import settings
from ocr_queue.core.logging import configure_logging
from ocr_queue.extraction.factory import get_extraction_client


def create_app() -> FastAPI:
    configure_logging(settings.log_level, settings.log_json)
    app = FastAPI(title="Batch OCR Queue", version="0.1.0")
    app.include_router(router)

    @app.get("/")
    async def root():
        return {
            "message": "Welcome to the Batch OCR Queue API",
            "docs": "/docs",
            "health": "/health",
        }

    @app.on_event("startup")
    async def _startup() -> None:
        app.state.controller = QueueController(get_extraction_client())
        logging.getLogger(__name__).info(
            "startup", extra={"extraction_provider": settings.extraction_provider}
        )

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.controller.aclose()

    return app


app = create_app()
