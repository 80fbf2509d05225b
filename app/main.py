"""ASGI entry point: ``uvicorn app.main:app``."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.batch import build_default_batch_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Started eagerly so a broken table path fails at boot, not on first upload.
    app.state.batch_service = build_default_batch_service()
    logger.info("Batch scoring pool started")
    try:
        yield
    finally:
        app.state.batch_service.shutdown()
        build_default_batch_service.cache_clear()
        logger.info("Batch scoring pool stopped")


def create_app() -> FastAPI:
    configure_logging()
    application = FastAPI(
        title="Soil Health Service",
        description="Soil Health Index scoring for single readings and CSV telemetry batches.",
        version="0.1.0",
        lifespan=lifespan,
    )
    application.include_router(router)
    return application


app = create_app()
