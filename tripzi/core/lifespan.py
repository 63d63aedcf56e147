"""Startup and shutdown of the process-wide clients.

The Firestore client lives in tripzi.infrastructure.firebase.client and the
storage backend on app.state.storage; request dependencies read both.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tripzi.core.config import get_settings
from tripzi.infrastructure.external.storage.factory import StorageFactory
from tripzi.infrastructure.firebase.client import close_firebase, init_firebase
from tripzi.shared.telemetry.logging import setup_logging
from tripzi.shared.telemetry.telemetry import start_telemetry, stop_telemetry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Bring up logging, tracing, Firestore and storage; tear down in reverse.

    Missing Firestore or storage never aborts startup. The process keeps
    serving /health and the wipe routes answer 503 until it is fixed.
    """
    settings = get_settings()
    setup_logging()
    if settings.telemetry_enabled:
        start_telemetry(settings, app)

    if not init_firebase():
        logger.error("Firestore unavailable; wipe routes will answer 503")
    try:
        app.state.storage = StorageFactory.create_storage_service(settings)
    except Exception:
        logger.exception("Storage backend %r could not be created", settings.storage_backend)
        app.state.storage = None
    else:
        logger.info("Storage backend %r ready", settings.storage_backend)

    try:
        yield
    finally:
        storage, app.state.storage = app.state.storage, None
        if storage is not None and hasattr(storage, "aclose"):
            await storage.aclose()
        await close_firebase()
        stop_telemetry()
