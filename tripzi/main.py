"""ASGI entry point: ``uvicorn tripzi.main:app``."""

from fastapi import FastAPI

from tripzi.api.v1 import api_router
from tripzi.core.config import get_settings
from tripzi.core.exception_handlers import register_exception_handlers
from tripzi.core.lifespan import create_lifespan
from tripzi.middleware import RequestIDMiddleware


def create_app() -> FastAPI:
    """Assemble the app. Reads settings at call time, so tests can prepare the env first."""
    settings = get_settings()
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    register_exception_handlers(application)
    application.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)
    application.include_router(api_router, prefix="/api/v1")
    return application


app = create_app()
