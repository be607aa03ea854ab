# app/main.py
"""
FastAPI application factory.
Builds the application context, error handlers, middleware, and all routers.

Run with:  uvicorn app.main:create_app --factory --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager
from typing import Optional
import time

from fastapi import FastAPI, Request, Response, status
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.staticfiles import StaticFiles

from app.config import Settings, settings as default_settings
from app.context import build_context
from app.errors import (
    NotFound,
    PayloadTooLarge,
    PersistenceError,
    StorageError,
    ValidationError,
)
from app.routers import events, health, index, ingest
from app.services.media_store import DATA_URL_PREFIX
from app.utils.logger import get_logger

logger = get_logger(__name__)

INGEST_PATH = "/event/new"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    context = build_context(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Motion event recorder starting up...")
        logger.info(f"🗄️  Database: {settings.DATABASE_URL}")
        logger.info(f"📁 Data directory: {context.media.data_dir}")
        logger.info(f"🎞️  Transcoding: {'on' if context.transcoder.available else 'off'}")
        logger.info(f"📱 SMS notifications: {'on' if context.notifier.configured else 'off'}")
        yield
        logger.info("🛑 Motion event recorder shutting down...")
        context.close()

    app = FastAPI(
        title="Motion Event Recorder",
        description="Records motion events (video + still image) uploaded by camera sensors.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.context = context

    # ── Upload Size Cap ──────────────────────────────────────────────────────
    @app.middleware("http")
    async def limit_upload_size(request: Request, call_next):
        """Reject an oversize declared body before the multipart parser reads it."""
        if request.method == "POST" and request.url.path == INGEST_PATH:
            declared = request.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > settings.MAX_UPLOAD_BYTES:
                logger.warning(f"[INGEST] Rejected {declared} byte upload (cap {settings.MAX_UPLOAD_BYTES})")
                return Response(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)
        return await call_next(request)

    # ── Request Timing Middleware ────────────────────────────────────────────
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration = round((time.time() - start) * 1000, 2)
        logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
        return response

    # ── Error Handlers ───────────────────────────────────────────────────────
    # Status code only, never internal detail.
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        logger.warning(f"[INGEST] Rejected: {exc}")
        return Response(status_code=status.HTTP_406_NOT_ACCEPTABLE)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(f"[INGEST] Storage failure: {exc}")
        return Response(status_code=status.HTTP_406_NOT_ACCEPTABLE)

    @app.exception_handler(PayloadTooLarge)
    async def payload_too_large_handler(request: Request, exc: PayloadTooLarge):
        logger.warning(f"[INGEST] Rejected: {exc}")
        return Response(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        logger.error(f"Database failure on {request.url.path}: {exc}")
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")
        return Response(status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(index.router,  tags=["🏠 Index"])
    app.include_router(ingest.router, tags=["📡 Sensor Upload"])
    app.include_router(events.router, prefix="/api/v1", tags=["🎞️  Events"])
    app.include_router(health.router, prefix="/api/v1", tags=["💚 Health"])

    # Serve stored media directly in case we are not behind nginx
    app.mount(DATA_URL_PREFIX, StaticFiles(directory=context.media.data_dir), name="data")

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=default_settings.BACKEND_IP,
        port=default_settings.BACKEND_PORT,
    )
