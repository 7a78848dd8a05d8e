from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import SosError
from core.logging_config import setup_logging
from core.settings import Settings, get_settings
from core.storage import StorageBackend, create_backend
from services.api.exception_handlers import http_exception_handler, sos_exception_handler
from services.api.middleware import AccessLogMiddleware
from services.api.routes import router as buckets_router


def create_app(settings: Settings | None = None, backend: StorageBackend | None = None) -> FastAPI:
    """Build the API around a single storage backend.

    The backend is resolved once here (from ``settings.storage`` unless one is
    passed in) and handed to every request through ``app.state``.
    """
    settings = settings or get_settings()

    setup_logging(
        level=settings.logging.level,
        json_format=settings.logging.json_format,
        log_file=settings.logging.file,
    )

    if backend is None:
        backend = create_backend(settings.storage)

    app = FastAPI(
        title="SOS API",
        version="0.1.0",
        description="Simple object storage: buckets and keyed byte blobs over HTTP",
    )
    app.state.settings = settings
    app.state.backend = backend

    app.add_middleware(AccessLogMiddleware)

    @app.get("/healthz", tags=["meta"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    # Register exception handlers
    app.add_exception_handler(SosError, sos_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
        logger.opt(exception=exc).error("Unhandled exception on {path}", path=request.url.path)
        return PlainTextResponse(f"{type(exc).__name__}: {exc}", status_code=500)

    app.include_router(buckets_router)

    logger.info(
        "API initialised with backend={backend}",
        backend=type(backend).__name__,
    )
    return app


__all__ = ["create_app"]
