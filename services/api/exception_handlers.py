"""FastAPI exception handlers for custom exceptions."""

from __future__ import annotations

from fastapi import Request, status
from fastapi.exception_handlers import http_exception_handler as default_http_exception_handler
from fastapi.responses import PlainTextResponse, Response
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import (
    ConfigurationError,
    NotFoundError,
    SosError,
    StorageError,
    ValidationError,
)


async def sos_exception_handler(request: Request, exc: SosError) -> PlainTextResponse:
    """Handle SOS errors the route did not translate itself."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (ConfigurationError, StorageError)):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.warning(
        "SOS exception on {method} {path}: {type} - {message}",
        method=request.method,
        path=request.url.path,
        type=type(exc).__name__,
        message=exc.message,
        details=exc.details,
    )
    return PlainTextResponse(exc.message, status_code=status_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Answer 405 with a plain-text body naming the method; defer everything else."""
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return PlainTextResponse(
            f"method not allowed: {request.method}",
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            headers=exc.headers,
        )
    return await default_http_exception_handler(request, exc)


__all__ = ["http_exception_handler", "sos_exception_handler"]
