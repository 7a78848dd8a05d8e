"""Request logging middleware."""

from __future__ import annotations

import time
from typing import Callable

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

access_logger = logger.bind(name="sos.access")


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log one line per request with status and latency."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        access_logger.info(
            "{client} {method} {path} -> {status} ({elapsed:.1f} ms)",
            client=client_ip,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            elapsed=elapsed_ms,
        )
        return response
