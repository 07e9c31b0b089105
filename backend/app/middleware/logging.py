"""
Docsmith Backend: Request Logging Middleware
==============================================

What:  One access log line per HTTP request on the "docsmith.access" logger.
When:  Runs inside RequestIDMiddleware, so the request ID is already set.

Example:
    2024-01-15T12:00:00 [INFO] docsmith.access: [a1b2c3d4] POST /api/documents/generate → 200 (2314.5ms, 18231 bytes)

Not logged: request bodies and uploaded file contents (templates routinely
carry customer data), and GET /health (probed every few seconds).

A request whose handler raised past the exception handlers is logged as
500 before the error propagates to ServerErrorMiddleware.

Typical durations:
    - GET /api/templates: 10-50ms (one query)
    - POST /api/templates: 100-500ms (parse + blob upload)
    - POST /api/documents/generate with pdf: 1-5s (LibreOffice dominates)
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("docsmith.access")

UNLOGGED_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status, duration and response size per request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in UNLOGGED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._log(request, 500, started, size="-")
            raise

        self._log(
            request,
            response.status_code,
            started,
            size=response.headers.get("content-length", "-"),
        )
        return response

    @staticmethod
    def _log(request: Request, status: int, started: float, size: str) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        request_id = request_id_var.get()
        logger.log(
            level_for_status(status),
            "[%s] %s %s → %d (%.1fms, %s bytes)",
            request_id,
            request.method,
            request.url.path,
            status,
            elapsed_ms,
            size,
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(elapsed_ms, 2),
                "client_ip": request.client.host if request.client else None,
            },
        )
