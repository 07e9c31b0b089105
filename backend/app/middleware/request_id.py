"""
Docsmith Backend: Request ID Middleware
=========================================

What:  Assigns a correlation ID to each incoming request and echoes it back.
How:   Accepts the client's X-Request-ID when it is a short token of safe
       characters, otherwise generates an 8-character hex ID. The ID lives in
       a ContextVar and in request.state, and is set on the response header.
Who:   Applied to every request via Starlette middleware.
When:  Outermost of the application middlewares, so the access log and the
       exception handlers can read the ID.

Every error body carries the same ID as "request_id", so a client report
can be matched to the server log lines of that request.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Client IDs end up in log lines; anything else is replaced
CLIENT_ID_PATTERN = re.compile(r"[A-Za-z0-9._:-]{1,64}")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def accept_request_id(value: str) -> str:
    """The client's ID if usable, else a fresh one."""
    if value and CLIENT_ID_PATTERN.fullmatch(value):
        return value
    return new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Accepts or creates X-Request-ID and exposes it to loggers and handlers."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = accept_request_id(request.headers.get(REQUEST_ID_HEADER, ""))
        token = request_id_var.set(request_id)
        request.state.request_id = request_id
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
