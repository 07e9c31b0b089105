# Middleware package init
"""
Docsmith Backend: Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID for logs and error bodies
    2. Logging: one access line per request, tagged with that ID
    3. GZip / CORS: FastAPI's stock middlewares

    Responses pass back through the chain in reverse order, which is where
    the X-Request-ID header and the logged status/duration are filled in.
"""
