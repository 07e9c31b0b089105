"""
Docsmith Backend: Shared Response Schemas
===========================================

What:  Error envelope and health check payload shared by every router.
Who:   ErrorResponse documents the body produced by the global exception
       handlers in main.py; HealthResponse is returned by GET /health.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Body of every non-2xx JSON response.

    Example:
        {
            "success": false,
            "error": "Template not found",
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """
    success: Literal[False] = Field(default=False, description="Always false for errors")
    error: str = Field(description="Short human-readable error message")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class FileDownload(BaseModel):
    """Bytes to stream back to the client as an attachment."""
    content: bytes
    media_type: str
    filename: str


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    blob_storage: str = Field(description="Blob store status: available, unavailable")
    pdf_converter: str = Field(description="LibreOffice availability: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
