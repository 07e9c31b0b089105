"""
Docsmith Backend: Health Check Route
======================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Checks the database, the blob store and the PDF converter.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   All dependencies operational
    - degraded:  Blob store or PDF converter unavailable (uploads, generation
                 or PDF output will fail, metadata reads still work)
    - unhealthy: Database unreachable

The endpoint always answers 200; the status field carries the verdict.
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from app import __version__
from app.database import engine
from app.schemas.common import HealthResponse
from app.services.blob_storage import blob_storage
from app.services.office_processor import document_processor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the backend service and its dependencies: "
        "database, blob storage and the LibreOffice PDF converter."
    ),
)
async def health_check() -> HealthResponse:
    """
    Probe each dependency with a lightweight check.

    Check details:
        Database:      SELECT 1
        Blob storage:  Supabase bucket listing, or storage root present (local)
        PDF converter: soffice binary found on PATH
    """
    db_status = "connected"
    blob_status = "available"
    pdf_status = "available"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Blob Storage ────────────────────────────────────────────────
    if not await blob_storage.health_check():
        blob_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall
        logger.warning("Health check: blob storage unavailable")

    # ── Check PDF Converter ───────────────────────────────────────────────
    if not await document_processor.health_check():
        pdf_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        blob_storage=blob_status,
        pdf_converter=pdf_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
