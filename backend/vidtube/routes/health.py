"""
VidTube Backend — Health Check Route
=====================================

What:  Liveness/readiness probe for load balancers and Docker.
How:   SELECT 1 against the store and the media host's own health check.

Status levels:
    - healthy:   store and media host reachable
    - degraded:  media host unreachable; reads still work
    - unhealthy: store unreachable
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from vidtube import __version__
from vidtube.database import engine
from vidtube.schemas import HealthResponse
from vidtube.services.media_service import media_host

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    media_status = "available"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not await media_host.health_check():
        media_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        media_host=media_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
