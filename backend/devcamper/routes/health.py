"""
DevCamper Backend — Health Check Route
========================================

What:  GET /health for container probes and monitoring.
How:   Runs SELECT 1 against the database and reports the geocoder circuit
       state without calling the provider.

Status levels:
    healthy    database reachable, geocoder circuit closed       → 200
    degraded   database reachable, geocoder circuit not closed   → 200
    unhealthy  database unreachable                              → 503
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from devcamper import __version__
from devcamper.database import engine
from devcamper.schemas.common import HealthResponse
from devcamper.services.geocoder_service import CircuitBreaker, geocoder_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", e)

    geocoder_state = geocoder_service.circuit_breaker.state
    if geocoder_state != CircuitBreaker.CLOSED and overall == "healthy":
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        geocoder=geocoder_state,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
