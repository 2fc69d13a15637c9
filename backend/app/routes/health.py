"""
Vistoria Naval API — Health Check Route
=========================================

What:  Health check endpoint for monitoring and load balancer checks.
Why:   Load balancers route away from instances that cannot serve requests.
How:   Probes the database, the photo storage directory and the ViaCEP
       circuit breaker state; never calls ViaCEP itself.
Who:   Called by Docker health checks, load balancers and monitoring systems.

Status levels:
    - healthy:   All dependencies operational (HTTP 200)
    - degraded:  Storage or CEP lookup unavailable (HTTP 200)
    - unhealthy: Database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from app import __version__
from app.database import engine
from app.schemas.common import HealthResponse
from app.services.cep_service import cep_service
from app.services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the backend service and its dependencies. "
        "Answers 503 when the database is unreachable."
    ),
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    storage_status = "writable"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Storage ─────────────────────────────────────────────────────
    if not storage_service.health_check():
        storage_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall
        logger.warning("Health check: storage root not writable")

    # ── Check CEP circuit ─────────────────────────────────────────────────
    cep_status = await cep_service.health_check()
    if cep_status == "open":
        overall = "degraded" if overall != "unhealthy" else overall

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        cep_service=cep_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
