"""
AntibioStock Backend: Health Check Routes
==========================================

What:  Health check endpoints for monitoring and load balancer probes.
How:   Runs SELECT 1 against the pooled engine and reports the result.
Who:   Called by the hosting platform's health checks and by operators.

    GET /api/health   → always 200; status "healthy" or "unhealthy"
    GET /api/dbcheck  → 200 {"ok": true, "db": true}, or 500 with the error
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from antibiostock import __version__
from antibiostock.database import engine
from antibiostock.schemas.inventory import DbCheckResponse, ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )


@router.get(
    "/dbcheck",
    response_model=DbCheckResponse,
    responses={500: {"description": "Database unreachable", "model": ErrorResponse}},
    summary="Raw database round-trip",
)
async def db_check():
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1 AS ok"))
            value = result.scalar()
    except Exception as e:
        logger.error("DB check failed: %s", str(e))
        return JSONResponse(status_code=500, content={"ok": False, "error": str(e)})
    return DbCheckResponse(ok=True, db=value == 1)
