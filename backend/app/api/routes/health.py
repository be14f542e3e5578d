"""Health Routes — process liveness and database readiness.

Invariants:
    - GET /api/v1/health/ answers 200 whenever the process can serve a request
    - GET /api/v1/health/ready answers 503 until a SELECT 1 round trip succeeds

Design Decisions:
    - The manager is read from the database module per request, never captured at import
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])

SERVICE = {"service": "rally-api", "version": "1.0.0"}


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", **SERVICE}


@router.get("/ready")
async def readiness():
    """Ready only when the activity store answers."""
    manager = database.db_manager
    if manager and await manager.health_check():
        return {"status": "ready", "checks": {"database": "healthy"}, **SERVICE}
    logger.warning("Not ready: activity store unreachable")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "reason": "database_unavailable"},
    )
