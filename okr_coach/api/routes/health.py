"""
Health check endpoints.
"""

from fastapi import APIRouter, HTTPException

from okr_coach import __version__
from okr_coach.core.config import settings
from okr_coach.persistence.database import check_database_health

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        System health status including database connectivity.
    """
    db_health = await check_database_health(settings.database_path)
    overall_status = "healthy" if db_health["status"] == "healthy" else "unhealthy"

    return {
        "status": overall_status,
        "version": __version__,
        "debug": settings.debug,
        "components": {"database": db_health},
    }


@router.get("/health/ready")
async def readiness():
    """Returns 200 once the database answers queries."""
    db_health = await check_database_health(settings.database_path)
    if db_health["status"] != "healthy":
        raise HTTPException(status_code=503, detail="Database not ready")
    return {"status": "ready"}
