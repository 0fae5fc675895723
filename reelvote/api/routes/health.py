"""Health probes — liveness always answers; readiness needs the voting database."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from reelvote import __version__
from reelvote.infrastructure import database

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/")
async def health_check():
    return {"status": "healthy", "service": "reelvote-api", "version": __version__}


@router.get("/ready")
async def readiness_check():
    manager = database.db_manager
    if manager is None or not await manager.health_check():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
