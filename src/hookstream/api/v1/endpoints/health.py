"""Health and readiness endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from hookstream.api.v1.dependencies import SessionDep
from hookstream.core.settings import settings
from hookstream.db.time import utcnow

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(db: SessionDep) -> JSONResponse:
    """Report service health; the database must answer ``SELECT 1``."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "error": "Database connection failed"},
        )

    return JSONResponse(
        content={
            "status": "healthy",
            "name": settings.app_name,
            "version": settings.app_version,
            "timestamp": utcnow().isoformat(),
        }
    )


@router.get("/ready")
async def readiness_check() -> dict[str, str]:
    """Readiness probe."""
    return {"status": "ready"}
