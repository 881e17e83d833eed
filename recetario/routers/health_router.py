"""
Health check router.

Provides liveness and readiness probes.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import settings
from ..supabase_client import config as supabase_config

router = APIRouter(prefix="/api/v1", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: str
    service: str = settings.SERVICE_NAME
    version: str = settings.VERSION


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool
    checks: dict
    timestamp: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health_check():
    """
    Basic health check.

    Always returns 200 OK if the service is running.
    """
    return HealthResponse(status="healthy", timestamp=datetime.now(timezone.utc).isoformat())


@router.get("/ready", response_model=ReadinessResponse, summary="Readiness check")
async def readiness_check():
    """
    Readiness check.

    Ready when the Supabase project URL and key and the JWT secret are
    configured. Returns 503 otherwise.
    """
    checks = {
        "supabase": "healthy" if supabase_config.is_configured else "not_configured",
        "jwt_secret": "healthy" if settings.SUPABASE_JWT_SECRET else "not_configured",
    }
    ready = all(check == "healthy" for check in checks.values())
    response = ReadinessResponse(
        ready=ready, checks=checks, timestamp=datetime.now(timezone.utc).isoformat()
    )

    if not ready:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=response.model_dump()
        )
    return response
