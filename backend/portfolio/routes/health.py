"""Health check endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from ..models import HealthResponse

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Service liveness check")
async def health_check() -> HealthResponse:
    """Return a liveness status with the current server time; no auth, no limits."""

    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))
