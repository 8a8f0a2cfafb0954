"""Admin credential check used by clients to validate a cached PIN."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..dependencies import require_admin
from ..models import VerifyResponse
from ..ratelimit import rate_limit


router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get(
    "/verify",
    response_model=VerifyResponse,
    summary="Validate the admin PIN without mutating anything",
    dependencies=[Depends(rate_limit("auth")), Depends(require_admin)],
)
async def verify_admin() -> VerifyResponse:
    return VerifyResponse(ok=True)
