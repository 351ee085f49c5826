"""
Photo Browser API — Health Check Route
========================================

Liveness probe for load balancers and container health checks. It does not
touch the database, so it stays cheap and never rate limited.
"""

from fastapi import APIRouter

from photo_browser.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="OK", message="Photo Browser API is running")
