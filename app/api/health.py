"""
Health and status endpoints.
"""

from datetime import datetime

from fastapi import APIRouter, HTTPException, Request

from app.models.schemas import HealthResponse, StatusResponse

router = APIRouter()


def _service(request: Request):
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Deletion watch service not initialised")
    return service


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint.

    Verifies:
    - API is running
    - Deletion watch service is running
    """
    settings = request.app.state.settings
    service = getattr(request.app.state, "service", None)
    running = service is not None and service.running

    return HealthResponse(
        status="healthy" if running else "degraded",
        timestamp=datetime.now(),
        mode=settings.notification_mode,
        version=settings.api_version
    )


@router.get("/status", response_model=StatusResponse)
async def pipeline_status(request: Request):
    """Queue depth, pending digest, next digest time and delivery counters."""
    return _service(request).status()
