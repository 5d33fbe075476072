"""Health check endpoints."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from audiostory.services.errors import StoreUnavailable

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
    voice: str
    in_flight_stories: int


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Check application health status.

    Returns:
        Health status including store connectivity and voice mode.
    """
    settings = request.app.state.settings

    # Check database
    db_status = "healthy"
    store = getattr(request.app.state, "store", None)
    if store is None:
        db_status = "not initialized"
    else:
        try:
            await store.ping()
        except StoreUnavailable:
            db_status = "error"

    voice_status = "elevenlabs" if settings.has_elevenlabs_key() else "silent fallback"
    pipeline = getattr(request.app.state, "pipeline", None)

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        version=settings.app_version,
        database=db_status,
        voice=voice_status,
        in_flight_stories=pipeline.in_flight if pipeline else 0,
    )


@router.get("/ready")
async def readiness_check() -> dict:
    """Kubernetes readiness probe.

    Returns:
        Simple ready status.
    """
    return {"ready": True}


@router.get("/live")
async def liveness_check() -> dict:
    """Kubernetes liveness probe.

    Returns:
        Simple alive status.
    """
    return {"alive": True}
