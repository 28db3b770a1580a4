"""
Health Check Endpoints
"""
from datetime import datetime, timezone
from fastapi import APIRouter

from app.core.config import settings
from app.models.schemas.health import HealthResponse


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness probe. Does not touch the contact store."""
    return HealthResponse(
        status="OK",
        timestamp=datetime.now(timezone.utc).isoformat(),
        service=settings.service_name
    )
