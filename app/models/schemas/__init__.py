"""
API Schemas
Pydantic models for all API endpoints
"""
from app.models.schemas.identify import IdentifyRequest, ContactView, IdentifyResponse
from app.models.schemas.health import HealthResponse, ErrorResponse

__all__ = [
    # Identify models
    "IdentifyRequest",
    "ContactView",
    "IdentifyResponse",

    # Health / error models
    "HealthResponse",
    "ErrorResponse",
]
