"""
Health and error response models
"""
from typing import Optional
from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness probe response"""
    status: str = Field(..., description="Always 'OK' while the process serves requests")
    timestamp: str = Field(..., description="Current server time (ISO-8601, UTC)")
    service: str = Field(..., description="Service name")


class ErrorResponse(BaseModel):
    """Error body shared by every non-2xx response"""
    error: str
    message: Optional[str] = None
