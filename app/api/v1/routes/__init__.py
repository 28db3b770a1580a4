"""
API Routes
All v1 API endpoints
"""
from app.api.v1.routes.health import router as health_router
from app.api.v1.routes.identify import router as identify_router

__all__ = [
    "health_router",
    "identify_router",
]
