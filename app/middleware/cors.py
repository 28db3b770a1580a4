"""
CORS Configuration
Cross-Origin Resource Sharing settings for browser clients

SECURITY:
- Origins come from CORS_ALLOWED_ORIGINS (explicit list, never "*")
- NO "null" origin (prevents file:// attacks)
"""
from fastapi.middleware.cors import CORSMiddleware as FastAPICORSMiddleware
from app.core.config import settings


def get_cors_middleware():
    """
    Returns configured CORS middleware with settings-based origins.

    SECURITY:
    - "null" is dropped even if configured (file:// protocol attacks)
    - Only the methods and headers the API actually uses
    """
    allowed_origins = [origin for origin in settings.cors_allowed_origins if origin != "null"]

    return FastAPICORSMiddleware, {
        "allow_origins": allowed_origins,
        "allow_credentials": False,
        "allow_methods": ["GET", "POST", "OPTIONS"],
        "allow_headers": [
            "Content-Type",
            "X-Request-ID",
        ],
        "expose_headers": ["X-Request-ID"],  # Headers frontend can read
        "max_age": 600,  # Cache preflight requests for 10 minutes
    }
