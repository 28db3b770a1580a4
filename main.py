"""
Identity Reconciliation Backend
===============================
FastAPI service that links contact records sharing an email or phone number
into a single identity and returns its consolidated view.

Architecture:
- app/core/: Configuration, dependencies, errors
- app/middleware/: Error handling, logging, CORS, rate limiting
- app/models/: Pydantic schemas
- app/services/identity/: Matching, linking, consolidation, stores
- app/api/v1/routes/: API endpoints

Version: 1.0.0
"""
import sys
import logging
import traceback
from contextlib import asynccontextmanager
from fastapi import FastAPI

# Startup error handling
try:
    # Import core components
    from app.core.config import settings
    from app.core.dependencies import initialize_clients, shutdown_clients

    # Import middleware
    from app.middleware.error_handler import register_exception_handlers
    from app.middleware.logging import RequestLoggingMiddleware
    from app.middleware.security_headers import SecurityHeadersMiddleware
    from app.middleware.cors import get_cors_middleware
    from app.middleware.rate_limit import limiter

    # Import routes
    from app.api.v1.routes import health_router, identify_router
except Exception as e:
    print(f"🚨 FATAL STARTUP ERROR: {e}", file=sys.stderr)
    print(f"Traceback:\n{traceback.format_exc()}", file=sys.stderr)
    sys.exit(1)

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.environment == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# ============================================================================
# SENTRY ERROR TRACKING
# ============================================================================

if settings.sentry_dsn:
    try:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,  # 10% of requests for performance monitoring
            integrations=[
                FastApiIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)
            ]
        )
        logger.info("✅ Sentry error tracking initialized")
    except Exception as e:
        logger.warning(f"⚠️  Failed to initialize Sentry: {e}")
else:
    logger.info("ℹ️  Sentry not configured (SENTRY_DSN not set)")


# ============================================================================
# LIFECYCLE MANAGEMENT
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    # Startup
    logger.info("=" * 80)
    logger.info(f"Starting {settings.service_name}")
    logger.info("=" * 80)
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Port: {settings.port}")
    logger.info(f"Debug: {settings.debug}")

    initialize_clients(app, settings)

    logger.info(f"📊 Health check: http://localhost:{settings.port}/health")
    logger.info(f"🔍 Identify endpoint: http://localhost:{settings.port}/identify")
    logger.info("✅ Application started successfully")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    shutdown_clients(app)
    logger.info("✅ Application shutdown complete")


# ============================================================================
# APP INITIALIZATION
# ============================================================================

app = FastAPI(
    title="Identity Reconciliation API",
    description="Links contacts that share an email or phone number into one identity",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,  # Disable docs in production
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

# ============================================================================
# RATE LIMITING
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
logger.info(f"✅ Rate limiting enabled ({settings.identify_rate_limit} on /identify)")

# ============================================================================
# ERROR HANDLING
# ============================================================================

register_exception_handlers(app)

# ============================================================================
# MIDDLEWARE
# ============================================================================

# Security headers (must be first to apply to all responses)
app.add_middleware(SecurityHeadersMiddleware)

# CORS (after security headers)
cors_middleware, cors_config = get_cors_middleware()
app.add_middleware(cors_middleware, **cors_config)

# Request logging
app.add_middleware(RequestLoggingMiddleware)

# ============================================================================
# ROUTES
# ============================================================================

app.include_router(health_router)
app.include_router(identify_router)

# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
        log_level="info"
    )
