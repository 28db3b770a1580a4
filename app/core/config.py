"""
Unified Configuration
All environment variables and settings in one place

STORE BACKENDS:
- memory: In-process store (development, tests). Data is lost on restart.
- supabase: Contacts table in Supabase PostgreSQL (production).
"""
from typing import List, Optional
import logging
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("memory", "supabase")


class Settings(BaseSettings):
    """
    Unified application settings.
    Validates all environment variables at startup.
    """

    # ============================================================================
    # SERVER
    # ============================================================================

    environment: str = Field(default="production", description="Environment: dev/staging/production/test")
    port: int = Field(default=8080, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    service_name: str = Field(default="Identity Reconciliation", description="Service name reported by /health")

    # ============================================================================
    # CONTACT STORE
    # ============================================================================

    contact_store_backend: str = Field(default="memory", description="Contact store backend: memory/supabase")
    supabase_url: Optional[str] = Field(default=None, description="Supabase project URL")
    supabase_service_key: Optional[str] = Field(default=None, description="Supabase service key")
    contacts_table: str = Field(default="contact", description="Supabase table holding contact records")

    # ============================================================================
    # IDENTIFY ENDPOINT
    # ============================================================================

    identify_rate_limit: str = Field(default="120/minute", description="Rate limit for POST /identify (per client IP)")
    identify_lock_retries: int = Field(default=5, description="Attempts to lock a stable set of primary contacts")

    # ============================================================================
    # HTTP
    # ============================================================================

    cors_allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Origins allowed by CORS"
    )

    # ============================================================================
    # PRODUCTION INFRASTRUCTURE
    # ============================================================================

    # Error tracking (Sentry)
    sentry_dsn: Optional[str] = Field(default=None, description="Sentry DSN for error tracking")

    @field_validator("contact_store_backend")
    @classmethod
    def validate_store_backend(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in STORE_BACKENDS:
            raise ValueError(f"contact_store_backend must be one of {STORE_BACKENDS}, got {value!r}")
        return value

    @field_validator("identify_lock_retries")
    @classmethod
    def validate_lock_retries(cls, value: int) -> int:
        if value < 1:
            raise ValueError("identify_lock_retries must be at least 1")
        return value

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
