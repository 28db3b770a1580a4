"""
Dependency Injection
Builds the contact store at startup and hands it to routes via FastAPI dependencies

The store lives on `app.state`; nothing in the identity core reads a global client.
"""
import logging
from fastapi import Request

from app.core.config import Settings
from app.core.errors import StoreError
from app.services.identity.locks import IdentifierLocks
from app.services.identity.service import IdentityService
from app.services.identity.store import ContactStore, InMemoryContactStore

logger = logging.getLogger(__name__)


# ============================================================================
# STORE LIFECYCLE
# ============================================================================

def open_contact_store(settings: Settings) -> ContactStore:
    """Create the contact store selected by CONTACT_STORE_BACKEND."""
    if settings.contact_store_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise StoreError("SUPABASE_URL and SUPABASE_SERVICE_KEY are required for the supabase backend")

        from app.services.identity.supabase_store import SupabaseContactStore
        return SupabaseContactStore.connect(
            settings.supabase_url,
            settings.supabase_service_key,
            table=settings.contacts_table
        )

    logger.info("🧪 Using in-memory contact store (data is lost on restart)")
    return InMemoryContactStore()


def initialize_clients(app, settings: Settings) -> None:
    """Open the store and build the identity service at startup."""
    store = open_contact_store(settings)
    app.state.contact_store = store
    app.state.identity_service = IdentityService(
        store,
        locks=IdentifierLocks(),
        lock_retries=settings.identify_lock_retries
    )
    logger.info(f"✅ Identity service ready ({settings.contact_store_backend} store)")


def shutdown_clients(app) -> None:
    """Close the store at shutdown."""
    store = getattr(app.state, "contact_store", None)
    if store is not None:
        store.close()
        app.state.contact_store = None
        app.state.identity_service = None
        logger.info("✅ Contact store closed")


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================

def get_identity_service(request: Request) -> IdentityService:
    """Get the identity service built at startup."""
    service = getattr(request.app.state, "identity_service", None)
    if service is None:
        raise RuntimeError("Identity service not initialized")
    return service
