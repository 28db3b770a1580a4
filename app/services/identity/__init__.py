"""
Identity Reconciliation Service
Links contact records that share an email or phone number into one identity
"""
from app.services.identity.models import Contact, LinkPrecedence
from app.services.identity.store import ContactStore, InMemoryContactStore
from app.services.identity.matcher import find_matching_contacts
from app.services.identity.resolver import resolve_linked_contacts
from app.services.identity.decision import needs_secondary_contact, find_oldest_primary
from app.services.identity.factory import create_primary_contact, create_secondary_contact
from app.services.identity.consolidation import consolidate_contacts
from app.services.identity.formatter import format_contact_view
from app.services.identity.locks import IdentifierLocks
from app.services.identity.service import IdentityService

__all__ = [
    "Contact",
    "LinkPrecedence",
    "ContactStore",
    "InMemoryContactStore",
    "find_matching_contacts",
    "resolve_linked_contacts",
    "needs_secondary_contact",
    "find_oldest_primary",
    "create_primary_contact",
    "create_secondary_contact",
    "consolidate_contacts",
    "format_contact_view",
    "IdentifierLocks",
    "IdentityService"
]
