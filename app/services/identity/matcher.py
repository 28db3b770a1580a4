"""
Identity Matching
Finds the contacts that directly share an identifier with a request
"""
import logging
from typing import List, Optional

from app.services.identity.models import Contact
from app.services.identity.store import ContactStore

logger = logging.getLogger(__name__)


def find_matching_contacts(
    store: ContactStore,
    email: Optional[str] = None,
    phone_number: Optional[str] = None
) -> List[Contact]:
    """
    Find every non-deleted contact whose email OR phone number equals the
    requested one.

    Only the identifiers actually present are used as filters, so a request
    with just an email never matches contacts that merely lack a phone.

    Args:
        store: Contact store
        email: Requested email (optional)
        phone_number: Requested phone number as text (optional)

    Returns:
        Matching contacts, oldest first. Empty if nothing matches.
    """
    if email is None and phone_number is None:
        return []

    matches = store.find_by_identifiers(email=email, phone_number=phone_number)
    matches = sorted((c for c in matches if not c.is_deleted), key=lambda c: c.sort_key)

    logger.debug(f"Matched {len(matches)} contact(s) for email={email!r} phone={phone_number!r}")
    return matches
