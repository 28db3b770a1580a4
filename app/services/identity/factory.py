"""
Contact Creation
"""
import logging
from typing import Optional

from app.core.errors import IdentifyValidationError
from app.services.identity.models import Contact, LinkPrecedence
from app.services.identity.store import ContactStore

logger = logging.getLogger(__name__)


def _require_identifier(email: Optional[str], phone_number: Optional[str]) -> None:
    if email is None and phone_number is None:
        raise IdentifyValidationError("Either email or phoneNumber must be provided")


def create_primary_contact(
    store: ContactStore,
    email: Optional[str] = None,
    phone_number: Optional[str] = None
) -> Contact:
    """Create the root contact of a brand new identity."""
    _require_identifier(email, phone_number)

    contact = store.create(
        email=email,
        phone_number=phone_number,
        linked_id=None,
        link_precedence=LinkPrecedence.PRIMARY
    )
    logger.info(f"Created primary contact {contact.id}")
    return contact


def create_secondary_contact(
    store: ContactStore,
    email: Optional[str],
    phone_number: Optional[str],
    primary_id: int
) -> Contact:
    """Create a contact linked to an existing primary."""
    _require_identifier(email, phone_number)

    contact = store.create(
        email=email,
        phone_number=phone_number,
        linked_id=primary_id,
        link_precedence=LinkPrecedence.SECONDARY
    )
    logger.info(f"Created secondary contact {contact.id} → primary {primary_id}")
    return contact
