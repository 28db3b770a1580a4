"""
Secondary Contact Decision
Decides whether a request adds information that needs its own record
"""
from typing import Iterable, List, Optional

from app.core.errors import DataIntegrityError
from app.services.identity.models import Contact


def needs_secondary_contact(
    contacts: Iterable[Contact],
    email: Optional[str] = None,
    phone_number: Optional[str] = None
) -> bool:
    """
    True when the request carries an identifier the resolved set doesn't have yet.

    With both identifiers, one unseen value is enough. With a single
    identifier, only that one is checked.
    """
    contacts = list(contacts)
    has_email = email is not None and any(c.email == email for c in contacts)
    has_phone = phone_number is not None and any(c.phone_number == phone_number for c in contacts)

    if email is not None and phone_number is not None:
        return not has_email or not has_phone
    if email is not None:
        return not has_email
    if phone_number is not None:
        return not has_phone
    return False


def find_oldest_primary(contacts: Iterable[Contact]) -> Contact:
    """
    Oldest primary contact in the set (ties broken by smallest id).

    Raises:
        DataIntegrityError: if the set has no primary contact at all
    """
    primaries: List[Contact] = [c for c in contacts if c.is_primary]
    if not primaries:
        raise DataIntegrityError("No primary contact found in resolved set")
    return min(primaries, key=lambda c: c.sort_key)
