"""
Identity View Formatting
Reduces a consolidated component to the externally visible identity
"""
from typing import Iterable

from app.core.errors import DataIntegrityError
from app.models.schemas.identify import ContactView, IdentifyResponse
from app.services.identity.models import Contact


def format_contact_view(contacts: Iterable[Contact]) -> IdentifyResponse:
    """
    Build the canonical identity view of a component.

    Emails and phone numbers are deduplicated and sorted lexicographically
    across the whole component, primary's values included. Secondary ids are
    sorted numerically.

    Raises:
        DataIntegrityError: if the component doesn't have exactly one primary
    """
    contacts = [c for c in contacts if not c.is_deleted]
    primaries = [c for c in contacts if c.is_primary]

    if len(primaries) != 1:
        raise DataIntegrityError(
            f"Expected exactly one primary contact, found {len(primaries)}",
            meta={"primary_ids": sorted(c.id for c in primaries)}
        )

    return IdentifyResponse(
        contact=ContactView(
            primary_contact_id=primaries[0].id,
            emails=sorted({c.email for c in contacts if c.email is not None}),
            phone_numbers=sorted({c.phone_number for c in contacts if c.phone_number is not None}),
            secondary_contact_ids=sorted(c.id for c in contacts if c.is_secondary),
        )
    )
