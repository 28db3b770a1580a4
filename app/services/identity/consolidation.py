"""
Identity Consolidation
Merges components that turn out to belong to the same person
"""
import logging
from typing import List, Set

from app.core.errors import DataIntegrityError
from app.services.identity.decision import find_oldest_primary
from app.services.identity.matcher import find_matching_contacts
from app.services.identity.models import Contact, LinkPrecedence
from app.services.identity.resolver import resolve_linked_contacts
from app.services.identity.store import ContactStore

logger = logging.getLogger(__name__)


def consolidate_contacts(store: ContactStore, contacts: List[Contact]) -> List[Contact]:
    """
    Leave exactly one primary in the resolved set.

    The oldest primary survives. Every other primary is demoted to secondary
    and linked to it, and its own dependents are re-pointed at the survivor so
    no link chain is ever longer than one hop. Nothing is created or deleted.

    Secondaries found linked to anything but the surviving primary (left by
    older data or by a merge that failed halfway) are re-pointed at it too.

    Args:
        store: Contact store
        contacts: Resolved set, possibly spanning several components

    Returns:
        The input unchanged if it had at most one primary and no stale links,
        otherwise the component as it now stands in the store.
    """
    # Re-resolving can surface yet another primary sharing the survivor's
    # identifiers; each pass demotes at least one, so this terminates.
    already_demoted: Set[int] = set()
    while True:
        primaries = [c for c in contacts if c.is_primary]
        if len(primaries) <= 1:
            return _flatten_links(store, contacts)

        canonical = find_oldest_primary(primaries)
        demoted = [p for p in primaries if p.id != canonical.id]

        stuck = already_demoted.intersection(p.id for p in primaries)
        if stuck:
            raise DataIntegrityError(
                f"Contacts {sorted(stuck)} are still primary after being demoted",
                meta={"canonical_id": canonical.id}
            )
        already_demoted.update(p.id for p in demoted)

        # Dependents move first; a secondary never has dependents of its own
        for primary in demoted:
            store.rewrite_links(primary.id, canonical.id)
            store.update(
                primary.id,
                linked_id=canonical.id,
                link_precedence=LinkPrecedence.SECONDARY
            )

        logger.info(
            f"Consolidated primaries {[p.id for p in demoted]} into primary {canonical.id}"
        )

        seeds = find_matching_contacts(store, canonical.email, canonical.phone_number)
        contacts = resolve_linked_contacts(store, seeds)


def _flatten_links(store: ContactStore, contacts: List[Contact]) -> List[Contact]:
    """Point every secondary in a single-primary set straight at that primary."""
    primaries = [c for c in contacts if c.is_primary]
    if len(primaries) != 1:
        return contacts

    root = primaries[0]
    stale_ids = [c.id for c in contacts if c.is_secondary and c.linked_id != root.id]
    if not stale_ids:
        return contacts

    for contact_id in stale_ids:
        store.update(contact_id, linked_id=root.id)
    logger.warning(f"Re-linked contacts {stale_ids} directly to primary {root.id}")

    return [
        c.model_copy(update={"linked_id": root.id}) if c.id in stale_ids else c
        for c in contacts
    ]
