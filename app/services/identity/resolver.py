"""
Linked-Set Resolution
Expands matched contacts into the full identity component(s) they belong to
"""
import logging
from collections import deque
from typing import Deque, Dict, Iterable, List, Set

from app.services.identity.models import Contact
from app.services.identity.store import ContactStore

logger = logging.getLogger(__name__)


def resolve_linked_contacts(store: ContactStore, seeds: Iterable[Contact]) -> List[Contact]:
    """
    Collect every contact connected to the seeds through the link graph.

    Algorithm:
    1. For each seed, find its primary: a primary seed is its own root, a
       secondary seed is followed through linked_id
    2. Breadth-first over root ids: fetch the root plus every contact linked
       to it, and queue the linked_id of any fetched root that turns out to be
       secondary (an unflattened chain)
    3. Deduplicate by id

    A visited set bounds the traversal, so inconsistent or cyclic store data
    cannot make it loop.

    Args:
        store: Contact store
        seeds: Contacts returned by the matcher

    Returns:
        Component members ordered by (created_at, id). Spans two components
        when email and phone each matched a different existing identity.
    """
    contacts: Dict[int, Contact] = {}
    queue: Deque[int] = deque()

    for seed in seeds:
        if seed.is_deleted:
            continue
        contacts.setdefault(seed.id, seed)
        queue.extend(_walk_to_root(store, seed, contacts))

    visited: Set[int] = set()
    while queue:
        root_id = queue.popleft()
        if root_id in visited:
            continue
        visited.add(root_id)

        for contact in store.find_by_root_or_id(root_id):
            if contact.is_deleted:
                continue
            contacts.setdefault(contact.id, contact)
            if contact.id == root_id and contact.is_secondary and contact.linked_id is not None:
                logger.warning(
                    f"Contact {contact.id} is linked to {contact.linked_id} but has dependents; "
                    f"following the chain"
                )
                queue.append(contact.linked_id)

    resolved = sorted(contacts.values(), key=lambda c: c.sort_key)
    logger.debug(f"Resolved {len(resolved)} contact(s) across {len(visited)} root id(s)")
    return resolved


def _walk_to_root(store: ContactStore, contact: Contact, contacts: Dict[int, Contact]) -> List[int]:
    """
    Follow linked_id pointers up to a primary contact.

    Returns the ids to expand: the root, preceded by any secondary contact
    met on the way (those only exist in unflattened data and may have
    dependents of their own).
    """
    anchors: List[int] = []
    current = contact
    seen = {contact.id}

    while current.is_secondary and current.linked_id is not None:
        if current.linked_id in seen:
            logger.warning(f"Link cycle detected at contact {current.id}")
            break

        parent = store.find_by_id(current.linked_id)
        if parent is None:
            # Root missing or soft-deleted; its dependents are still gathered under its id
            logger.warning(f"Contact {current.id} links to missing contact {current.linked_id}")
            anchors.append(current.linked_id)
            return anchors

        contacts.setdefault(parent.id, parent)
        seen.add(parent.id)
        current = parent
        if current.is_secondary:
            anchors.append(current.id)

    if not anchors or anchors[-1] != current.id:
        anchors.append(current.id)
    return anchors
