"""
Contact Store
Abstract persistence contract used by the identity core, plus the in-memory
implementation used for development and tests.
"""
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.services.identity.models import Contact, LinkPrecedence

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ContactStore(ABC):
    """
    Keyed storage of contact records.

    Every query method excludes soft-deleted contacts.
    """

    @abstractmethod
    def find_by_identifiers(
        self,
        email: Optional[str] = None,
        phone_number: Optional[str] = None
    ) -> List[Contact]:
        """Contacts whose email OR phone number matches, oldest first."""

    @abstractmethod
    def find_by_root_or_id(self, root_id: int) -> List[Contact]:
        """Contacts with linked_id == root_id, plus the contact with id == root_id."""

    @abstractmethod
    def find_by_id(self, contact_id: int) -> Optional[Contact]:
        """A single contact, or None if missing or soft-deleted."""

    @abstractmethod
    def create(
        self,
        email: Optional[str],
        phone_number: Optional[str],
        linked_id: Optional[int],
        link_precedence: LinkPrecedence
    ) -> Contact:
        """Insert a new contact and return it with id and timestamps assigned."""

    @abstractmethod
    def update(
        self,
        contact_id: int,
        linked_id: Optional[int] = None,
        link_precedence: Optional[LinkPrecedence] = None
    ) -> None:
        """Set linked_id and/or link_precedence and bump updated_at."""

    @abstractmethod
    def rewrite_links(self, old_root_id: int, new_root_id: int) -> None:
        """Point every contact linked to old_root_id at new_root_id instead."""

    def close(self) -> None:
        """Release any underlying resources."""


class InMemoryContactStore(ContactStore):
    """Thread-safe dict-backed store. Ids start at 1 and never repeat."""

    def __init__(self):
        self._contacts: Dict[int, Contact] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def _active(self) -> List[Contact]:
        return [c for c in self._contacts.values() if not c.is_deleted]

    def find_by_identifiers(self, email=None, phone_number=None):
        with self._lock:
            matches = [
                c for c in self._active()
                if (email is not None and c.email == email)
                or (phone_number is not None and c.phone_number == phone_number)
            ]
        return sorted(matches, key=lambda c: c.sort_key)

    def find_by_root_or_id(self, root_id):
        with self._lock:
            matches = [c for c in self._active() if c.id == root_id or c.linked_id == root_id]
        return sorted(matches, key=lambda c: c.sort_key)

    def find_by_id(self, contact_id):
        with self._lock:
            contact = self._contacts.get(contact_id)
        if contact is None or contact.is_deleted:
            return None
        return contact

    def create(self, email, phone_number, linked_id, link_precedence):
        with self._lock:
            now = utc_now()
            contact = Contact(
                id=next(self._ids),
                email=email,
                phone_number=phone_number,
                linked_id=linked_id,
                link_precedence=link_precedence,
                created_at=now,
                updated_at=now,
            )
            self._contacts[contact.id] = contact
        return contact

    def update(self, contact_id, linked_id=None, link_precedence=None):
        changes = {"updated_at": utc_now()}
        if linked_id is not None:
            changes["linked_id"] = linked_id
        if link_precedence is not None:
            changes["link_precedence"] = link_precedence
        with self._lock:
            contact = self._contacts.get(contact_id)
            if contact is None:
                logger.warning(f"Update skipped, contact {contact_id} does not exist")
                return
            self._contacts[contact_id] = contact.model_copy(update=changes)

    def rewrite_links(self, old_root_id, new_root_id):
        now = utc_now()
        with self._lock:
            for contact_id, contact in list(self._contacts.items()):
                if contact.linked_id == old_root_id:
                    self._contacts[contact_id] = contact.model_copy(
                        update={"linked_id": new_root_id, "updated_at": now}
                    )

    def soft_delete(self, contact_id: int) -> None:
        """Mark a contact deleted. It stays stored but disappears from every query."""
        with self._lock:
            contact = self._contacts.get(contact_id)
            if contact is not None and not contact.is_deleted:
                now = utc_now()
                self._contacts[contact_id] = contact.model_copy(
                    update={"deleted_at": now, "updated_at": now}
                )

    def all_contacts(self) -> List[Contact]:
        """Every stored contact including soft-deleted ones, in id order."""
        with self._lock:
            return [self._contacts[i] for i in sorted(self._contacts)]
