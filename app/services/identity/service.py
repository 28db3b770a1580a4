"""
Identity Service
Runs the identify flow end to end:
Matcher → Resolver → Decision → (Factory) → Consolidation → Formatter
"""
import logging
from typing import List, Optional

from app.core.errors import ConcurrentUpdateError, DataIntegrityError, IdentifyValidationError
from app.models.schemas.identify import IdentifyResponse
from app.services.identity.consolidation import consolidate_contacts
from app.services.identity.decision import find_oldest_primary, needs_secondary_contact
from app.services.identity.factory import create_primary_contact, create_secondary_contact
from app.services.identity.formatter import format_contact_view
from app.services.identity.locks import IdentifierLocks, identifier_keys, primary_keys
from app.services.identity.matcher import find_matching_contacts
from app.services.identity.models import Contact
from app.services.identity.resolver import resolve_linked_contacts
from app.services.identity.store import ContactStore

logger = logging.getLogger(__name__)

DEFAULT_LOCK_RETRIES = 5


class IdentityService:
    """
    Identity reconciliation over a ContactStore.

    Concurrency:
    - Requests sharing an identifier are serialized by identifier locks for
      the whole read-modify-write, so they cannot both create a primary for it
    - Requests touching the same component are serialized by locks on that
      component's primary ids, so concurrent consolidations never leave a
      chain behind
    - Everything else runs in parallel
    """

    def __init__(
        self,
        store: ContactStore,
        locks: Optional[IdentifierLocks] = None,
        lock_retries: int = DEFAULT_LOCK_RETRIES
    ):
        self.store = store
        self.locks = locks or IdentifierLocks()
        self.lock_retries = lock_retries

    def identify(self, email: Optional[str] = None, phone_number: Optional[str] = None) -> IdentifyResponse:
        """
        Resolve the identity behind an email and/or phone number.

        Creates a primary contact for unseen identifiers, a secondary contact
        when a known identity gains a new identifier, and merges identities the
        request proves to be the same person.

        Args:
            email: Email address (optional)
            phone_number: Phone number as text (optional)

        Returns:
            Consolidated view of the identity

        Raises:
            IdentifyValidationError: both identifiers are missing
            DataIntegrityError: stored contacts violate the link invariants
            StoreError: the store failed
        """
        if email is None and phone_number is None:
            raise IdentifyValidationError("Either email or phoneNumber must be provided")

        with self.locks.hold(identifier_keys(email, phone_number)):
            return self._identify_locked(email, phone_number)

    def _identify_locked(self, email: Optional[str], phone_number: Optional[str]) -> IdentifyResponse:
        for attempt in range(1, self.lock_retries + 1):
            contacts = self._resolve(email, phone_number)
            primary_ids = _primary_ids(contacts)

            with self.locks.hold(primary_keys(primary_ids)):
                # Another request may have merged these components while we waited
                contacts = self._resolve(email, phone_number)
                if not _primary_ids(contacts) <= primary_ids:
                    logger.debug(
                        f"Primaries changed while locking (attempt {attempt}/{self.lock_retries}), retrying"
                    )
                    continue
                return self._reconcile(contacts, email, phone_number)

        raise ConcurrentUpdateError(
            f"Primary contacts kept changing after {self.lock_retries} attempts",
            meta={"email": email, "phone_number": phone_number}
        )

    def _resolve(self, email: Optional[str], phone_number: Optional[str]) -> List[Contact]:
        seeds = find_matching_contacts(self.store, email, phone_number)
        if not seeds:
            return []
        return resolve_linked_contacts(self.store, seeds)

    def _reconcile(
        self,
        contacts: List[Contact],
        email: Optional[str],
        phone_number: Optional[str]
    ) -> IdentifyResponse:
        if not contacts:
            contact = create_primary_contact(self.store, email, phone_number)
            return format_contact_view([contact])

        if not any(c.is_primary for c in contacts):
            _report_orphaned(contacts)

        if needs_secondary_contact(contacts, email, phone_number):
            primary = find_oldest_primary(contacts)
            contacts = contacts + [
                create_secondary_contact(self.store, email, phone_number, primary.id)
            ]

        contacts = consolidate_contacts(self.store, contacts)
        return format_contact_view(contacts)


def _primary_ids(contacts: List[Contact]) -> set:
    return {c.id for c in contacts if c.is_primary}


def _report_orphaned(contacts: List[Contact]) -> None:
    """Log and raise for a component whose primary is missing or soft-deleted."""
    contact_ids = [c.id for c in contacts]
    missing_roots = sorted({c.linked_id for c in contacts if c.linked_id not in contact_ids})
    logger.error(
        f"❌ Orphaned component: contacts {contact_ids} have no live primary "
        f"(missing roots: {missing_roots}); needs manual repair"
    )
    raise DataIntegrityError(
        "No primary contact found in resolved set",
        meta={"contact_ids": contact_ids, "missing_root_ids": missing_roots}
    )
