"""
Supabase Contact Store
Production ContactStore backed by the `contact` table in Supabase PostgreSQL.
Schema: migrations/001_create_contact.sql
"""
import logging
from typing import List, Optional

from supabase import Client, create_client

from app.core.errors import StoreError
from app.services.identity.models import Contact, LinkPrecedence
from app.services.identity.store import ContactStore, utc_now

logger = logging.getLogger(__name__)


def _quote(value: str) -> str:
    """Quote a value for use inside a PostgREST or=() filter."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class SupabaseContactStore(ContactStore):
    """ContactStore over a Supabase client. Every client failure surfaces as StoreError."""

    def __init__(self, client: Client, table: str = "contact"):
        self._client = client
        self._table = table

    @classmethod
    def connect(cls, url: str, key: str, table: str = "contact") -> "SupabaseContactStore":
        """Create a Supabase client and wrap it."""
        try:
            client = create_client(url, key)
        except Exception as e:
            raise StoreError(f"Failed to connect to Supabase: {e}") from e
        logger.info(f"✅ Supabase contact store connected (table: {table})")
        return cls(client, table)

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except Exception as e:
            logger.error(f"Supabase {action} failed on '{self._table}': {e}")
            raise StoreError(f"Contact store {action} failed") from e

    def _rows_to_contacts(self, rows) -> List[Contact]:
        return [Contact.from_row(row) for row in rows or []]

    def find_by_identifiers(self, email=None, phone_number=None):
        conditions = []
        if email is not None:
            conditions.append(f"email.eq.{_quote(email)}")
        if phone_number is not None:
            conditions.append(f"phone_number.eq.{_quote(phone_number)}")
        if not conditions:
            return []

        query = self._client.table(self._table).select("*")\
            .or_(",".join(conditions))\
            .is_("deleted_at", "null")\
            .order("created_at")\
            .order("id")
        result = self._execute(query, "find_by_identifiers")
        return self._rows_to_contacts(result.data)

    def find_by_root_or_id(self, root_id):
        query = self._client.table(self._table).select("*")\
            .or_(f"id.eq.{int(root_id)},linked_id.eq.{int(root_id)}")\
            .is_("deleted_at", "null")\
            .order("created_at")\
            .order("id")
        result = self._execute(query, "find_by_root_or_id")
        return self._rows_to_contacts(result.data)

    def find_by_id(self, contact_id):
        query = self._client.table(self._table).select("*")\
            .eq("id", int(contact_id))\
            .is_("deleted_at", "null")\
            .limit(1)
        result = self._execute(query, "find_by_id")
        contacts = self._rows_to_contacts(result.data)
        return contacts[0] if contacts else None

    def create(self, email, phone_number, linked_id, link_precedence):
        now = utc_now().isoformat()
        query = self._client.table(self._table).insert({
            "email": email,
            "phone_number": phone_number,
            "linked_id": linked_id,
            "link_precedence": LinkPrecedence(link_precedence).value,
            "created_at": now,
            "updated_at": now
        })
        result = self._execute(query, "create")
        if not result.data:
            raise StoreError("Contact store create returned no row")
        return Contact.from_row(result.data[0])

    def update(self, contact_id, linked_id=None, link_precedence=None):
        changes = {"updated_at": utc_now().isoformat()}
        if linked_id is not None:
            changes["linked_id"] = linked_id
        if link_precedence is not None:
            changes["link_precedence"] = LinkPrecedence(link_precedence).value

        query = self._client.table(self._table).update(changes).eq("id", int(contact_id))
        self._execute(query, "update")

    def rewrite_links(self, old_root_id, new_root_id):
        query = self._client.table(self._table).update({
            "linked_id": new_root_id,
            "updated_at": utc_now().isoformat()
        }).eq("linked_id", int(old_root_id))
        self._execute(query, "rewrite_links")

    def close(self):
        # supabase-py keeps no pooled connections that need explicit teardown
        logger.info("✅ Supabase contact store closed")
