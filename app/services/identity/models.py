"""
Contact Model
The single entity of the identity graph
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel

from app.core.errors import DataIntegrityError


class LinkPrecedence(str, Enum):
    """Role of a contact inside its identity component."""
    PRIMARY = "primary"  # root of the component
    SECONDARY = "secondary"  # linked to the root via linked_id


class Contact(BaseModel):
    """A stored contact record."""
    id: int
    email: Optional[str] = None
    phone_number: Optional[str] = None
    linked_id: Optional[int] = None
    link_precedence: LinkPrecedence
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    @property
    def is_primary(self) -> bool:
        return self.link_precedence == LinkPrecedence.PRIMARY

    @property
    def is_secondary(self) -> bool:
        return self.link_precedence == LinkPrecedence.SECONDARY

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def sort_key(self):
        """Creation order; id breaks ties between equal timestamps."""
        return (self.created_at, self.id)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Contact":
        """
        Build a Contact from a raw store row.

        Raises:
            DataIntegrityError: if the row's link_precedence is not a known value
        """
        precedence = row.get("link_precedence")
        try:
            link_precedence = LinkPrecedence(precedence)
        except ValueError:
            raise DataIntegrityError(
                f"Invalid link_precedence value: {precedence!r}",
                meta={"contact_id": row.get("id")}
            )
        return cls(**{**row, "link_precedence": link_precedence})
