"""
Identify endpoint models
Wire names are camelCase; Python attributes stay snake_case.
"""
import re
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


# ============================================================================
# REQUEST MODELS
# ============================================================================

class IdentifyRequest(BaseModel):
    """Request model for POST /identify"""
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = Field(None, description="Email address")
    phone_number: Optional[int] = Field(None, alias="phoneNumber", description="Phone number (digits only)")

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        if not isinstance(value, str):
            raise ValueError("email must be a string")
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email format")
        return value

    @field_validator("phone_number", mode="before")
    @classmethod
    def validate_phone_number(cls, value: Any) -> Optional[int]:
        if value is None:
            return None
        # bool is an int subclass; JSON true/false is not a phone number
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("phoneNumber must be a number")
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError("phoneNumber must be an integer")
            value = int(value)
        if value < 0:
            raise ValueError("Invalid phone number format")
        return value

    @model_validator(mode="after")
    def require_identifier(self):
        if self.email is None and self.phone_number is None:
            raise ValueError("Either email or phoneNumber must be provided")
        return self

    @property
    def phone_text(self) -> Optional[str]:
        """Phone number as stored: decimal text."""
        return str(self.phone_number) if self.phone_number is not None else None


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class ContactView(BaseModel):
    """Consolidated identity"""
    model_config = ConfigDict(populate_by_name=True)

    primary_contact_id: int = Field(..., alias="primaryContactId")
    emails: List[str] = Field(default_factory=list)
    phone_numbers: List[str] = Field(default_factory=list, alias="phoneNumbers")
    secondary_contact_ids: List[int] = Field(default_factory=list, alias="secondaryContactIds")


class IdentifyResponse(BaseModel):
    """Response model for POST /identify"""
    contact: ContactView
