"""
Typed Errors
Every failure the identify flow can surface, with a stable `code` and the
HTTP status the API layer maps it to.
"""
from typing import Any, Dict, Optional


class IdentityError(Exception):
    """Base typed error for identity reconciliation."""

    code = "identity.error"
    status_code = 500

    def __init__(self, message: str, *, meta: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.meta = dict(meta or {})


class IdentifyValidationError(IdentityError):
    """Request carries no usable identifier, or a malformed one."""

    code = "request.invalid"
    status_code = 400


class DataIntegrityError(IdentityError):
    """
    Stored contacts violate an invariant the core relies on:
    unknown link precedence, no primary to attach to, or zero/several
    primaries left after consolidation.
    """

    code = "contact.integrity"
    status_code = 500


class StoreError(IdentityError):
    """I/O failure against the contact store."""

    code = "store.failure"
    status_code = 500


class ConcurrentUpdateError(StoreError):
    """Primary contacts kept changing while waiting for their locks."""

    code = "store.contention"
    status_code = 503
