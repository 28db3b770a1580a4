"""
Identifier Locks
In-process advisory locks keyed by identifier or primary contact id
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional


logger = logging.getLogger(__name__)


def identifier_keys(email: Optional[str], phone_number: Optional[str]) -> List[str]:
    """Lock keys for the identifiers carried by a request."""
    keys = []
    if email is not None:
        keys.append(f"email:{email}")
    if phone_number is not None:
        keys.append(f"phone:{phone_number}")
    return keys


def primary_keys(primary_ids: Iterable[int]) -> List[str]:
    """Lock keys for the primary contacts of the touched components."""
    return [f"primary:{primary_id}" for primary_id in primary_ids]


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.Lock()
        self.holders = 0


class IdentifierLocks:
    """
    Registry of named locks, created on demand and dropped once unused.

    `hold()` acquires a batch of keys in sorted order, so two callers
    can never deadlock on the same pair of keys.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._entries: Dict[str, _Entry] = {}

    def _checkout(self, key: str) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1
            return entry

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._entries[key]
            entry.holders -= 1
            if entry.holders == 0:
                del self._entries[key]

    @contextmanager
    def hold(self, keys: Iterable[str]) -> Iterator[None]:
        ordered = sorted(set(keys))
        entries = [self._checkout(key) for key in ordered]
        acquired: List[_Entry] = []
        try:
            for entry in entries:
                entry.lock.acquire()
                acquired.append(entry)
            yield
        finally:
            for entry in reversed(acquired):
                entry.lock.release()
            for key in ordered:
                self._checkin(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
