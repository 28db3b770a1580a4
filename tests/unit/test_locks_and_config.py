"""
Unit tests for identifier locks, settings validation and store selection
"""
import threading
import time

import pytest
from pydantic import ValidationError

from app.core.config import Settings
from app.core.dependencies import open_contact_store
from app.core.errors import StoreError
from app.services.identity.locks import IdentifierLocks, identifier_keys, primary_keys
from app.services.identity.store import InMemoryContactStore


class TestIdentifierLocks:
    def test_keys(self):
        assert identifier_keys("a@x.com", "123") == ["email:a@x.com", "phone:123"]
        assert identifier_keys(None, "123") == ["phone:123"]
        assert primary_keys([3, 1]) == ["primary:3", "primary:1"]

    def test_entries_are_dropped_after_release(self):
        locks = IdentifierLocks()

        with locks.hold(["email:a", "phone:1", "email:a"]):
            assert len(locks) == 2

        assert len(locks) == 0

    def test_same_key_is_exclusive(self):
        locks = IdentifierLocks()
        inside = []
        overlap = []

        def worker():
            with locks.hold(["email:a"]):
                inside.append(1)
                if len(inside) > 1:
                    overlap.append(True)
                time.sleep(0.01)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert overlap == []

    def test_disjoint_keys_do_not_block(self):
        locks = IdentifierLocks()
        entered = threading.Event()

        with locks.hold(["email:a"]):
            def other():
                with locks.hold(["email:b"]):
                    entered.set()

            thread = threading.Thread(target=other)
            thread.start()
            assert entered.wait(timeout=1)
            thread.join()

    def test_released_on_exception(self):
        locks = IdentifierLocks()

        with pytest.raises(RuntimeError):
            with locks.hold(["email:a"]):
                raise RuntimeError("boom")

        assert len(locks) == 0


class TestSettings:
    def test_store_backend_is_normalized(self):
        assert Settings(contact_store_backend=" Supabase ").contact_store_backend == "supabase"

    def test_unknown_store_backend_rejected(self):
        with pytest.raises(ValidationError):
            Settings(contact_store_backend="mongo")

    def test_lock_retries_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(identify_lock_retries=0)


class TestOpenContactStore:
    def test_memory_backend(self):
        assert isinstance(open_contact_store(Settings(contact_store_backend="memory")), InMemoryContactStore)

    def test_supabase_backend_requires_credentials(self):
        settings = Settings(contact_store_backend="supabase", supabase_url=None, supabase_service_key=None)

        with pytest.raises(StoreError):
            open_contact_store(settings)
