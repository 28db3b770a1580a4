"""
Unit tests for IdentityService.identify()

Walks the documented request scenarios end to end against the in-memory
store, then checks idempotence, soft deletes, failure propagation and
concurrent requests.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from app.core.errors import ConcurrentUpdateError, DataIntegrityError, IdentifyValidationError, StoreError
from app.services.identity.models import LinkPrecedence
from app.services.identity.service import IdentityService


def view(response):
    return response.model_dump(by_alias=True)["contact"]


def primaries(store):
    return [c for c in store.all_contacts() if c.is_primary and not c.is_deleted]


# ============================================================================
# SCENARIOS
# ============================================================================

class TestIdentifyScenarios:
    def test_new_email_creates_primary(self, service, store):
        result = view(service.identify(email="a@x.com"))

        assert result == {
            "primaryContactId": 1,
            "emails": ["a@x.com"],
            "phoneNumbers": [],
            "secondaryContactIds": [],
        }
        [contact] = store.all_contacts()
        assert contact.is_primary
        assert contact.linked_id is None

    def test_new_phone_on_known_email_creates_secondary(self, service, store):
        service.identify(email="a@x.com")

        result = view(service.identify(email="a@x.com", phone_number="123"))

        assert result == {
            "primaryContactId": 1,
            "emails": ["a@x.com"],
            "phoneNumbers": ["123"],
            "secondaryContactIds": [2],
        }
        secondary = store.find_by_id(2)
        assert secondary.link_precedence == LinkPrecedence.SECONDARY
        assert secondary.linked_id == 1

    def test_phone_alone_resolves_transitively(self, service, store):
        service.identify(email="a@x.com")
        expected = view(service.identify(email="a@x.com", phone_number="123"))

        result = view(service.identify(phone_number="123"))

        assert result == expected
        assert len(store.all_contacts()) == 2

    def test_unrelated_identifiers_create_separate_primary(self, service):
        service.identify(email="a@x.com")
        service.identify(email="a@x.com", phone_number="123")

        result = view(service.identify(email="b@y.com", phone_number="456"))

        assert result == {
            "primaryContactId": 3,
            "emails": ["b@y.com"],
            "phoneNumbers": ["456"],
            "secondaryContactIds": [],
        }

    def test_bridging_request_merges_identities(self, service, store):
        service.identify(email="a@x.com")
        service.identify(email="a@x.com", phone_number="123")
        service.identify(phone_number="123")
        service.identify(email="b@y.com", phone_number="456")

        result = view(service.identify(email="a@x.com", phone_number="456"))

        assert result == {
            "primaryContactId": 1,
            "emails": ["a@x.com", "b@y.com"],
            "phoneNumbers": ["123", "456"],
            "secondaryContactIds": [2, 3],
        }
        demoted = store.find_by_id(3)
        assert demoted.is_secondary
        assert demoted.linked_id == 1
        # Bridging adds no new identifier, so no record was created
        assert len(store.all_contacts()) == 3

    def test_demoted_primary_dependents_are_rewired(self, service, store):
        service.identify(email="a@x.com", phone_number="1")  # 1
        service.identify(email="b@x.com", phone_number="2")  # 2
        service.identify(email="c@x.com", phone_number="2")  # 3 → 2

        result = view(service.identify(email="c@x.com", phone_number="1"))

        assert result["primaryContactId"] == 1
        assert result["secondaryContactIds"] == [2, 3]
        assert [c.id for c in primaries(store)] == [1]
        assert all(c.linked_id == 1 for c in store.all_contacts() if c.is_secondary)

    def test_new_identifier_attaches_to_oldest_primary(self, service, store):
        service.identify(email="a@x.com", phone_number="1")  # 1
        service.identify(email="b@x.com", phone_number="2")  # 2

        result = view(service.identify(email="new@x.com", phone_number="2"))  # 3 → 2
        assert result["primaryContactId"] == 2

        result = view(service.identify(email="a@x.com", phone_number="2"))

        assert result["primaryContactId"] == 1
        assert result["secondaryContactIds"] == [2, 3]
        assert store.find_by_id(3).linked_id == 1


# ============================================================================
# PROPERTIES
# ============================================================================

class TestIdentifyProperties:
    def test_repeated_request_is_idempotent(self, service, store):
        service.identify(email="a@x.com", phone_number="123")
        service.identify(email="b@x.com", phone_number="123")

        first = view(service.identify(email="b@x.com", phone_number="123"))
        count = len(store.all_contacts())
        second = view(service.identify(email="b@x.com", phone_number="123"))

        assert first == second
        assert len(store.all_contacts()) == count

    def test_secondary_ids_never_include_primary(self, service):
        service.identify(email="a@x.com")
        service.identify(email="a@x.com", phone_number="1")
        service.identify(email="b@x.com", phone_number="1")

        result = view(service.identify(email="a@x.com"))

        assert result["primaryContactId"] not in result["secondaryContactIds"]
        assert result["secondaryContactIds"] == sorted(result["secondaryContactIds"])
        assert result["emails"] == sorted(set(result["emails"]))

    def test_soft_deleted_contact_is_invisible(self, service, store):
        service.identify(email="a@x.com", phone_number="1")
        service.identify(email="gone@x.com", phone_number="1")
        store.soft_delete(2)

        result = view(service.identify(phone_number="1"))

        assert result["emails"] == ["a@x.com"]
        assert result["secondaryContactIds"] == []

    def test_soft_deleted_identifier_is_treated_as_new(self, service, store):
        service.identify(email="a@x.com")
        store.soft_delete(1)

        result = view(service.identify(email="a@x.com"))

        assert result["primaryContactId"] == 2
        assert len(primaries(store)) == 1


# ============================================================================
# FAILURES
# ============================================================================

class TestIdentifyFailures:
    def test_requires_an_identifier(self, service):
        with pytest.raises(IdentifyValidationError):
            service.identify()

    def test_store_errors_propagate_without_partial_writes(self, service, store):
        service.identify(email="a@x.com")

        with patch.object(store, "create", side_effect=StoreError("down")):
            with pytest.raises(StoreError):
                service.identify(email="a@x.com", phone_number="123")

        assert len(store.all_contacts()) == 1

    @pytest.mark.parametrize("failing_call", ["rewrite_links", "update"])
    def test_failed_merge_leaves_no_chain_and_is_retried(self, service, store, failing_call):
        service.identify(email="a@x.com", phone_number="1")  # 1
        service.identify(email="b@x.com", phone_number="2")  # 2
        service.identify(email="c@x.com", phone_number="2")  # 3 → 2

        with patch.object(store, failing_call, side_effect=StoreError("down")):
            with pytest.raises(StoreError):
                service.identify(email="a@x.com", phone_number="2")

        # The newer root is still primary, so nothing hangs off a secondary
        assert store.find_by_id(2).is_primary
        assert store.find_by_id(3).linked_id in (1, 2)

        result = view(service.identify(email="a@x.com", phone_number="2"))

        assert result["primaryContactId"] == 1
        assert result["secondaryContactIds"] == [2, 3]
        assert [c.id for c in primaries(store)] == [1]
        assert store.find_by_id(2).linked_id == 1
        assert store.find_by_id(3).linked_id == 1

    def test_existing_chain_is_flattened_by_next_request(self, service, store):
        service.identify(email="a@x.com", phone_number="1")  # 1
        service.identify(email="b@x.com", phone_number="1")  # 2 → 1
        store.create("c@x.com", None, 2, LinkPrecedence.SECONDARY)  # 3 → 2 → 1

        result = view(service.identify(email="c@x.com"))

        assert result["primaryContactId"] == 1
        assert result["secondaryContactIds"] == [2, 3]
        assert store.find_by_id(3).linked_id == 1

    def test_deleted_primary_is_reported_with_component_ids(self, service, store, caplog):
        service.identify(email="a@x.com", phone_number="1")  # 1
        service.identify(email="b@x.com", phone_number="1")  # 2 → 1
        store.soft_delete(1)

        with caplog.at_level(logging.ERROR, logger="app.services.identity.service"):
            with pytest.raises(DataIntegrityError) as exc_info:
                service.identify(email="b@x.com")

        assert exc_info.value.meta == {"contact_ids": [2], "missing_root_ids": [1]}
        assert "contacts [2]" in caplog.text
        assert "missing roots: [1]" in caplog.text
        assert len(store.all_contacts()) == 2

    def test_gives_up_when_primaries_keep_changing(self, store):
        service = IdentityService(store, lock_retries=2)
        service.identify(email="a@x.com")

        calls = iter(range(100))

        def moving_primaries(contacts):
            # Every resolve reports a brand new primary id
            return {next(calls)}

        with patch("app.services.identity.service._primary_ids", side_effect=moving_primaries):
            with pytest.raises(ConcurrentUpdateError):
                service.identify(email="a@x.com")

        assert len(service.locks) == 0


# ============================================================================
# CONCURRENCY
# ============================================================================

class TestIdentifyConcurrency:
    def test_same_new_identifier_creates_one_primary(self, service, store):
        barrier = threading.Barrier(8)

        def request(i):
            barrier.wait()
            return view(service.identify(email="same@x.com", phone_number=str(i)))

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(request, range(8)))

        assert len(primaries(store)) == 1
        assert {r["primaryContactId"] for r in results} == {1}
        assert len(store.all_contacts()) == 8

    def test_concurrent_bridges_keep_links_flat(self, service, store):
        for i in range(6):
            service.identify(email=f"{i}@x.com", phone_number=f"{i}")

        barrier = threading.Barrier(5)

        def bridge(i):
            barrier.wait()
            service.identify(email=f"{i}@x.com", phone_number=f"{i + 1}")

        with ThreadPoolExecutor(max_workers=5) as pool:
            list(pool.map(bridge, range(5)))

        assert [c.id for c in primaries(store)] == [1]
        assert all(c.linked_id == 1 for c in store.all_contacts() if c.is_secondary)
        assert len(service.locks) == 0
