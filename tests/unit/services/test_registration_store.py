"""Unit tests for JsonRegistrationStore."""
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from src.services.registration_store import JsonRegistrationStore
from src.utils.exceptions import (
    CapacityExceededError,
    StoreUnavailable,
    StoreWriteError,
)

BASE_TIME = datetime(2025, 9, 1, 10, 0, tzinfo=timezone.utc)


class FakeClock:
    """Returns queued datetimes, then keeps returning the last one."""

    def __init__(self, *moments):
        self.moments = list(moments)

    def __call__(self):
        if len(self.moments) > 1:
            return self.moments.pop(0)
        return self.moments[0]


@pytest.fixture
def store_path(tmp_path):
    return str(tmp_path / "registrations.json")


@pytest.fixture
def row(make_registration):
    return make_registration().without_store_fields()


class TestList:
    """Test JsonRegistrationStore.list."""

    def test_missing_file_is_created_empty(self, store_path):
        """Test first use creates an empty document."""
        store = JsonRegistrationStore(store_path)

        assert store.list() == []
        with open(store_path, encoding="utf-8") as f:
            assert json.load(f) == {"registrations": []}

    def test_newest_first(self, store_path, make_registration):
        """Test rows come back ordered by created_at descending."""
        clock = FakeClock(BASE_TIME, BASE_TIME + timedelta(minutes=1), BASE_TIME + timedelta(minutes=2))
        store = JsonRegistrationStore(store_path, clock=clock)
        for email in ("a@x.co", "b@x.co", "c@x.co"):
            store.insert(make_registration(email=email).without_store_fields())

        assert [r["email"] for r in store.list()] == ["c@x.co", "b@x.co", "a@x.co"]

    def test_malformed_file_unavailable(self, store_path):
        """Test a corrupt file raises StoreUnavailable."""
        with open(store_path, "w", encoding="utf-8") as f:
            f.write("{not json")

        with pytest.raises(StoreUnavailable):
            JsonRegistrationStore(store_path).list()

    def test_same_timestamp_keeps_insertion_order_newest_first(self, store_path, make_registration):
        """Test rows stamped with the same instant still list the latest insert first."""
        store = JsonRegistrationStore(store_path, clock=FakeClock(BASE_TIME))
        for email in ("a@x.co", "b@x.co", "c@x.co"):
            store.insert(make_registration(email=email).without_store_fields())

        assert [r["email"] for r in store.list()] == ["c@x.co", "b@x.co", "a@x.co"]

    @pytest.mark.parametrize(
        "document",
        [
            [],
            {"registrations": {"a": 1}},
            {"registrations": ["oops"]},
            {"registrations": [{"email": "a@x.co", "created_at": 5}]},
            {"registrations": [{"email": "a@x.co", "created_at": "yesterday"}]},
        ],
    )
    def test_wrong_shape_unavailable(self, store_path, document):
        """Test documents of the wrong shape raise StoreUnavailable, not a raw error."""
        with open(store_path, "w", encoding="utf-8") as f:
            json.dump(document, f)

        with pytest.raises(StoreUnavailable):
            JsonRegistrationStore(store_path).list()


class TestFindByEmail:
    """Test JsonRegistrationStore.find_by_email."""

    def test_case_insensitive(self, store_path, row):
        store = JsonRegistrationStore(store_path)
        store.insert(row)

        assert store.find_by_email("  ASHA@College.edu ")["email"] == "asha@college.edu"

    def test_not_found(self, store_path, row):
        store = JsonRegistrationStore(store_path)
        store.insert(row)

        assert store.find_by_email("nobody@college.edu") is None


class TestInsert:
    """Test JsonRegistrationStore.insert."""

    def test_assigns_id_and_created_at(self, store_path, row):
        """Test store-assigned fields override anything supplied."""
        store = JsonRegistrationStore(store_path, clock=FakeClock(BASE_TIME))
        forged = dict(row, id="forged", created_at="2000-01-01T00:00:00+00:00")

        stored = store.insert(forged)

        assert stored["id"] != "forged"
        assert len(stored["id"]) == 32
        assert stored["created_at"] == BASE_TIME.isoformat()
        assert store.list() == [stored]

    def test_unique_ids(self, store_path, make_registration):
        store = JsonRegistrationStore(store_path)
        first = store.insert(make_registration(email="a@x.co").without_store_fields())
        second = store.insert(make_registration(email="b@x.co").without_store_fields())

        assert first["id"] != second["id"]

    def test_created_at_never_decreases(self, store_path, make_registration):
        """Test a clock stepping backwards cannot reorder rows."""
        clock = FakeClock(BASE_TIME, BASE_TIME - timedelta(hours=1))
        store = JsonRegistrationStore(store_path, clock=clock)

        first = store.insert(make_registration(email="a@x.co").without_store_fields())
        second = store.insert(make_registration(email="b@x.co").without_store_fields())

        assert second["created_at"] >= first["created_at"]
        assert [r["email"] for r in store.list()] == ["b@x.co", "a@x.co"]

    def test_guard_sees_current_rows(self, store_path, make_registration):
        """Test the guard receives the rows present under the lock."""
        store = JsonRegistrationStore(store_path)
        store.insert(make_registration(email="a@x.co").without_store_fields())
        seen = []

        store.insert(make_registration(email="b@x.co").without_store_fields(), guard=seen.append)

        assert [r["email"] for r in seen[0]] == ["a@x.co"]

    def test_guard_error_aborts_insert(self, store_path, row):
        """Test a RegistrationError from the guard propagates and nothing is written."""
        store = JsonRegistrationStore(store_path)

        def guard(rows):
            raise CapacityExceededError("full")

        with pytest.raises(CapacityExceededError, match="full"):
            store.insert(row, guard=guard)

        assert store.list() == []

    def test_lock_timeout_is_write_error(self, store_path, row):
        """Test failure to take the lock surfaces as StoreWriteError."""
        store = JsonRegistrationStore(store_path)

        with patch("src.services.registration_store.lock_file", side_effect=TimeoutError("busy")):
            with pytest.raises(StoreWriteError):
                store.insert(row)

    def test_save_failure_is_write_error(self, store_path, row):
        store = JsonRegistrationStore(store_path)
        store.list()

        with patch("src.services.registration_store.save_json", side_effect=IOError("disk full")):
            with pytest.raises(StoreWriteError):
                store.insert(row)

        assert store.list() == []

    @pytest.mark.parametrize(
        "document",
        [
            [],
            {"registrations": [None]},
            {"registrations": [{"email": "a@x.co", "created_at": ["2025"]}]},
        ],
    )
    def test_wrong_shape_is_write_error(self, store_path, row, document):
        """Test a malformed document is left untouched and reported as StoreWriteError."""
        with open(store_path, "w", encoding="utf-8") as f:
            json.dump(document, f)

        with pytest.raises(StoreWriteError):
            JsonRegistrationStore(store_path).insert(row)

        with open(store_path, encoding="utf-8") as f:
            assert json.load(f) == document
