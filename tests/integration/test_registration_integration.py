"""Integration tests for the registration flow against a real data file."""
import json
import threading

import pytest

from src.services.admin_service import filter_registrations
from src.services.capacity_service import CapacityPolicy
from src.services.export_service import export_to_excel, export_to_pdf
from src.services.file_storage_service import get_file_storage
from src.services.registration_service import RegistrationLedger, get_ledger
from src.services.registration_store import JsonRegistrationStore
from src.utils.config import get_settings
from src.utils.exceptions import CapacityExceededError, DuplicateEmailError


@pytest.fixture
def small_ceiling(monkeypatch):
    """Event ceiling of 2 so capacity is easy to reach."""
    monkeypatch.setenv("CAPACITY_POLICY", "event")
    monkeypatch.setenv("EVENT_CEILING", "2")


class TestRegistrationFlow:
    """End-to-end submission through the process-wide ledger."""

    def test_register_then_admin_view(self, make_registration):
        """Test a submission shows up in counts, filters and exports."""
        ledger = get_ledger()
        storage = get_file_storage()
        key = storage.build_key("meena@college.edu", "paper.pdf", now=1)
        stored_path = storage.store(key, b"%PDF-1.4 paper")

        assert ledger.submit(make_registration()).success
        assert ledger.submit(make_registration(
            email="meena@college.edu",
            student_name="Meena",
            event_name="Paper Quest",
            uploaded_file_path=stored_path,
        )).success
        ledger.notifier.drain()

        with open(get_settings().data_file, encoding="utf-8") as f:
            rows = json.load(f)["registrations"]
        assert len(rows) == 2

        reloaded = get_ledger().load_all()
        assert [r.student_name for r in reloaded] == ["Meena", "Asha Kumar"]
        assert ledger.counts.per_category["Technical"] == 2

        paper_quest = filter_registrations(reloaded, event="Paper Quest")
        assert storage.read(paper_quest[0].uploaded_file_path) == b"%PDF-1.4 paper"
        assert export_to_excel(paper_quest)[:2] == b"PK"
        assert export_to_pdf(paper_quest).startswith(b"%PDF")

    def test_unconfigured_email_does_not_dead_letter(self, make_registration, tmp_path):
        """Test skipped sends (no API key) are not treated as failures."""
        ledger = get_ledger()

        assert ledger.submit(make_registration()).success
        ledger.notifier.drain()

        assert not (tmp_path / "dead_letter.jsonl").exists()

    def test_event_fills_up(self, small_ceiling, make_registration):
        ledger = get_ledger()

        assert ledger.submit(make_registration(email="a@x.co", event_name="Cinephile")).success
        assert ledger.submit(make_registration(email="b@x.co", event_name="Cinephile")).success
        result = ledger.submit(make_registration(email="c@x.co", event_name="Cinephile"))

        assert isinstance(result.error, CapacityExceededError)
        assert ledger.counts.per_event["Cinephile"] == 2
        assert ledger.submit(make_registration(email="c@x.co", event_name="e-sports")).success


class TestConcurrentSubmissions:
    """Independent ledgers sharing one data file, as separate sessions would."""

    def test_last_seat_goes_to_one_submitter(self, tmp_path, make_registration):
        data_file = str(tmp_path / "shared.json")
        policy = CapacityPolicy(mode="event", event_ceiling=1)
        ledgers = [RegistrationLedger(JsonRegistrationStore(data_file), policy) for _ in range(4)]
        results = [None] * len(ledgers)
        barrier = threading.Barrier(len(ledgers))

        def submit(index):
            barrier.wait()
            results[index] = ledgers[index].submit(
                make_registration(email=f"user{index}@x.co", event_name="Cinephile")
            )

        threads = [threading.Thread(target=submit, args=(i,)) for i in range(len(ledgers))]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        accepted = [r for r in results if r.success]
        assert len(accepted) == 1
        assert all(isinstance(r.error, CapacityExceededError) for r in results if not r.success)
        assert len(JsonRegistrationStore(data_file).list()) == 1

    def test_same_email_twice_at_once(self, tmp_path, make_registration):
        data_file = str(tmp_path / "shared.json")
        ledgers = [RegistrationLedger(JsonRegistrationStore(data_file), CapacityPolicy()) for _ in range(3)]
        results = [None] * len(ledgers)
        barrier = threading.Barrier(len(ledgers))

        def submit(index):
            barrier.wait()
            results[index] = ledgers[index].submit(make_registration(email="Same@X.co"))

        threads = [threading.Thread(target=submit, args=(i,)) for i in range(len(ledgers))]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sum(r.success for r in results) == 1
        assert all(isinstance(r.error, DuplicateEmailError) for r in results if not r.success)
