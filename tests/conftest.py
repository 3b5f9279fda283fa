"""Shared fixtures."""
import pytest

from src.models.registration import Registration
from src.services.file_storage_service import reset_file_storage
from src.services.registration_service import reset_ledger
from src.utils import config


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Fresh settings per test, with data paths under tmp_path and no .env."""
    monkeypatch.setattr(config, "_ENV_LOADED", True)
    monkeypatch.setenv("DATA_FILE", str(tmp_path / "registrations.json"))
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("DEAD_LETTER_FILE", str(tmp_path / "dead_letter.jsonl"))
    monkeypatch.delenv("EMAIL_API_KEY", raising=False)
    monkeypatch.delenv("CAPACITY_POLICY", raising=False)
    config.reset_settings()
    reset_file_storage()
    reset_ledger()
    yield
    reset_ledger()
    reset_file_storage()
    config.reset_settings()


@pytest.fixture
def make_registration():
    """Factory for valid registrations; keyword arguments override fields."""
    def _make(**overrides) -> Registration:
        values = {
            "email": "asha@college.edu",
            "student_name": "Asha Kumar",
            "college_name": "S.A. Engineering College",
            "department": "AI & DS",
            "year": 3,
            "team_member1": "Asha Kumar",
            "event_name": "Hack'n'Hammer",
        }
        values.update(overrides)
        return Registration(**values)

    return _make
