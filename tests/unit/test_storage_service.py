"""Unit tests for storage_service."""
import json
import os
import threading

import pytest

from src.services.storage_service import ensure_json_file, load_json, lock_file, save_json


@pytest.fixture
def json_file(tmp_path):
    """A JSON file holding a small document."""
    file_path = tmp_path / "data.json"
    file_path.write_text(json.dumps({"test": "data", "number": 42}), encoding="utf-8")
    return str(file_path)


class TestEnsureJsonFile:
    """Test ensure_json_file function."""

    def test_creates_missing_file(self, tmp_path):
        """Test a missing file is created with the default document."""
        file_path = str(tmp_path / "nested" / "registrations.json")

        ensure_json_file(file_path, {"registrations": []})

        assert load_json(file_path) == {"registrations": []}

    def test_keeps_existing_file(self, json_file):
        """Test an existing file is left untouched."""
        ensure_json_file(json_file, {"registrations": []})
        assert load_json(json_file)["number"] == 42


class TestLoadJson:
    """Test load_json function."""

    def test_load_valid_json(self, json_file):
        """Test loading valid JSON file."""
        data = load_json(json_file)
        assert data["test"] == "data"
        assert data["number"] == 42

    def test_load_json_with_utf8(self, tmp_path):
        """Test loading JSON with non-ASCII characters."""
        file_path = tmp_path / "names.json"
        file_path.write_text(json.dumps({"name": "Aúra Ñandú"}, ensure_ascii=False), encoding="utf-8")

        assert load_json(str(file_path))["name"] == "Aúra Ñandú"

    def test_load_nonexistent_file_raises_error(self, tmp_path):
        """Test loading non-existent file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="File not found"):
            load_json(str(tmp_path / "missing.json"))

    def test_load_malformed_json_raises_error(self, tmp_path):
        """Test loading malformed JSON raises JSONDecodeError."""
        file_path = tmp_path / "malformed.json"
        file_path.write_text("{invalid json", encoding="utf-8")

        with pytest.raises(json.JSONDecodeError):
            load_json(str(file_path))

    def test_load_empty_file_raises_error(self, tmp_path):
        """Test loading empty file raises JSONDecodeError."""
        file_path = tmp_path / "empty.json"
        file_path.write_text("", encoding="utf-8")

        with pytest.raises(json.JSONDecodeError):
            load_json(str(file_path))


class TestSaveJson:
    """Test save_json function."""

    def test_save_valid_json(self, tmp_path):
        """Test saving valid JSON data."""
        file_path = str(tmp_path / "test.json")
        test_data = {"key": "value", "number": 123}

        save_json(file_path, test_data, backup=False)

        with open(file_path, "r", encoding="utf-8") as f:
            assert json.load(f) == test_data

    def test_save_keeps_non_ascii_readable(self, tmp_path):
        """Test non-ASCII text is written as-is, not escaped."""
        file_path = str(tmp_path / "names.json")

        save_json(file_path, {"college": "Aúra"}, backup=False)

        with open(file_path, "r", encoding="utf-8") as f:
            assert "Aúra" in f.read()

    def test_save_creates_directory(self, tmp_path):
        """Test save_json creates parent directory if needed."""
        file_path = str(tmp_path / "subdir" / "test.json")

        save_json(file_path, {"test": "data"}, backup=False)

        assert os.path.exists(file_path)

    def test_save_with_backup(self, tmp_path):
        """Test save_json copies the previous document to .backup."""
        file_path = str(tmp_path / "test.json")

        save_json(file_path, {"version": 1}, backup=False)
        save_json(file_path, {"version": 2}, backup=True)

        assert load_json(f"{file_path}.backup")["version"] == 1
        assert load_json(file_path)["version"] == 2

    def test_save_without_backup(self, tmp_path):
        """Test save_json does not create backup when disabled."""
        file_path = str(tmp_path / "test.json")

        save_json(file_path, {"version": 1}, backup=False)
        save_json(file_path, {"version": 2}, backup=False)

        assert not os.path.exists(f"{file_path}.backup")

    def test_unserializable_data_leaves_file_intact(self, tmp_path):
        """Test a failed write raises IOError and keeps the old document."""
        file_path = str(tmp_path / "test.json")
        save_json(file_path, {"version": 1}, backup=False)

        with pytest.raises(IOError, match="Failed to write"):
            save_json(file_path, {"bad": object()}, backup=False)

        assert load_json(file_path) == {"version": 1}
        assert not [name for name in os.listdir(tmp_path) if name.startswith(".tmp_")]


class TestLockFile:
    """Test lock_file context manager."""

    def test_lock_file_basic(self, json_file):
        """Test basic file locking."""
        with lock_file(json_file):
            data = load_json(json_file)
            assert "test" in data

    def test_lock_file_releases_lock(self, json_file):
        """Test lock is released after context exits."""
        with lock_file(json_file):
            pass

        with lock_file(json_file, timeout=0.2):
            pass

    def test_lock_uses_sidecar_file(self, json_file):
        """Test the lock lives beside the data file."""
        with lock_file(json_file):
            assert os.path.exists(f"{json_file}.lock")

    def test_lock_survives_replacing_the_data_file(self, json_file):
        """Test save_json under the lock does not release it."""
        acquired = []

        with lock_file(json_file):
            save_json(json_file, {"value": 1}, backup=False)

            def contender():
                try:
                    with lock_file(json_file, timeout=0.2):
                        acquired.append(True)
                except TimeoutError:
                    acquired.append(False)

            thread = threading.Thread(target=contender)
            thread.start()
            thread.join()

        assert acquired == [False]

    def test_lock_times_out(self, json_file):
        """Test a held lock makes a second acquirer time out."""
        errors = []

        def contender():
            try:
                with lock_file(json_file, timeout=0.1):
                    pass
            except TimeoutError as e:
                errors.append(e)

        with lock_file(json_file):
            thread = threading.Thread(target=contender)
            thread.start()
            thread.join()

        assert len(errors) == 1

    def test_lock_protects_critical_section(self, tmp_path):
        """Test lock protects concurrent read-modify-write."""
        file_path = str(tmp_path / "counter.json")
        save_json(file_path, {"count": 0}, backup=False)

        def increment():
            for _ in range(10):
                with lock_file(file_path):
                    data = load_json(file_path)
                    data["count"] += 1
                    save_json(file_path, data, backup=False)

        threads = [threading.Thread(target=increment) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert load_json(file_path)["count"] == 40
