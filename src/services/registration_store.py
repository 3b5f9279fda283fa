"""JSON-file registration store."""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from src.services.storage_service import ensure_json_file, load_json, lock_file, save_json
from src.utils.date_utils import parse_timestamp
from src.utils.exceptions import RegistrationError, StoreUnavailable, StoreWriteError
from src.utils.validation import normalize_email

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT = {"registrations": []}

Row = Dict[str, Any]
InsertGuard = Callable[[List[Row]], None]

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _row_timestamp(row: Row) -> datetime:
    """``created_at`` of a row, or the epoch when it is missing."""
    value = row.get("created_at")
    if value is None:
        return _EPOCH
    return parse_timestamp(value)


def _check_document(data: Any, file_path: str) -> List[Row]:
    """
    Rows of a loaded document.

    Raises:
        ValueError: If the document, a row or a timestamp has the wrong shape
    """
    if not isinstance(data, dict):
        raise ValueError(f"Top level of {file_path} must be an object")
    rows = data.setdefault("registrations", [])
    if not isinstance(rows, list):
        raise ValueError(f"'registrations' must be a list in {file_path}")
    for row in rows:
        if not isinstance(row, dict):
            raise ValueError(f"Registration rows must be objects in {file_path}")
        _row_timestamp(row)
    return rows


def _newest_first(rows: List[Row]) -> List[Row]:
    # Later rows win ties, so equal timestamps still list newest first
    indexed = sorted(
        enumerate(rows),
        key=lambda item: (_row_timestamp(item[1]), item[0]),
        reverse=True,
    )
    return [row for _, row in indexed]


class JsonRegistrationStore:
    """
    Append-only registration table kept in one JSON document.

    Document shape::

        {"registrations": [{"id": ..., "email": ..., "created_at": ...}, ...]}

    Writes happen under an exclusive file lock so that ``insert`` can run a
    guard against the rows as they are at write time.
    """

    def __init__(self, file_path: str, lock_timeout: float = 5.0, clock=_utc_now):
        self.file_path = file_path
        self.lock_timeout = lock_timeout
        self._clock = clock

    def _read_rows(self) -> List[Row]:
        ensure_json_file(self.file_path, EMPTY_DOCUMENT)
        return _check_document(load_json(self.file_path), self.file_path)

    def list(self) -> List[Row]:
        """
        All rows ordered by ``created_at`` descending (newest first).

        Raises:
            StoreUnavailable: If the data file cannot be read or parsed
        """
        try:
            rows = self._read_rows()
        except (OSError, ValueError) as e:
            logger.error("Failed to read registrations from %s: %s", self.file_path, e)
            raise StoreUnavailable() from e
        return _newest_first(rows)

    def find_by_email(self, email: str) -> Optional[Row]:
        """
        Row registered with ``email`` (case-insensitive), or None.

        Raises:
            StoreUnavailable: If the data file cannot be read
        """
        wanted = normalize_email(email)
        for row in self.list():
            if normalize_email(row.get("email", "")) == wanted:
                return row
        return None

    def insert(self, row: Row, guard: Optional[InsertGuard] = None) -> Row:
        """
        Append a row and return it with ``id`` and ``created_at`` assigned.

        Args:
            row: Registration fields (any id/created_at are overwritten)
            guard: Called with the current rows while the lock is held;
                raising a RegistrationError aborts the insert

        Raises:
            RegistrationError: Whatever ``guard`` raised
            StoreWriteError: If locking, reading or writing fails
        """
        try:
            with lock_file(self.file_path, timeout=self.lock_timeout):
                ensure_json_file(self.file_path, EMPTY_DOCUMENT)
                data = load_json(self.file_path)
                rows = _check_document(data, self.file_path)

                if guard is not None:
                    guard(list(rows))

                created_at = self._clock()
                latest = max((_row_timestamp(r) for r in rows), default=_EPOCH)
                if created_at < latest:
                    created_at = latest

                stored = dict(row)
                stored["id"] = uuid.uuid4().hex
                stored["created_at"] = created_at.isoformat()
                rows.append(stored)

                save_json(self.file_path, data, backup=True)
        except RegistrationError:
            raise
        except (OSError, ValueError) as e:
            logger.error("Failed to write registration to %s: %s", self.file_path, e)
            raise StoreWriteError() from e

        logger.info("Stored registration %s for %s", stored["id"], stored.get("event_name"))
        return stored
