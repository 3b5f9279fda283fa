"""JSON document persistence: atomic writes and a cross-process lock."""
import json
import logging
import os
import shutil
import sys
import tempfile
import time
from contextlib import contextmanager
from typing import Any, Dict

logger = logging.getLogger(__name__)

if sys.platform == "win32":
    import msvcrt

    def _try_lock(handle) -> None:
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)

    def _unlock(handle) -> None:
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
else:
    import fcntl

    def _try_lock(handle) -> None:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)

    def _unlock(handle) -> None:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def ensure_json_file(file_path: str, default: Dict[str, Any]) -> None:
    """
    Create a JSON file holding ``default`` if it does not exist yet.

    Raises:
        IOError: If the file cannot be created
    """
    if os.path.exists(file_path):
        return
    save_json(file_path, default, backup=False)
    logger.info("Created data file %s", file_path)


def load_json(file_path: str, retry_count: int = 3, retry_delay: float = 0.1) -> Dict[str, Any]:
    """
    Read a UTF-8 JSON document.

    Args:
        file_path: Document to read
        retry_count: Attempts made while the file is not readable
            (e.g. briefly held by another process on Windows)
        retry_delay: Seconds to wait between attempts

    Returns:
        The parsed document

    Raises:
        FileNotFoundError: If the document does not exist
        json.JSONDecodeError: If it is not valid JSON
        PermissionError: If it stays unreadable for every attempt
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")

    attempt = 0
    while True:
        attempt += 1
        try:
            with open(file_path, "r", encoding="utf-8") as handle:
                return json.load(handle)
        except PermissionError:
            if attempt >= retry_count:
                raise PermissionError(
                    f"Cannot read {file_path} after {retry_count} attempts"
                ) from None
            time.sleep(retry_delay)
        except json.JSONDecodeError as e:
            raise json.JSONDecodeError(f"Malformed JSON in {file_path}: {e.msg}", e.doc, e.pos) from e


def save_json(file_path: str, data: Dict[str, Any], backup: bool = True) -> None:
    """
    Replace a JSON document atomically.

    The document goes to a temp file beside the target, is fsynced, then
    moved into place with os.replace, so readers never see a partial write.

    Args:
        file_path: Document to write
        data: Content to serialise (UTF-8, indented, non-ASCII kept as-is)
        backup: Copy the current document to ``<file>.backup`` first

    Raises:
        IOError: If the backup or the write fails
    """
    parent = os.path.dirname(file_path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    if backup and os.path.exists(file_path):
        try:
            shutil.copy2(file_path, f"{file_path}.backup")
        except OSError as e:
            raise IOError(f"Failed to create backup: {e}") from e

    fd, temp_path = tempfile.mkstemp(dir=parent or ".", prefix=".tmp_", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=2)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, file_path)
    except (OSError, TypeError, ValueError) as e:
        try:
            os.remove(temp_path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("Could not remove temp file %s", temp_path)
        raise IOError(f"Failed to write file {file_path}: {e}") from e


@contextmanager
def lock_file(file_path: str, timeout: float = 5.0, poll_interval: float = 0.05):
    """
    Hold an exclusive lock for ``file_path`` across processes.

    The lock is taken on a sidecar ``<file>.lock``: save_json swaps the
    data file itself, and a lock on the old inode would protect nothing.

    Usage:
        with lock_file(path):
            data = load_json(path)
            data["registrations"].append(row)
            save_json(path, data)

    Raises:
        TimeoutError: If the lock is not acquired within ``timeout`` seconds
    """
    lock_path = f"{file_path}.lock"
    parent = os.path.dirname(lock_path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    deadline = time.monotonic() + timeout
    with open(lock_path, "a+") as handle:
        while True:
            try:
                _try_lock(handle)
                break
            except OSError:
                if time.monotonic() >= deadline:
                    raise TimeoutError(f"Could not lock {file_path} within {timeout}s")
                time.sleep(poll_interval)

        try:
            yield
        finally:
            try:
                _unlock(handle)
            except OSError:
                logger.warning("Failed to release lock on %s", file_path)
