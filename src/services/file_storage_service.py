"""Local storage for presentation uploads."""
import logging
import re
import time
from pathlib import Path
from typing import Optional

from src.utils.config import get_settings
from src.utils.exceptions import StoreWriteError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_UPLOAD_EXTENSIONS = {".ppt", ".pptx", ".pdf"}
MAX_UPLOAD_BYTES = 20 * 1024 * 1024


def _sanitize_filename(name: str) -> str:
    """Generate a safe filename fragment."""
    sanitized = re.sub(r"[^A-Za-z0-9._@-]+", "_", name.strip())
    sanitized = sanitized.strip("._")
    return sanitized or "upload"


class LocalFileStorage:
    """Stores uploaded files under ``base_dir`` and hands back relative paths."""

    def __init__(self, base_dir: str, max_bytes: int = MAX_UPLOAD_BYTES):
        self.base_dir = Path(base_dir)
        self.max_bytes = max_bytes

    @staticmethod
    def build_key(email: str, filename: str, now: Optional[float] = None) -> str:
        """Key of the form ``<email>-<epoch ms>-<filename>``, sanitised."""
        millis = int((time.time() if now is None else now) * 1000)
        return f"{_sanitize_filename(email)}-{millis}-{_sanitize_filename(Path(filename).name)}"

    def _resolve(self, path: str) -> Path:
        """Absolute path for a stored key, refusing anything outside ``base_dir``."""
        base = self.base_dir.resolve()
        target = (base / Path(path).name).resolve()
        if target.parent != base:
            raise FileNotFoundError(f"File not found: {path}")
        return target

    def store(self, key: str, data: bytes) -> str:
        """
        Persist ``data`` under ``key``.

        Returns:
            The stored path (the key), to be saved on the registration

        Raises:
            ValidationError: Unsupported extension, empty or oversized file
            StoreWriteError: If the file cannot be written
        """
        suffix = Path(key).suffix.lower()
        if suffix not in ALLOWED_UPLOAD_EXTENSIONS:
            raise ValidationError(
                "Invalid file type. Please upload only PPT, PPTX, or PDF files.",
                field="uploaded_file_path",
            )
        if not data:
            raise ValidationError("The uploaded file is empty.", field="uploaded_file_path")
        if len(data) > self.max_bytes:
            raise ValidationError(
                f"The uploaded file exceeds {self.max_bytes // (1024 * 1024)} MB.",
                field="uploaded_file_path",
            )

        key = _sanitize_filename(Path(key).name)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            self._resolve(key).write_bytes(data)
        except OSError as e:
            logger.error("Failed to store upload %s: %s", key, e)
            raise StoreWriteError("Your file could not be saved. Please submit again.") from e

        logger.info("Stored upload %s (%d bytes)", key, len(data))
        return key

    def get_download_link(self, path: str) -> str:
        """
        ``file://`` URI of a stored upload.

        Raises:
            FileNotFoundError: If nothing is stored at ``path``
        """
        target = self._resolve(path)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return target.as_uri()

    def read(self, path: str) -> bytes:
        """Contents of a stored upload (used by the admin download button)."""
        target = self._resolve(path)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return target.read_bytes()


_storage: Optional[LocalFileStorage] = None


def get_file_storage() -> LocalFileStorage:
    """Process-wide upload storage rooted at the configured upload dir."""
    global _storage

    if _storage is None:
        _storage = LocalFileStorage(get_settings().upload_dir)
    return _storage


def reset_file_storage() -> None:
    """Drop the cached storage so the next call re-reads settings."""
    global _storage
    _storage = None
