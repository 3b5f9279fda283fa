"""Application settings loaded from the environment and an optional .env file."""
import logging
import os
from dataclasses import dataclass
from threading import Lock
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

CAPACITY_MODES = ("category", "global", "event")

_ENV_LOADED = False
_ENV_LOCK = Lock()
_settings: Optional["Settings"] = None

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def load_env_file(env_path: str = ".env", force: bool = False) -> None:
    """
    Load KEY=VALUE pairs from a .env file into os.environ.

    Behavior:
        - Runs once per process unless force=True
        - A missing file is ignored
        - Variables already present in the environment win
    """
    global _ENV_LOADED

    if _ENV_LOADED and not force:
        return

    with _ENV_LOCK:
        if _ENV_LOADED and not force:
            return

        if load_dotenv(env_path, override=False):
            logger.debug("Loaded environment from %s", env_path)

        _ENV_LOADED = True


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r, using %d", name, raw, default)
        return default
    return value


def _env_mode(name: str, default: str) -> str:
    raw = os.getenv(name, default).strip().lower()
    if raw not in CAPACITY_MODES:
        logger.warning("Unknown %s=%r, using %r", name, raw, default)
        return default
    return raw


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the registration portal."""

    data_file: str = "data/registrations.json"
    upload_dir: str = "data/uploads"
    dead_letter_file: str = "data/notification_dead_letter.jsonl"

    capacity_policy: str = "category"
    category_ceiling: int = 50
    global_ceiling: int = 100
    event_ceiling: int = 20

    admin_username: str = "admin"
    admin_password: str = ""

    email_api_url: str = "https://api.resend.com/emails"
    email_api_key: str = ""
    email_from: str = "Team AÙRA'2.0 <onboarding@resend.dev>"

    symposium_name: str = "AÙRA'2.0"
    symposium_date: str = "26th September 2025"
    symposium_venue: str = "S.A.Engineering College, Thiruverkadu, Chennai-69"
    organizer: str = "Department of Artificial Intelligence and Data Science"

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from os.environ (after loading .env)."""
        load_env_file()
        defaults = cls()
        return cls(
            data_file=os.getenv("DATA_FILE", defaults.data_file),
            upload_dir=os.getenv("UPLOAD_DIR", defaults.upload_dir),
            dead_letter_file=os.getenv("DEAD_LETTER_FILE", defaults.dead_letter_file),
            capacity_policy=_env_mode("CAPACITY_POLICY", defaults.capacity_policy),
            category_ceiling=_env_int("CATEGORY_CEILING", defaults.category_ceiling),
            global_ceiling=_env_int("GLOBAL_CEILING", defaults.global_ceiling),
            event_ceiling=_env_int("EVENT_CEILING", defaults.event_ceiling),
            admin_username=os.getenv("ADMIN_USERNAME", defaults.admin_username),
            admin_password=os.getenv("ADMIN_PASSWORD", defaults.admin_password),
            email_api_url=os.getenv("EMAIL_API_URL", defaults.email_api_url),
            email_api_key=os.getenv("EMAIL_API_KEY", defaults.email_api_key),
            email_from=os.getenv("EMAIL_FROM", defaults.email_from),
            symposium_name=os.getenv("SYMPOSIUM_NAME", defaults.symposium_name),
            symposium_date=os.getenv("SYMPOSIUM_DATE", defaults.symposium_date),
            symposium_venue=os.getenv("SYMPOSIUM_VENUE", defaults.symposium_venue),
            organizer=os.getenv("ORGANIZER", defaults.organizer),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        )


def get_settings() -> Settings:
    """Cached process-wide settings."""
    global _settings

    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    if not root.handlers:
        logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    else:
        root.setLevel(numeric_level)
