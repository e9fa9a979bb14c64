"""Configuration and environment handling."""

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from .logging import get_logger

logger = get_logger(__name__)

DEFAULT_API_URL = "http://127.0.0.1:8765"
DEFAULT_POLL_INTERVAL_MS = 500
DEFAULT_REQUEST_TIMEOUT = 10.0


@lru_cache
def load_environment() -> bool:
    """Load variables from a ``.env`` file once per process."""
    return load_dotenv()


def _env(name: str, default: str) -> str:
    load_environment()
    return os.environ.get(name, default)


@lru_cache
def get_api_url() -> str:
    """Base URL of the remote comment service.

    Set CLIPNOTE_API_URL to override.
    """
    return _env("CLIPNOTE_API_URL", DEFAULT_API_URL).rstrip("/")


def get_poll_interval_ms() -> int:
    """Player poll cadence in milliseconds (CLIPNOTE_POLL_INTERVAL_MS)."""
    raw = _env("CLIPNOTE_POLL_INTERVAL_MS", str(DEFAULT_POLL_INTERVAL_MS))
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid CLIPNOTE_POLL_INTERVAL_MS=%r", raw)
        return DEFAULT_POLL_INTERVAL_MS
    if value <= 0:
        logger.warning("Ignoring non-positive CLIPNOTE_POLL_INTERVAL_MS=%r", raw)
        return DEFAULT_POLL_INTERVAL_MS
    return value


def get_request_timeout() -> float:
    """Timeout in seconds for remote calls (CLIPNOTE_REQUEST_TIMEOUT)."""
    raw = _env("CLIPNOTE_REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT))
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid CLIPNOTE_REQUEST_TIMEOUT=%r", raw)
        return DEFAULT_REQUEST_TIMEOUT


def get_db_path() -> Path:
    """SQLite file used by the reference service (CLIPNOTE_DB_PATH)."""
    raw = _env("CLIPNOTE_DB_PATH", "")
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".clipnote" / "clipnote.db"
