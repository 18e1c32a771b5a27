from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env file into environment
load_dotenv()

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[2]

DEFAULT_TAG_CACHE_TTL_SECONDS = 86400
DEFAULT_PAGE_LIMIT = 20
DEFAULT_MAX_PAGE_LIMIT = 100
DEFAULT_SQLITE_TIMEOUT_SECONDS = 5.0


def _get_int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Invalid %s=%r; using default=%d", name, value, default)
        return default


def _get_float_env(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Invalid %s=%r; using default=%s", name, value, default)
        return default


def state_dir() -> Path:
    raw = os.environ.get("JOBMATCH_STATE_DIR", "").strip()
    return Path(raw).expanduser() if raw else REPO_ROOT / "state"


def db_path() -> Path:
    raw = os.environ.get("JOBMATCH_DB_PATH", "").strip()
    return Path(raw).expanduser() if raw else state_dir() / "jobmatch.sqlite"


@dataclass(frozen=True)
class Settings:
    db_path: Path
    tag_cache_ttl_seconds: int = DEFAULT_TAG_CACHE_TTL_SECONDS
    default_page_limit: int = DEFAULT_PAGE_LIMIT
    max_page_limit: int = DEFAULT_MAX_PAGE_LIMIT
    sqlite_timeout_seconds: float = DEFAULT_SQLITE_TIMEOUT_SECONDS


def load_settings() -> Settings:
    """Read settings from the environment (after .env has been loaded)."""
    ttl = _get_int_env("JOBMATCH_TAG_CACHE_TTL_SECONDS", DEFAULT_TAG_CACHE_TTL_SECONDS)
    if ttl <= 0:
        logger.warning("JOBMATCH_TAG_CACHE_TTL_SECONDS must be positive; using default=%d", DEFAULT_TAG_CACHE_TTL_SECONDS)
        ttl = DEFAULT_TAG_CACHE_TTL_SECONDS
    max_limit = max(1, _get_int_env("JOBMATCH_MAX_PAGE_LIMIT", DEFAULT_MAX_PAGE_LIMIT))
    default_limit = _get_int_env("JOBMATCH_DEFAULT_PAGE_LIMIT", DEFAULT_PAGE_LIMIT)
    default_limit = max(1, min(default_limit, max_limit))
    return Settings(
        db_path=db_path(),
        tag_cache_ttl_seconds=ttl,
        default_page_limit=default_limit,
        max_page_limit=max_limit,
        sqlite_timeout_seconds=_get_float_env("JOBMATCH_SQLITE_TIMEOUT_SECONDS", DEFAULT_SQLITE_TIMEOUT_SECONDS),
    )
