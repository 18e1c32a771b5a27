from __future__ import annotations

from pathlib import Path

import pytest

from jm_engine.repository import SqliteJobRepository
from jm_engine.service import JobMatchService
from jm_engine.tags.cache import InMemoryTagCache
from jm_engine.tags.extractor import TagExtractor


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("JOBMATCH_STATE_DIR", str(tmp_path / "state"))
    for key in (
        "JOBMATCH_DB_PATH",
        "JOBMATCH_TAG_CACHE_TTL_SECONDS",
        "JOBMATCH_DEFAULT_PAGE_LIMIT",
        "JOBMATCH_MAX_PAGE_LIMIT",
        "JOBMATCH_SQLITE_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def repo(tmp_path: Path) -> SqliteJobRepository:
    return SqliteJobRepository(tmp_path / "jobmatch.sqlite")


@pytest.fixture
def cache() -> InMemoryTagCache:
    return InMemoryTagCache()


@pytest.fixture
def extractor(repo: SqliteJobRepository, cache: InMemoryTagCache) -> TagExtractor:
    return TagExtractor(repo, cache)


@pytest.fixture
def service(repo: SqliteJobRepository, extractor: TagExtractor) -> JobMatchService:
    return JobMatchService(repo, extractor, max_page_limit=100)
