from __future__ import annotations

import logging
from typing import Dict, List, Optional

import pytest

import jm_engine.tags.extractor as extractor_mod
from jm_engine.errors import TagResolutionError
from jm_engine.models import Tag, TagCategory
from jm_engine.repository import SqliteJobRepository
from jm_engine.tags.cache import InMemoryTagCache, TagCache, tag_cache_key
from jm_engine.tags.extractor import TagExtractor


class _RecordingCatalog:
    def __init__(self) -> None:
        self.tags: Dict[str, Tag] = {}
        self.calls: List[str] = []

    def find_tag_by_name(self, name: str) -> Optional[Tag]:
        self.calls.append(f"find:{name}")
        return self.tags.get(name)

    def insert_tag(self, name: str, category: TagCategory) -> Tag:
        self.calls.append(f"insert:{name}")
        tag = self.tags.setdefault(name, Tag(id=len(self.tags) + 1, name=name, category=category))
        return tag


class _RecordingCache(InMemoryTagCache):
    def __init__(self) -> None:
        super().__init__()
        self.ops: List[str] = []

    def get(self, key: str):
        self.ops.append("get")
        return super().get(key)

    def set(self, key: str, value, ttl=None) -> None:
        self.ops.append("set")
        super().set(key, value, ttl)


class _BrokenCache(TagCache):
    def get(self, key: str):
        raise ConnectionError("cache down")

    def set(self, key: str, value, ttl=None) -> None:
        raise ConnectionError("cache down")

    def clear(self) -> None:
        raise ConnectionError("cache down")


@pytest.mark.parametrize("text", ["", None, "   "])
def test_empty_description_touches_neither_cache_nor_catalog(text) -> None:
    catalog = _RecordingCatalog()
    cache = _RecordingCache()
    extractor = TagExtractor(catalog, cache)

    assert extractor.extract_tag_ids(text) == []
    assert catalog.calls == []
    assert cache.ops == []


def test_cold_and_warm_calls_agree() -> None:
    extractor = TagExtractor(_RecordingCatalog(), InMemoryTagCache())
    text = "Full stack developer with React, Node.js, and PostgreSQL experience"
    cold = extractor.extract_tag_names(text)
    warm = extractor.extract_tag_names(text)
    assert cold == warm == ["React", "Node.js", "PostgreSQL"]


def test_warm_cache_skips_recomputation(monkeypatch) -> None:
    extractor = TagExtractor(_RecordingCatalog(), InMemoryTagCache())
    text = "Python developer position"
    assert extractor.extract_tag_names(text) == ["Python", "Software Developer"]

    def _fail(_text):
        raise AssertionError("rules should not run on a cache hit")

    monkeypatch.setattr(extractor_mod, "extract_tag_names", _fail)
    assert extractor.extract_tag_names(text) == ["Python", "Software Developer"]
    # Same text with different casing shares the cache entry.
    assert extractor.extract_tag_names(text.upper()) == ["Python", "Software Developer"]


def test_different_descriptions_are_cached_separately() -> None:
    extractor = TagExtractor(_RecordingCatalog(), InMemoryTagCache())
    assert extractor.extract_tag_names("React developer") != extractor.extract_tag_names("Python developer")


def test_unavailable_cache_degrades_to_recompute(caplog) -> None:
    catalog = _RecordingCatalog()
    extractor = TagExtractor(catalog, _BrokenCache())
    with caplog.at_level(logging.WARNING, logger="jm_engine.tags.extractor"):
        ids = extractor.extract_tag_ids("DevOps engineer with AWS and Docker experience")
    assert [catalog.tags[n].id for n in ("AWS", "Docker", "DevOps Engineer")] == ids
    assert "tag cache read failed" in caplog.text
    assert "tag cache write failed" in caplog.text
    extractor.clear_cache()


def test_malformed_cache_entry_is_ignored() -> None:
    cache = InMemoryTagCache()
    extractor = TagExtractor(_RecordingCatalog(), cache)
    cache.set(tag_cache_key("react developer"), [1, 2])  # type: ignore[list-item]
    assert extractor.extract_tag_names("React developer") == ["React", "Software Developer"]


def test_ids_follow_tag_order_and_reuse_catalog_rows(repo: SqliteJobRepository) -> None:
    existing = repo.insert_tag("Docker", TagCategory.SKILL)
    extractor = TagExtractor(repo, InMemoryTagCache())

    tags = extractor.extract_tags("DevOps engineer with AWS and Docker experience")
    assert [t.name for t in tags] == ["AWS", "Docker", "DevOps Engineer"]
    assert tags[1].id == existing.id
    assert tags[0].category == TagCategory.SKILL
    assert tags[2].category == TagCategory.JOB_ROLE
    assert extractor.extract_tag_ids("DevOps engineer with AWS and Docker experience") == [t.id for t in tags]
    assert len(repo.list_tags()) == 3


def test_unresolvable_names_are_reported() -> None:
    class _NullCatalog:
        def find_tag_by_name(self, name):
            return None

        def insert_tag(self, name, category):
            return None

    extractor = TagExtractor(_NullCatalog(), InMemoryTagCache())
    with pytest.raises(TagResolutionError) as excinfo:
        extractor.extract_tag_ids("React developer")
    assert excinfo.value.unresolved == ["React", "Software Developer"]


def test_clear_cache_empties_the_cache() -> None:
    cache = InMemoryTagCache()
    extractor = TagExtractor(_RecordingCatalog(), cache)
    extractor.extract_tag_names("React developer")
    assert len(cache) == 1
    extractor.clear_cache()
    assert len(cache) == 0
