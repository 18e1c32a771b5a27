from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from jm_engine.config import DEFAULT_TAG_CACHE_TTL_SECONDS
from jm_engine.errors import TagResolutionError
from jm_engine.models import Tag, TagCategory
from jm_engine.tags.cache import NullTagCache, TagCache, tag_cache_key
from jm_engine.tags.rules import category_for, extract_tag_names, normalize_description

logger = logging.getLogger(__name__)


class TagCatalog(Protocol):
    def find_tag_by_name(self, name: str) -> Optional[Tag]: ...

    def insert_tag(self, name: str, category: TagCategory) -> Tag: ...


class TagExtractor:
    """
    Description text in, tag catalog ids out.

    The cache only saves recomputation; the catalog stays the source of
    truth. Cache failures degrade to a full recompute and never fail the
    caller.
    """

    def __init__(
        self,
        catalog: TagCatalog,
        cache: Optional[TagCache] = None,
        ttl_seconds: int = DEFAULT_TAG_CACHE_TTL_SECONDS,
    ) -> None:
        self._catalog = catalog
        self._cache = cache if cache is not None else NullTagCache()
        self._ttl = ttl_seconds

    def _cache_get(self, key: str) -> Optional[List[str]]:
        try:
            cached = self._cache.get(key)
        except Exception as exc:
            logger.warning("tag cache read failed; recomputing: key=%s error=%s", key, exc)
            return None
        if cached is None:
            return None
        if not isinstance(cached, list) or not all(isinstance(v, str) for v in cached):
            logger.warning("tag cache entry malformed; recomputing: key=%s", key)
            return None
        return list(cached)

    def _cache_set(self, key: str, names: List[str]) -> None:
        try:
            self._cache.set(key, list(names), self._ttl)
        except Exception as exc:
            logger.warning("tag cache write failed: key=%s error=%s", key, exc)

    def extract_tag_names(self, description: Optional[str]) -> List[str]:
        normalized = normalize_description(description)
        if not normalized:
            return []
        key = tag_cache_key(normalized)
        names = self._cache_get(key)
        if names is not None:
            return names
        names = extract_tag_names(normalized)
        logger.debug("tags extracted: key=%s names=%s", key, names)
        self._cache_set(key, names)
        return names

    def resolve_tags(self, names: List[str]) -> List[Tag]:
        tags: List[Tag] = []
        unresolved: List[str] = []
        for name in names:
            tag = self._catalog.find_tag_by_name(name)
            if tag is None:
                tag = self._catalog.insert_tag(name, category_for(name))
            if tag is None:
                unresolved.append(name)
                continue
            tags.append(tag)
        if unresolved:
            raise TagResolutionError(unresolved)
        return tags

    def extract_tags(self, description: Optional[str]) -> List[Tag]:
        names = self.extract_tag_names(description)
        if not names:
            return []
        return self.resolve_tags(names)

    def extract_tag_ids(self, description: Optional[str]) -> List[int]:
        return [tag.id for tag in self.extract_tags(description)]

    def clear_cache(self) -> None:
        try:
            self._cache.clear()
        except Exception as exc:
            logger.warning("tag cache clear failed: error=%s", exc)
