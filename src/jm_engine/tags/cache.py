from __future__ import annotations

import hashlib
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from jm_engine.config import DEFAULT_TAG_CACHE_TTL_SECONDS
from jm_engine.tags.rules import RULES_VERSION

CACHE_KEY_PREFIX = "tags:"


def tag_cache_key(normalized_text: str, rules_version: str = RULES_VERSION) -> str:
    """
    Fixed-length key for an already-lowercased description.

    Keys change whenever RULES_VERSION changes.
    """
    digest = hashlib.sha256(f"{rules_version}\n{normalized_text}".encode("utf-8")).hexdigest()
    return CACHE_KEY_PREFIX + digest


class TagCache:
    def get(self, key: str) -> Optional[List[str]]:
        raise NotImplementedError

    def set(self, key: str, value: List[str], ttl: Optional[int] = None) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class NullTagCache(TagCache):
    def get(self, key: str) -> Optional[List[str]]:
        return None

    def set(self, key: str, value: List[str], ttl: Optional[int] = None) -> None:
        return None

    def clear(self) -> None:
        return None


class InMemoryTagCache(TagCache):
    """
    Process-wide TTL cache of extracted tag names.

    Entries expire lazily on read. Values are copied in and out so callers
    can never mutate a cached list.
    """

    def __init__(
        self,
        default_ttl_seconds: int = DEFAULT_TAG_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be positive")
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[float, List[str]]] = {}

    def get(self, key: str) -> Optional[List[str]]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= now:
                del self._entries[key]
                return None
            return list(value)

    def set(self, key: str, value: List[str], ttl: Optional[int] = None) -> None:
        seconds = self._default_ttl if ttl is None else ttl
        if seconds <= 0:
            return
        expires_at = self._clock() + seconds
        with self._lock:
            self._entries[key] = (expires_at, list(value))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for expires_at, _ in self._entries.values() if expires_at > now)
