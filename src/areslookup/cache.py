"""TTL cache in front of the ARES transport.

The store interface mirrors :class:`diskcache.Cache`, so a disk cache can be
passed in unchanged when results should survive the process or be shared
between workers. :class:`MemoryStore` is the in-process default.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import timedelta
from typing import Any, Protocol, TypeVar, runtime_checkable

from .config import DEFAULT_CACHE_TTL, parse_duration
from .utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("cache")

T = TypeVar("T")

_MISSING = object()


@runtime_checkable
class CacheStore(Protocol):
    """Key-value store with per-entry expiry and tag based eviction."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any, expire: float | None = None, tag: str | None = None) -> bool:
        ...

    def delete(self, key: str) -> bool:
        ...

    def evict(self, tag: str) -> int:
        """Remove every entry stored with *tag* and return how many were removed."""

        ...


class MemoryStore:
    """Thread-safe in-process store with lazy expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float | None, str | None, Any]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            expires_at, _tag, value = entry
            if expires_at is not None and expires_at <= self._clock():
                del self._entries[key]
                return default
            return value

    def set(self, key: str, value: Any, expire: float | None = None, tag: str | None = None) -> bool:
        expires_at = self._clock() + expire if expire is not None else None
        with self._lock:
            self._entries[key] = (expires_at, tag, value)
        return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def evict(self, tag: str) -> int:
        with self._lock:
            keys = [key for key, (_, entry_tag, _) in self._entries.items() if entry_tag == tag]
            for key in keys:
                del self._entries[key]
        return len(keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RegistryCache:
    """Get-or-compute cache confined to one namespace of a (possibly shared) store.

    Concurrent misses for the same key are coalesced: only one caller runs
    ``compute`` while the others wait and then read its stored result.
    """

    def __init__(
        self,
        store: CacheStore | None = None,
        *,
        namespace: str = "ares",
        ttl: str | int | float | timedelta = DEFAULT_CACHE_TTL,
    ) -> None:
        if not namespace:
            raise ValueError("Cache namespace must not be empty")
        self._store: CacheStore = store if store is not None else MemoryStore()
        self.namespace = namespace
        self.ttl = parse_duration(ttl)
        # full key -> [lock, number of callers holding or waiting for it]
        self._locks: dict[str, list[Any]] = {}
        self._locks_guard = threading.Lock()

    @property
    def store(self) -> CacheStore:
        return self._store

    def _full_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    @contextmanager
    def _key_lock(self, full_key: str) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.setdefault(full_key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[full_key]

    def get_or_compute(
        self,
        key: str,
        compute: Callable[[], T],
        ttl: str | int | float | timedelta | None = None,
    ) -> T:
        """Return the cached value for *key*, computing and storing it on a miss.

        If ``compute`` raises, nothing is stored and the exception propagates.
        """

        full_key = self._full_key(key)
        value = self._store.get(full_key, _MISSING)
        if value is not _MISSING:
            LOGGER.debug("Cache hit: %s", full_key)
            return value

        with self._key_lock(full_key):
            value = self._store.get(full_key, _MISSING)
            if value is not _MISSING:
                LOGGER.debug("Cache hit after wait: %s", full_key)
                return value

            LOGGER.debug("Cache miss: %s", full_key)
            value = compute()
            expire = parse_duration(ttl) if ttl is not None else self.ttl
            self._store.set(full_key, value, expire=expire, tag=self.namespace)
            return value

    def invalidate(self, key: str) -> bool:
        removed = self._store.delete(self._full_key(key))
        LOGGER.debug("Invalidated %s (present=%s)", self._full_key(key), removed)
        return removed

    def invalidate_all(self) -> int:
        """Drop every entry of this namespace, leaving other namespaces intact."""

        removed = self._store.evict(self.namespace)
        LOGGER.info("Cleared %s cached ARES entries (namespace '%s')", removed, self.namespace)
        return removed

    def close(self) -> None:
        """Close the underlying store if it holds resources (e.g. a disk cache)."""

        close = getattr(self._store, "close", None)
        if callable(close):
            close()


__all__ = ["CacheStore", "MemoryStore", "RegistryCache"]
