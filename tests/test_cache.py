import threading
import time
from collections.abc import Generator
from pathlib import Path

import pytest
from diskcache import Cache

from areslookup import CacheStore, MemoryStore, RegistryCache


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> _FakeClock:
    return _FakeClock()


@pytest.fixture
def disk_cache(tmp_path: Path) -> Generator[Cache, None, None]:
    cache = Cache(str(tmp_path / "cache"))
    yield cache
    cache.close()


def test_hit_does_not_recompute(clock: _FakeClock) -> None:
    cache = RegistryCache(MemoryStore(clock), ttl=60)
    calls: list[int] = []

    def compute() -> list[str]:
        calls.append(1)
        return ["value"]

    first = cache.get_or_compute("ico.00000123", compute)
    second = cache.get_or_compute("ico.00000123", compute)

    assert first == ["value"]
    assert second is first
    assert len(calls) == 1


def test_falsy_values_are_cached(clock: _FakeClock) -> None:
    cache = RegistryCache(MemoryStore(clock), ttl=60)
    calls: list[int] = []

    def compute() -> list[str]:
        calls.append(1)
        return []

    assert cache.get_or_compute("search.abc", compute) == []
    assert cache.get_or_compute("search.abc", compute) == []
    assert len(calls) == 1


def test_expired_entry_is_recomputed(clock: _FakeClock) -> None:
    cache = RegistryCache(MemoryStore(clock), ttl="1 month")
    values = iter(["old", "new"])

    assert cache.get_or_compute("key", lambda: next(values)) == "old"
    clock.now += 29 * 86400
    assert cache.get_or_compute("key", lambda: next(values)) == "old"
    clock.now += 2 * 86400
    assert cache.get_or_compute("key", lambda: next(values)) == "new"


def test_per_call_ttl_overrides_default(clock: _FakeClock) -> None:
    cache = RegistryCache(MemoryStore(clock), ttl="1 day")
    values = iter(["a", "b"])

    cache.get_or_compute("key", lambda: next(values), ttl=10)
    clock.now += 11

    assert cache.get_or_compute("key", lambda: next(values)) == "b"


def test_failed_compute_stores_nothing(clock: _FakeClock) -> None:
    store = MemoryStore(clock)
    cache = RegistryCache(store, ttl=60)

    def boom() -> str:
        raise LookupError("upstream broke")

    with pytest.raises(LookupError, match="upstream broke"):
        cache.get_or_compute("key", boom)

    assert len(store) == 0
    assert cache.get_or_compute("key", lambda: "ok") == "ok"


def test_invalidate_single_key(clock: _FakeClock) -> None:
    cache = RegistryCache(MemoryStore(clock), ttl=60)
    cache.get_or_compute("a", lambda: 1)
    cache.get_or_compute("b", lambda: 2)

    assert cache.invalidate("a") is True
    assert cache.invalidate("a") is False
    assert cache.get_or_compute("a", lambda: 10) == 10
    assert cache.get_or_compute("b", lambda: 20) == 2


def test_invalidate_all_keeps_other_namespaces(clock: _FakeClock) -> None:
    store = MemoryStore(clock)
    ares = RegistryCache(store, namespace="ares", ttl=60)
    other = RegistryCache(store, namespace="other", ttl=60)
    ares.get_or_compute("a", lambda: 1)
    ares.get_or_compute("b", lambda: 2)
    other.get_or_compute("a", lambda: "kept")

    assert ares.invalidate_all() == 2

    assert ares.get_or_compute("a", lambda: "fresh") == "fresh"
    assert other.get_or_compute("a", lambda: "recomputed") == "kept"


def test_disk_cache_is_a_store(disk_cache: Cache) -> None:
    assert isinstance(disk_cache, CacheStore)

    ares = RegistryCache(disk_cache, namespace="ares", ttl=60)
    other = RegistryCache(disk_cache, namespace="other", ttl=60)
    ares.get_or_compute("ico.00000123", lambda: {"name": "Example"})
    other.get_or_compute("ico.00000123", lambda: "kept")

    assert ares.get_or_compute("ico.00000123", lambda: {"name": "changed"}) == {"name": "Example"}

    ares.invalidate_all()

    assert ares.get_or_compute("ico.00000123", lambda: "fresh") == "fresh"
    assert other.get_or_compute("ico.00000123", lambda: "recomputed") == "kept"


def test_concurrent_misses_compute_once() -> None:
    cache = RegistryCache(MemoryStore(), ttl=60)
    calls: list[int] = []
    started = threading.Event()

    def slow_compute() -> str:
        calls.append(1)
        started.set()
        time.sleep(0.05)
        return "value"

    results: list[str] = []

    def worker() -> None:
        results.append(cache.get_or_compute("key", slow_compute))

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert started.is_set()
    assert results == ["value"] * 5
    assert len(calls) == 1


def test_empty_namespace_is_rejected() -> None:
    with pytest.raises(ValueError):
        RegistryCache(MemoryStore(), namespace="")


def test_key_locks_are_released_after_use(clock: _FakeClock) -> None:
    cache = RegistryCache(MemoryStore(clock), ttl=60)

    for i in range(1000):
        cache.get_or_compute(f"search.{i}", lambda: [])

    with pytest.raises(RuntimeError):
        cache.get_or_compute("ico.00000123", _failing_compute)

    assert cache._locks == {}


def test_key_locks_are_released_after_concurrent_misses() -> None:
    cache = RegistryCache(MemoryStore(), ttl=60)

    def slow_compute() -> str:
        time.sleep(0.02)
        return "value"

    threads = [
        threading.Thread(target=cache.get_or_compute, args=("key", slow_compute)) for _ in range(5)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert cache._locks == {}


def _failing_compute() -> str:
    raise RuntimeError("boom")


class _ClosingStore(MemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self.closed = False

    def close(self) -> None:
        self.closed = True


def test_close_closes_the_store() -> None:
    store = _ClosingStore()
    cache = RegistryCache(store, ttl=60)

    cache.close()

    assert store.closed


def test_close_without_closable_store(clock: _FakeClock) -> None:
    RegistryCache(MemoryStore(clock), ttl=60).close()
