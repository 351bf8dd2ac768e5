"""
결과 캐시 테스트: TTL 만료, 무효화.
"""
import threading

from app.infrastructure.consistency.result_cache import ResultCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_get_returns_value_until_ttl_expires():
    clock = FakeClock()
    cache = ResultCache(ttl_seconds=60, clock=clock)
    cache.set("user:1:2024-01-10:1", "result")
    clock.now += 60
    assert cache.get("user:1:2024-01-10:1") == "result"
    clock.now += 1
    assert cache.get("user:1:2024-01-10:1") is None
    assert len(cache) == 0


def test_zero_ttl_disables_cache():
    cache = ResultCache(ttl_seconds=0)
    cache.set("k", "v")
    assert cache.get("k") is None


def test_get_or_compute_calls_once():
    cache = ResultCache(ttl_seconds=60, clock=FakeClock())
    calls = []

    def compute():
        calls.append(1)
        return 42

    assert cache.get_or_compute("k", compute) == 42
    assert cache.get_or_compute("k", compute) == 42
    assert len(calls) == 1


def test_invalidate_prefix_only_touches_that_user():
    cache = ResultCache(ttl_seconds=60, clock=FakeClock())
    cache.set("user:1:2024-01-10:1", "a")
    cache.set("user:1:2024-01-10:0", "b")
    cache.set("user:12:2024-01-10:1", "c")
    assert cache.invalidate_prefix("user:1:") == 2
    assert cache.get("user:12:2024-01-10:1") == "c"
    assert cache.invalidate("user:12:2024-01-10:1") is True
    assert cache.invalidate("user:12:2024-01-10:1") is False


def test_clear():
    cache = ResultCache(ttl_seconds=60)
    cache.set("a", 1)
    cache.clear()
    assert len(cache) == 0


def test_len_while_writing_from_threads():
    cache = ResultCache(ttl_seconds=60)

    def fill(offset):
        for i in range(200):
            cache.set(f"user:{offset}:{i}", i)
            len(cache)

    threads = [threading.Thread(target=fill, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(cache) == 800
