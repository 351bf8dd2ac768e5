"""
호출자 소유 결과 캐시: 키 기반 TTL 저장소 + 명시적 무효화.
엔진 내부에는 캐시가 없으며 이 캐시는 어디까지나 성능 최적화용 사본이다(원본 아님).
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    stored_at: float


class ResultCache:
    """ttl_seconds <= 0 이면 저장하지 않는다(항상 miss)."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            age = self._clock() - entry.stored_at
            if age > self.ttl_seconds:
                del self._entries[key]
                logger.debug("[result_cache] expired key=%s age=%.1fs", key, age)
                return None
            return entry.value

    def set(self, key: str, value: Any) -> None:
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            self._entries[key] = _Entry(value=value, stored_at=self._clock())

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = compute()
        self.set(key, value)
        return value

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate_prefix(self, prefix: str) -> int:
        """완료 토글 직후 해당 사용자 키를 한꺼번에 지울 때 사용."""
        with self._lock:
            keys = [k for k in self._entries if k.startswith(prefix)]
            for k in keys:
                del self._entries[k]
        if keys:
            logger.debug("[result_cache] invalidated prefix=%s count=%s", prefix, len(keys))
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
