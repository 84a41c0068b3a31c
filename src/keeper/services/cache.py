from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Generic, Optional, TypeVar

K = TypeVar("K")
V = TypeVar("V")


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[K, V]):
    """
    In-memory cache whose entries expire after a fixed number of seconds.

    Expired entries are dropped when read and swept on every write, so the
    cache never holds more than what was written within one TTL window.
    """

    def __init__(self, default_ttl_seconds: int = 120) -> None:
        self._default_ttl = max(1, int(default_ttl_seconds))
        self._store: dict[K, _Entry[V]] = {}

    def get(self, key: K) -> Optional[V]:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.expires_at < time.monotonic():
            self._store.pop(key, None)
            return None
        return entry.value

    def set(self, key: K, value: V, ttl_seconds: Optional[int] = None) -> None:
        self.prune()
        ttl = self._default_ttl if ttl_seconds is None else max(1, int(ttl_seconds))
        self._store[key] = _Entry(value=value, expires_at=time.monotonic() + ttl)

    def delete(self, key: K) -> None:
        self._store.pop(key, None)

    def prune(self) -> int:
        now = time.monotonic()
        stale = [k for k, v in self._store.items() if v.expires_at < now]
        for k in stale:
            self._store.pop(k, None)
        return len(stale)
