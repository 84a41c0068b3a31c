from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, TypeVar

import discord

log = logging.getLogger("keeper.backup.rate_limiter")

T = TypeVar("T")


@dataclass
class _Bucket:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    next_slot: float = 0.0


class RateLimiter:
    """
    Paces mutating Discord API calls and retries on 429.

    Pacing is tracked per key (the target server), so restores into
    different servers never wait on each other. The lock only guards
    reserving a time slot; the call itself runs outside it.
    """

    def __init__(self, min_interval_ms: int = 250, max_retries: int = 3) -> None:
        self._min_interval = max(0, min_interval_ms) / 1000.0
        self._max_retries = max(0, max_retries)
        self._buckets: Dict[int, _Bucket] = {}

    async def execute(self, key: int, coro: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run ``coro(*args, **kwargs)`` paced within ``key``; non-429 errors propagate."""
        bucket = self._buckets.setdefault(int(key), _Bucket())
        attempt = 0
        while True:
            await self._pace(bucket)
            try:
                return await coro(*args, **kwargs)
            except discord.HTTPException as e:
                if e.status != 429 or attempt >= self._max_retries:
                    raise
                retry_after = self._retry_after(e)
            attempt += 1
            log.warning("Rate limited on %s, waiting %.2fs (attempt %d/%d)", key, retry_after, attempt, self._max_retries)
            await asyncio.sleep(retry_after)

    async def _pace(self, bucket: _Bucket) -> None:
        async with bucket.lock:
            now = time.monotonic()
            start = max(now, bucket.next_slot)
            bucket.next_slot = start + self._min_interval
        if start > now:
            await asyncio.sleep(start - now)

    @staticmethod
    def _retry_after(error: discord.HTTPException) -> float:
        response = getattr(error, "response", None)
        headers = getattr(response, "headers", None) or {}
        try:
            return max(0.0, float(headers.get("Retry-After", 1.0)))
        except (TypeError, ValueError):
            return 1.0
