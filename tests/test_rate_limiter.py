from __future__ import annotations

import asyncio
import time
from types import SimpleNamespace

import discord
import pytest

from keeper.backup.rate_limiter import RateLimiter


def http_error(status: int) -> discord.HTTPException:
    response = SimpleNamespace(status=status, reason="error", headers={"Retry-After": "0"})
    return discord.HTTPException(response, "boom")


async def test_retries_on_429_then_succeeds():
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise http_error(429)
        return "ok"

    assert await RateLimiter(min_interval_ms=0, max_retries=3).execute(1, flaky) == "ok"
    assert len(attempts) == 3


async def test_gives_up_after_max_retries():
    async def limited():
        raise http_error(429)

    with pytest.raises(discord.HTTPException):
        await RateLimiter(min_interval_ms=0, max_retries=1).execute(1, limited)


async def test_other_errors_propagate_immediately():
    attempts = []

    async def forbidden():
        attempts.append(1)
        raise http_error(403)

    with pytest.raises(discord.HTTPException):
        await RateLimiter(min_interval_ms=0).execute(1, forbidden)
    assert attempts == [1]


async def test_calls_for_different_servers_overlap():
    limiter = RateLimiter(min_interval_ms=0)
    first_started = asyncio.Event()

    async def first():
        first_started.set()
        await asyncio.sleep(0.05)
        return "first"

    async def second():
        # Would deadlock if the first call held a lock around the request
        await first_started.wait()
        return "second"

    results = await asyncio.wait_for(
        asyncio.gather(limiter.execute(1, first), limiter.execute(2, second)),
        timeout=1.0,
    )
    assert results == ["first", "second"]


async def test_slow_call_does_not_block_its_own_server():
    limiter = RateLimiter(min_interval_ms=0)
    release = asyncio.Event()

    async def slow():
        await release.wait()

    async def fast():
        release.set()
        return "fast"

    await asyncio.wait_for(asyncio.gather(limiter.execute(1, slow), limiter.execute(1, fast)), timeout=1.0)


async def test_calls_within_a_server_are_spaced():
    limiter = RateLimiter(min_interval_ms=50)
    stamps = []

    async def stamp():
        stamps.append(time.monotonic())

    await asyncio.gather(*(limiter.execute(7, stamp) for _ in range(3)))

    gaps = [b - a for a, b in zip(stamps, stamps[1:])]
    assert all(gap >= 0.04 for gap in gaps)
