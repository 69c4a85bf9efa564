"""Pytest configuration for admission tests.

This configuration ensures:
1. Every test gets its own in-memory Redis server (fakeredis, real Lua)
2. The process-wide script cache is replaced per test
3. Time is driven by a fake clock, never the wall clock
"""

from collections.abc import Callable
from typing import Any

import fakeredis
import fakeredis.aioredis
import pytest
import pytest_asyncio

from admission.scripts import manager as script_manager
from admission.scripts.manager import ScriptCache
from admission.service import RateLimiter
from admission.storage import RedisStore

# Fixed epoch milliseconds (2023-11-14T22:13:20Z)
START_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, now_ms: int = START_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)

    def advance_ms(self, milliseconds: int) -> None:
        self.now_ms += milliseconds


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock starting at START_MS."""
    return FakeClock()


@pytest.fixture(autouse=True)
def script_cache(monkeypatch) -> ScriptCache:
    """Replace the process-wide script cache so tests don't share handles."""
    cache = ScriptCache()
    monkeypatch.setattr(script_manager, "SCRIPT_CACHE", cache)
    return cache


@pytest.fixture
def fake_server() -> fakeredis.FakeServer:
    """Dedicated fakeredis server (FakeRedis clients share one by default)."""
    return fakeredis.FakeServer()


@pytest_asyncio.fixture
async def redis_client(fake_server):
    """Create fakeredis client for testing.

    Returns:
        fakeredis.aioredis.FakeRedis instance that executes the Lua scripts.
    """
    client = fakeredis.aioredis.FakeRedis(server=fake_server)
    yield client
    await client.aclose()


@pytest.fixture
def store_fn(redis_client) -> RedisStore:
    """Store function backed by the fakeredis client."""
    return RedisStore(redis_client)


@pytest.fixture
def make_limiter(store_fn, clock) -> Callable[..., RateLimiter]:
    """Factory for limiters wired to fakeredis and the fake clock.

    Defaults: max=3, windowLength=10s, keyFn returns the request itself.
    """

    def _make(algorithm: str, **options: Any) -> RateLimiter:
        options.setdefault("windowLength", 10)
        options.setdefault("max", 3)
        options.setdefault("keyFn", lambda request: request)
        options.setdefault("storeFn", store_fn)
        options.setdefault("clock", clock)
        return RateLimiter(algorithm=algorithm, **options)

    return _make
