"""Unit tests for the RateLimiter dispatcher.

Test Strategy:
    - fakeredis for end-to-end decisions
    - AsyncMock algorithms/store functions to drive failure paths
    - Failure policies must be explicit: PROPAGATE raises StoreError
"""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from admission.errors import ErrorCode, RateLimitExceeded, StoreError
from admission.models import Decision
from admission.service import RateLimiter

KEY = "10.0.0.1"


def _failing_store(command, *args):
    raise RedisConnectionError("Connection refused")


class TestEvaluate:
    """Test key resolution and dispatch."""

    @pytest.mark.asyncio
    async def test_sync_key_fn(self, make_limiter, redis_client):
        limiter = make_limiter("fixed-window", keyFn=lambda request: request["ip"])

        decision = await limiter.evaluate({"ip": KEY})

        assert decision.allowed is True
        assert await redis_client.exists("rate_limit:10.0.0.1") == 1

    @pytest.mark.asyncio
    async def test_async_key_fn(self, make_limiter):
        async def key_fn(request):
            return f"user:{request}"

        limiter = make_limiter("fixed-window", keyFn=key_fn)

        assert await limiter.resolve_key(42) == "user:42"

    @pytest.mark.asyncio
    async def test_explicit_now_overrides_clock(self, make_limiter, clock):
        limiter = make_limiter("fixed-window")
        for _ in range(3):
            await limiter.decide(KEY)

        decision = await limiter.decide(KEY, now_ms=clock.now_ms + 60_000)

        assert decision.allowed is True

    @pytest.mark.asyncio
    async def test_dispatches_to_algorithm(self, make_limiter):
        limiter = make_limiter("token-bucket", keyPrefix="app:")
        expected = Decision(allowed=True, limit=3, remaining=2, duration=10)
        limiter.algorithm.decide = AsyncMock(return_value=expected)

        decision = await limiter.decide(KEY, now_ms=1234.9)

        assert decision is expected
        limiter.algorithm.decide.assert_awaited_once_with("app:10.0.0.1", 1234)

    @pytest.mark.asyncio
    async def test_store_key(self, make_limiter):
        limiter = make_limiter("sliding-window")

        assert limiter.store_key(KEY) == "rate_limit:10.0.0.1"


class TestWhitelist:
    """Test whitelisted keys bypass the store."""

    @pytest.mark.asyncio
    async def test_whitelisted_key_admitted_without_store(
        self, make_limiter, redis_client
    ):
        limiter = make_limiter("sliding-window", whiteList=[KEY])

        decisions = [await limiter.decide(KEY) for _ in range(10)]

        assert all(d.allowed and d.whitelisted for d in decisions)
        assert decisions[-1].remaining == 3
        assert await redis_client.keys("*") == []

    @pytest.mark.asyncio
    async def test_whitelist_bypasses_failing_store(self, make_limiter):
        limiter = make_limiter(
            "token-bucket", whiteList=[KEY], storeFn=_failing_store
        )

        decision = await limiter.decide(KEY)

        assert decision.allowed is True

    @pytest.mark.asyncio
    async def test_other_keys_still_limited(self, make_limiter):
        limiter = make_limiter("sliding-window", whiteList=[KEY])

        decisions = [await limiter.decide("10.0.0.2") for _ in range(4)]

        assert decisions[-1].allowed is False
        assert decisions[-1].whitelisted is False


class TestFailurePolicy:
    """Test store failure handling."""

    @pytest.mark.asyncio
    async def test_propagate_by_default(self, make_limiter):
        limiter = make_limiter("sliding-window", storeFn=_failing_store)

        with pytest.raises(StoreError) as exc_info:
            await limiter.decide(KEY)

        assert exc_info.value.code is ErrorCode.SCRIPT_LOAD_FAILED

    @pytest.mark.asyncio
    async def test_fail_open(self, make_limiter):
        limiter = make_limiter(
            "sliding-window", storeFn=_failing_store, failurePolicy="fail_open"
        )

        decision = await limiter.decide(KEY)

        assert decision.allowed is True
        assert decision.remaining == 2

    @pytest.mark.asyncio
    async def test_fail_closed(self, make_limiter):
        limiter = make_limiter(
            "sliding-window", storeFn=_failing_store, failurePolicy="fail_closed"
        )

        decision = await limiter.decide(KEY)

        assert decision.allowed is False
        assert decision.remaining == 0
        assert decision.limit == 3

    @pytest.mark.asyncio
    async def test_timeout_propagates(self, make_limiter):
        limiter = make_limiter("token-bucket", storeTimeout=0.01)
        limiter.algorithm.decide = AsyncMock(
            side_effect=StoreError("timed out", code=ErrorCode.STORE_TIMEOUT)
        )

        with pytest.raises(StoreError) as exc_info:
            await limiter.decide(KEY)

        assert exc_info.value.code is ErrorCode.STORE_TIMEOUT

    @pytest.mark.asyncio
    async def test_malformed_script_reply(self, make_limiter):
        limiter = make_limiter("fixed-window")
        limiter.scripts.execute = AsyncMock(return_value=42)

        with pytest.raises(StoreError):
            await limiter.decide(KEY)


class TestEnforce:
    """Test exception-style rejection."""

    @pytest.mark.asyncio
    async def test_enforce_raises_on_reject(self, make_limiter):
        limiter = make_limiter("fixed-window", max=1, message="Slow down")
        await limiter.enforce(KEY)

        with pytest.raises(RateLimitExceeded) as exc_info:
            await limiter.enforce(KEY)

        assert exc_info.value.message == "Slow down"
        assert exc_info.value.decision.remaining == -1
        assert exc_info.value.decision.limit == 1

    @pytest.mark.asyncio
    async def test_handler_returns_decision_on_admit(self, make_limiter):
        limiter = make_limiter("sliding-window")
        check = limiter.handler()

        decision = await check(KEY)

        assert decision.allowed is True
        assert decision.remaining == 2


class TestRunScript:
    """Test raw script execution through the limiter."""

    @pytest.mark.asyncio
    async def test_run_script(self, make_limiter, redis_client):
        limiter = make_limiter("fixed-window")

        reply = await limiter.run_script(
            "return redis.call('SET', KEYS[1], ARGV[1])", ["custom"], ["v"]
        )

        assert reply == "OK"
        assert await redis_client.get("custom") == b"v"

    @pytest.mark.asyncio
    async def test_close(self, make_limiter):
        store = AsyncMock()
        limiter = make_limiter("fixed-window", storeFn=store)

        await limiter.close()

        store.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_without_close_method(self, make_limiter):
        limiter = make_limiter("fixed-window", storeFn=lambda command, *args: None)

        await limiter.close()


@pytest.mark.asyncio
async def test_limiter_exposes_config(make_limiter):
    limiter = make_limiter("leaky-bucket")

    assert isinstance(limiter, RateLimiter)
    assert limiter.config.max == 3
