"""admission: distributed request-admission engine.

Decides in bounded time whether a request from a client key may proceed,
using a shared counter store (Redis) so every server process sees the same
counters. Five algorithms are available: token bucket, fixed window,
sliding window, leaky bucket and sliding log; each runs as one atomic
server-side script per decision.

Quick Start:
    ```python
    from redis.asyncio import Redis

    from admission import RateLimiter, RateLimitExceeded, RedisStore

    limiter = RateLimiter(
        windowLength=60,
        max=10,
        keyFn=lambda request: request["client_ip"],
        storeFn=RedisStore(Redis.from_url("redis://localhost:6379/0")),
        algorithm="sliding-window",
    )

    check = limiter.handler()
    try:
        decision = await check({"client_ip": "10.0.0.1"})
    except RateLimitExceeded as exc:
        print(exc.message, exc.decision.headers())
    ```
"""

from admission.config import Algorithm, FailurePolicy, LimiterConfig
from admission.errors import (
    AdmissionError,
    ConfigError,
    ErrorCode,
    RateLimitExceeded,
    ScriptNotFoundError,
    StoreError,
)
from admission.models import Decision
from admission.service import RateLimiter
from admission.storage import RedisStore, StoreAdapter

__all__ = [
    "AdmissionError",
    "Algorithm",
    "ConfigError",
    "Decision",
    "ErrorCode",
    "FailurePolicy",
    "LimiterConfig",
    "RateLimitExceeded",
    "RateLimiter",
    "RedisStore",
    "ScriptNotFoundError",
    "StoreAdapter",
    "StoreError",
]
