"""Rate limiter: the per-request entry point of the admission engine.

RateLimiter validates its configuration once, selects one admission
algorithm, and then turns each request (or client key) into a Decision.
It follows the Facade pattern over the store adapter, script manager and
algorithm.

Key Design Decisions:
    1. Fail fast at construction
       - Invalid options raise ConfigError from the constructor
       - Nothing is validated per request

    2. No HTTP dependencies
       - ``key_fn`` maps whatever request object the caller has to a key
       - RateLimitMiddleware adds the Starlette/FastAPI surface

    3. Store failures are not verdicts
       - FailurePolicy.PROPAGATE (default) re-raises StoreError
       - FAIL_OPEN / FAIL_CLOSED produce a Decision and log the failure

    4. Whitelisted keys never reach the store

Usage:
    ```python
    from admission.service import RateLimiter
    from admission.storage import RedisStore

    limiter = RateLimiter(
        windowLength=60,
        max=10,
        keyFn=lambda request: request.client.host,
        storeFn=RedisStore(redis_client),
        algorithm="sliding-window",
    )

    decision = await limiter.evaluate(request)
    if not decision.allowed:
        ...
    ```
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence
from time import perf_counter
from typing import Any

import structlog

from admission.algorithms import AdmissionAlgorithm, build_algorithm
from admission.config import FailurePolicy, LimiterConfig
from admission.errors import ConfigError, RateLimitExceeded, StoreError
from admission.models import Decision
from admission.scripts.manager import ScriptManager
from admission.storage.base import StoreAdapter

logger = structlog.get_logger(__name__)


class RateLimiter:
    """Admission engine for one limiter configuration.

    Build it either from a LimiterConfig or from keyword options (camelCase
    or snake_case names, see LimiterConfig).

    Args:
        config: Pre-built configuration. Mutually exclusive with options.
        **options: Configuration options validated into a LimiterConfig.

    Raises:
        ConfigError: If the configuration is missing or invalid.

    Attributes:
        config: The validated configuration.
        store: Store adapter wrapping ``config.store_fn``.
        scripts: Script manager shared by the algorithm and reset_key().
        algorithm: The selected admission algorithm.
    """

    def __init__(self, config: LimiterConfig | None = None, /, **options: Any) -> None:
        if config is None:
            config = LimiterConfig.from_options(**options)
        elif options:
            raise ConfigError(
                "Pass either a LimiterConfig or keyword options, not both",
                details={"fields": sorted(options)},
            )
        self.config = config
        self.store = StoreAdapter(config.store_fn, timeout=config.store_timeout)
        self.scripts = ScriptManager(self.store)
        self.algorithm: AdmissionAlgorithm = build_algorithm(config, self.scripts)

    async def evaluate(self, request: Any) -> Decision:
        """Resolve the client key for a request and decide on it.

        Args:
            request: Anything ``key_fn`` accepts.

        Returns:
            Decision: Verdict and quota metadata.

        Raises:
            StoreError: If the store fails and the policy is PROPAGATE.
        """
        key = await self.resolve_key(request)
        return await self.decide(key)

    async def resolve_key(self, request: Any) -> str:
        """Run ``key_fn`` (sync or async) and return the client key."""
        key = self.config.key_fn(request)
        if inspect.isawaitable(key):
            key = await key
        return str(key)

    async def decide(self, key: str, *, now_ms: int | float | None = None) -> Decision:
        """Decide whether one request from ``key`` is admitted.

        Args:
            key: Client key (without the store prefix).
            now_ms: Override current time in epoch ms (for testing). Defaults
                to ``config.clock()``.

        Returns:
            Decision: Verdict and quota metadata.

        Raises:
            StoreError: If the store fails and the policy is PROPAGATE.
        """
        config = self.config
        if config.is_whitelisted(key):
            logger.debug("Rate limit bypassed for whitelisted key", key=key)
            return Decision(
                allowed=True,
                limit=config.max,
                remaining=config.max,
                duration=config.duration_seconds,
                whitelisted=True,
            )

        start_time = perf_counter()
        now = int(now_ms if now_ms is not None else config.clock())
        try:
            decision = await self.algorithm.decide(self.store_key(key), now)
        except StoreError as exc:
            logger.error(
                "Rate limit store failure",
                key=key,
                algorithm=config.algorithm.value,
                failure_policy=config.failure_policy.value,
                error_code=exc.code.value,
                error_message=exc.message,
            )
            match config.failure_policy:
                case FailurePolicy.FAIL_OPEN:
                    return Decision(
                        allowed=True,
                        limit=config.max,
                        remaining=config.max - 1,
                        duration=config.duration_seconds,
                    )
                case FailurePolicy.FAIL_CLOSED:
                    return Decision(
                        allowed=False,
                        limit=config.max,
                        remaining=0,
                        duration=config.duration_seconds,
                    )
                case _:
                    raise

        elapsed_ms = (perf_counter() - start_time) * 1000
        if decision.allowed:
            logger.info(
                "Rate limit check passed",
                key=key,
                algorithm=config.algorithm.value,
                limit=decision.limit,
                remaining=decision.remaining,
                execution_time_ms=elapsed_ms,
            )
        else:
            logger.warning(
                "Rate limit exceeded",
                key=key,
                algorithm=config.algorithm.value,
                limit=decision.limit,
                remaining=decision.remaining,
                execution_time_ms=elapsed_ms,
            )
        return decision

    async def enforce(self, request: Any) -> Decision:
        """Like evaluate(), but raise on reject.

        Raises:
            RateLimitExceeded: If the request is rejected. Carries the
                configured message and the Decision.
            StoreError: If the store fails and the policy is PROPAGATE.
        """
        decision = await self.evaluate(request)
        if not decision.allowed:
            raise RateLimitExceeded(self.config.message, decision=decision)
        return decision

    def handler(self) -> Callable[[Any], Awaitable[Decision]]:
        """Return the per-request decision function.

        The returned coroutine function returns the Decision on admit and
        raises RateLimitExceeded on reject.
        """
        return self.enforce

    async def reset_key(self, key: str) -> None:
        """Delete the stored state for a client key.

        The next request from the key behaves like its first-ever request.

        Raises:
            StoreError: If the store fails.
        """
        await self.scripts.reset_key(self.store_key(key))

    async def run_script(
        self, source: str, keys: Sequence[str], args: Sequence[Any]
    ) -> Any:
        """Run an arbitrary script atomically (keys are used as given).

        Raises:
            StoreError: If the store fails.
        """
        return await self.scripts.execute(source, keys, args)

    def store_key(self, key: str) -> str:
        """Full store key for a client key."""
        return f"{self.config.key_prefix}{key}"

    async def close(self) -> None:
        """Close the store function if it exposes ``close()``."""
        close = getattr(self.config.store_fn, "close", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result
