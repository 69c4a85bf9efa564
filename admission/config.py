"""Limiter configuration models.

This module defines the algorithms, failure policies and the validated
configuration for a single RateLimiter.

Key Design Decisions:
    1. Fail fast at construction
       - Every field is validated by Pydantic when the limiter is built
       - Validation errors are re-raised as ConfigError, never per request

    2. Closed set of algorithms
       - Algorithm is an Enum; unknown names are rejected up front
       - Both "token-bucket" and "token_bucket" spellings are accepted

    3. Immutable configuration (frozen Pydantic model)
       - Shared by every concurrent decision without locking

    4. No implicit verdict on store failure
       - FailurePolicy.PROPAGATE (default) re-raises StoreError
       - FAIL_OPEN / FAIL_CLOSED must be chosen explicitly

Usage:
    ```python
    from admission.config import Algorithm, LimiterConfig

    config = LimiterConfig.from_options(
        windowLength=60,
        max=10,
        keyFn=lambda request: request.client.host,
        storeFn=RedisStore(redis_client),
        algorithm="sliding-window",
    )
    ```
"""

import time
from datetime import timedelta
from enum import Enum
from typing import Any, Awaitable, Callable

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveFloat,
    ValidationError,
    field_validator,
)

from admission.errors import ConfigError

DEFAULT_MESSAGE = "Rate limit exceeded"
DEFAULT_KEY_PREFIX = "rate_limit:"


class Algorithm(str, Enum):
    """Admission-control algorithms.

    Attributes:
        TOKEN_BUCKET: Refills max tokens per window; allows bursts up to max.
        FIXED_WINDOW: Counter reset at absolute window boundaries.
        SLIDING_WINDOW: Timestamps of admitted requests within the last window.
        LEAKY_BUCKET: Level leaks in at max per window; rejected requests
            still drain the bucket.
        SLIDING_LOG: Sliding window over a configurable recency window.
    """

    TOKEN_BUCKET = "token-bucket"
    FIXED_WINDOW = "fixed-window"
    SLIDING_WINDOW = "sliding-window"
    LEAKY_BUCKET = "leaky-bucket"
    SLIDING_LOG = "sliding-log"


class FailurePolicy(str, Enum):
    """What to do when the counter store fails.

    Attributes:
        PROPAGATE: Raise StoreError to the caller (no verdict assumed).
        FAIL_OPEN: Admit the request and log the failure.
        FAIL_CLOSED: Reject the request and log the failure.
    """

    PROPAGATE = "propagate"
    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"


def wall_clock_ms() -> float:
    """Current epoch time in milliseconds."""
    return time.time() * 1000


class LimiterConfig(BaseModel):
    """Configuration for one RateLimiter.

    Field aliases match the camelCase option names accepted by
    ``RateLimiter(**options)`` (windowLength, keyFn, storeFn, whiteList);
    snake_case names work as well.

    Attributes:
        window_length: Window span. Numbers are seconds.
        max: Maximum requests (or token capacity) per window.
        key_fn: Resolves the client key from a request (sync or async).
        store_fn: Executes one store command: store_fn(command, *args).
        algorithm: Which admission algorithm to run.
        message: Message carried by rejections.
        whitelist: Client keys that are always admitted.
        failure_policy: Verdict policy when the store fails.
        store_timeout: Seconds before a store call fails with StoreError.
        key_prefix: Prefix for every store key.
        log_window: Recency window for the sliding-log algorithm.
        clock: Returns epoch milliseconds; defaults to the wall clock.
    """

    model_config = ConfigDict(
        frozen=True,
        validate_by_name=True,
        validate_by_alias=True,
    )

    window_length: timedelta = Field(
        ..., alias="windowLength", description="Window span (seconds or timedelta)"
    )
    max: int = Field(..., gt=0, description="Maximum requests/tokens per window")
    key_fn: Callable[[Any], str | Awaitable[str]] = Field(
        ..., alias="keyFn", description="Client key resolver"
    )
    store_fn: Callable[..., Any] = Field(
        ..., alias="storeFn", description="Store command executor"
    )
    algorithm: Algorithm = Field(..., description="Admission algorithm")
    message: str = Field(DEFAULT_MESSAGE, description="Reject message")
    whitelist: tuple[str, ...] = Field(
        (), alias="whiteList", description="Always-admitted client keys"
    )
    failure_policy: FailurePolicy = Field(
        FailurePolicy.PROPAGATE, alias="failurePolicy"
    )
    store_timeout: PositiveFloat = Field(
        1.0, alias="storeTimeout", description="Store call timeout (seconds)"
    )
    key_prefix: str = Field(DEFAULT_KEY_PREFIX, alias="keyPrefix")
    log_window: timedelta | None = Field(None, alias="logWindow")
    clock: Callable[[], float] = Field(wall_clock_ms)

    @field_validator("window_length", "log_window", mode="before")
    @classmethod
    def _reject_non_numeric(cls, value: Any) -> Any:
        if value is None or isinstance(value, timedelta):
            return value
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("must be a number of seconds or a timedelta")
        return value

    @field_validator("window_length", "log_window")
    @classmethod
    def _require_positive(cls, value: timedelta | None) -> timedelta | None:
        if value is not None and value.total_seconds() <= 0:
            raise ValueError("must be a positive duration")
        return value

    @field_validator("algorithm", mode="before")
    @classmethod
    def _normalise_algorithm(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace("_", "-")
        return value

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            fields = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
            raise ConfigError(
                f"Invalid rate limiter configuration: {', '.join(fields)}",
                details={"fields": fields, "errors": exc.errors(include_url=False)},
            ) from exc

    @classmethod
    def from_options(cls, **options: Any) -> "LimiterConfig":
        """Validate options and build a config.

        Equivalent to ``LimiterConfig(**options)``.

        Raises:
            ConfigError: If any option is missing or invalid.
        """
        return cls(**options)

    @property
    def window_ms(self) -> int:
        """Window length in whole milliseconds (at least 1)."""
        return max(1, round(self.window_length.total_seconds() * 1000))

    @property
    def log_window_ms(self) -> int:
        """Sliding-log recency window in milliseconds."""
        if self.log_window is None:
            return self.window_ms
        return max(1, round(self.log_window.total_seconds() * 1000))

    @property
    def duration_seconds(self) -> int | float:
        """Window length in seconds, as int when whole."""
        seconds = self.window_length.total_seconds()
        return int(seconds) if seconds.is_integer() else seconds

    def is_whitelisted(self, key: str) -> bool:
        """Check whether a client key bypasses rate limiting."""
        return key in self.whitelist
