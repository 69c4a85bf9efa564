"""Error types for the admission engine.

Errors are split by when they happen:

- ConfigError: invalid construction arguments. Raised synchronously when a
  RateLimiter is built, never per request.
- StoreError: the counter store could not be reached, timed out, or rejected
  a command. Raised per request and always propagated; interpreting it as
  admit or reject is the caller's decision (see FailurePolicy).
- ScriptNotFoundError: the store no longer knows a script handle (e.g. after
  a restart flushed its script cache). The ScriptManager re-registers and
  retries once before letting it surface.
- RateLimitExceeded: not a failure. It is the reject branch of a normal
  decision for callers that prefer exceptions over inspecting a Decision.

Usage:
    from admission.errors import ConfigError, StoreError

    try:
        decision = await limiter.decide("ip:10.0.0.1")
    except StoreError as exc:
        logger.error("Store unavailable", error_code=exc.code.value)
        raise
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from admission.models import Decision


class ErrorCode(Enum):
    """Machine-readable error codes.

    Follows ENTITY_ACTION_REASON naming.
    """

    CONFIG_INVALID = "config_invalid"
    STORE_UNAVAILABLE = "store_unavailable"
    STORE_TIMEOUT = "store_timeout"
    SCRIPT_NOT_FOUND = "script_not_found"
    SCRIPT_LOAD_FAILED = "script_load_failed"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"


class AdmissionError(Exception):
    """Base exception for the admission engine.

    Attributes:
        code: ErrorCode enum.
        message: Human-readable message.
        details: Optional context for debugging.
    """

    default_code: ErrorCode | None = None

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        code = code or self.default_code
        if code is None:
            raise TypeError(f"{type(self).__name__} requires an explicit error code")
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        """String representation of error."""
        return f"{self.code.value}: {self.message}"


class ConfigError(AdmissionError):
    """Invalid limiter configuration."""

    default_code = ErrorCode.CONFIG_INVALID


class StoreError(AdmissionError):
    """Transport, timeout or protocol failure talking to the counter store."""

    default_code = ErrorCode.STORE_UNAVAILABLE


class ScriptNotFoundError(StoreError):
    """The store reported an unknown script handle (NOSCRIPT)."""

    default_code = ErrorCode.SCRIPT_NOT_FOUND


class RateLimitExceeded(AdmissionError):
    """Request rejected by the configured algorithm.

    Attributes:
        decision: The Decision that caused the rejection (limit, remaining,
            duration), so callers can still emit quota metadata.
    """

    default_code = ErrorCode.RATE_LIMIT_EXCEEDED

    def __init__(self, message: str, *, decision: Decision) -> None:
        super().__init__(
            message,
            details={"limit": decision.limit, "remaining": decision.remaining},
        )
        self.decision = decision
