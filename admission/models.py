"""Decision value object returned by every admission check.

A Decision carries the verdict plus the three quota values that are surfaced
to clients on every processed request, admitted or not.

Usage:
    decision = await limiter.decide("ip:10.0.0.1")
    if not decision.allowed:
        ...
    response.headers.update(decision.headers())
"""

from dataclasses import dataclass

LIMIT_HEADER = "X-Rate-Limit-Limit"
REMAINING_HEADER = "X-Rate-Limit-Remaining"
DURATION_HEADER = "X-Rate-Limit-Duration"


@dataclass(frozen=True, slots=True, kw_only=True)
class Decision:
    """Result of one admission check (value object).

    Attributes:
        allowed: Whether the request may proceed.
        limit: Configured maximum (request count or token capacity).
        remaining: Best-effort quota left after this request.
        duration: Configured window length in seconds.
        whitelisted: True when the key bypassed the algorithm entirely.
    """

    allowed: bool
    """Whether the request may proceed."""

    limit: int
    """Configured maximum.

    Used for X-Rate-Limit-Limit header.
    """

    remaining: int
    """Quota left after this request.

    Computed from post-update store state. Negative when the client is over
    the limit, signalling how far over. Used for X-Rate-Limit-Remaining header.
    """

    duration: int | float
    """Window length in seconds.

    Used for X-Rate-Limit-Duration header.
    """

    whitelisted: bool = False
    """True when the key matched the whitelist and no algorithm ran."""

    def headers(self) -> dict[str, str]:
        """Build the three quota response headers.

        Returns:
            dict[str, str]: Header name to value.
        """
        return {
            LIMIT_HEADER: str(self.limit),
            REMAINING_HEADER: str(self.remaining),
            DURATION_HEADER: str(self.duration),
        }
