"""Abstract base class for admission algorithms.

This module defines the interface every admission algorithm implements. It
follows the Strategy Pattern: the RateLimiter picks one algorithm at
construction and calls ``decide()`` per request without knowing which one.

Key Design Decisions:
    1. Minimal interface (one abstract method)
       - ``decide(key, now_ms) -> Decision``
       - Easy to add new algorithms

    2. Algorithm doesn't know about HTTP
       - Takes a resolved store key and a timestamp
       - No dependency on request/response objects

    3. One atomic script per decision
       - The full read-check-update cycle runs server-side as one script
       - Sequential store commands would let two concurrent requests read
         the same counter and both be admitted

    4. Errors propagate
       - StoreError reaches the RateLimiter, which applies the configured
         FailurePolicy; algorithms never turn failures into verdicts

Usage:
    ```python
    from admission.algorithms.base import AdmissionAlgorithm

    class MyAlgorithm(AdmissionAlgorithm):
        script_name = "my_algorithm.lua"

        async def decide(self, key, now_ms):
            return await self._run_script(key, [now_ms, self.config.window_ms])
    ```
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, ClassVar
from uuid import uuid4

from admission.errors import StoreError
from admission.models import Decision
from admission.scripts.loader import read_script

if TYPE_CHECKING:
    from admission.config import LimiterConfig
    from admission.scripts.manager import ScriptManager


class AdmissionAlgorithm(ABC):
    """Abstract base class for admission algorithms.

    Implementations hold no per-key state; all state lives in the store
    under the key passed to ``decide()``. One instance is shared by every
    concurrent request of a limiter.

    Args:
        config: Validated limiter configuration.
        scripts: Script manager used to run the algorithm's script.
    """

    script_name: ClassVar[str]
    """Bundled Lua script file that implements the algorithm."""

    def __init__(self, config: LimiterConfig, scripts: ScriptManager) -> None:
        self.config = config
        self.scripts = scripts

    @abstractmethod
    async def decide(self, key: str, now_ms: int) -> Decision:
        """Decide whether one request for ``key`` is admitted at ``now_ms``.

        Args:
            key: Full store key (prefix already applied).
            now_ms: Current time in epoch milliseconds.

        Returns:
            Decision: Verdict plus limit, remaining and duration.

        Raises:
            StoreError: If the store fails or returns a malformed reply.
        """
        ...

    async def _run_script(self, key: str, args: Sequence[Any]) -> Decision:
        source = await read_script(self.script_name)
        reply = await self.scripts.execute(
            source, [key], [str(arg) for arg in args], name=self.script_name
        )
        allowed, remaining = parse_reply(reply, script=self.script_name)
        return Decision(
            allowed=allowed,
            limit=self.config.max,
            remaining=remaining,
            duration=self.config.duration_seconds,
        )


def parse_reply(reply: Any, *, script: str) -> tuple[bool, int]:
    """Parse an ``{allowed, remaining}`` script reply.

    Raises:
        StoreError: If the reply does not have that shape.
    """
    try:
        allowed, remaining = reply
        return bool(int(allowed)), int(remaining)
    except (TypeError, ValueError) as exc:
        raise StoreError(
            f"Unexpected reply from script {script}: {reply!r}",
            details={"script": script},
        ) from exc


def unique_member(now_ms: int) -> str:
    """Ordered-set member for one request; distinct even within a millisecond."""
    return f"{now_ms}-{uuid4().hex}"
