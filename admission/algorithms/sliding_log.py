"""Sliding Log admission algorithm.

Like the sliding window, but counted over ``log_window`` (defaults to
window_length) and pruned on every request, admitted or rejected, before
counting. As with the sliding window, entries stamped later than now are
counted. The key lives for the longer of the two windows.
"""

from admission.algorithms.base import AdmissionAlgorithm, unique_member
from admission.models import Decision
from admission.scripts.loader import SLIDING_LOG


class SlidingLogAlgorithm(AdmissionAlgorithm):
    """Sliding log backed by an ordered set scored by timestamp."""

    script_name = SLIDING_LOG

    async def decide(self, key: str, now_ms: int) -> Decision:
        log_window_ms = self.config.log_window_ms
        ttl_ms = max(self.config.window_ms, log_window_ms)
        return await self._run_script(
            key,
            [now_ms, log_window_ms, self.config.max, unique_member(now_ms), ttl_ms],
        )
