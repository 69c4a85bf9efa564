"""Sliding Window admission algorithm.

Keeps an ordered set of admitted request timestamps. A request is admitted
while fewer than max timestamps are no older than now - window_length.
Entries stamped later than now (by a process whose clock runs ahead) are
counted too. Only admitted requests are recorded, and entries older than
the window are pruned when a new one is added.
"""

from admission.algorithms.base import AdmissionAlgorithm, unique_member
from admission.models import Decision
from admission.scripts.loader import SLIDING_WINDOW


class SlidingWindowAlgorithm(AdmissionAlgorithm):
    """Sliding window backed by an ordered set scored by timestamp."""

    script_name = SLIDING_WINDOW

    async def decide(self, key: str, now_ms: int) -> Decision:
        return await self._run_script(
            key,
            [now_ms, self.config.window_ms, self.config.max, unique_member(now_ms)],
        )
