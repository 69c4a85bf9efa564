"""Fixed Window admission algorithm.

Counts requests per absolute window that opens with the first request after
the previous one closed. Two full quotas can land back to back around a
window seam; that burst is inherent to the algorithm.
"""

from admission.algorithms.base import AdmissionAlgorithm
from admission.models import Decision
from admission.scripts.loader import FIXED_WINDOW


class FixedWindowAlgorithm(AdmissionAlgorithm):
    """Fixed window backed by a hash of ``requests`` and ``windowStart``."""

    script_name = FIXED_WINDOW

    async def decide(self, key: str, now_ms: int) -> Decision:
        return await self._run_script(
            key, [now_ms, self.config.window_ms, self.config.max]
        )
