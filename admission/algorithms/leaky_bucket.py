"""Leaky Bucket admission algorithm.

Algorithm Overview:
    1. Bucket level starts at max
    2. Level grows back at max / window_length, capped at max
    3. Every request, admitted or not, lowers the level by one (floor -max)
    4. Admitted iff the level is still >= 0 after the decrement

Unlike the token bucket, rejected requests keep draining the bucket, so a
client that keeps hammering stays rejected until it backs off. Requests
spaced at the leak rate are always admitted.

The stored ``tokens`` field is therefore a signed level in [-max, max]:
a negative value is the overdraft a flooding client has to leak back
before it is admitted again.
"""

from admission.algorithms.base import AdmissionAlgorithm
from admission.models import Decision
from admission.scripts.loader import LEAKY_BUCKET


class LeakyBucketAlgorithm(AdmissionAlgorithm):
    """Leaky bucket backed by a hash of ``tokens`` and ``lastLeak``."""

    script_name = LEAKY_BUCKET

    async def decide(self, key: str, now_ms: int) -> Decision:
        return await self._run_script(
            key, [now_ms, self.config.window_ms, self.config.max]
        )
