"""Token Bucket admission algorithm.

Algorithm Overview:
    1. Bucket starts full (max tokens); the first request leaves max - 1
    2. Tokens refill continuously at max / window_length, capped at max
    3. Each request takes one token; rejected when fewer than one is left

Example:
    max=10, window_length=60s (1 token every 6 seconds)
    - Burst of 10 requests: all admitted, remaining 0
    - Request 11 immediately: rejected, remaining -1
    - Wait 6 seconds: one more request admitted
"""

from admission.algorithms.base import AdmissionAlgorithm
from admission.models import Decision
from admission.scripts.loader import TOKEN_BUCKET


class TokenBucketAlgorithm(AdmissionAlgorithm):
    """Token bucket backed by a hash of ``tokens`` and ``lastRefillTime``."""

    script_name = TOKEN_BUCKET

    async def decide(self, key: str, now_ms: int) -> Decision:
        return await self._run_script(
            key, [now_ms, self.config.window_ms, self.config.max]
        )
