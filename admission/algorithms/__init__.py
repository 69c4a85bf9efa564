"""Admission algorithms and the factory that selects one from config."""

from admission.algorithms.base import AdmissionAlgorithm
from admission.algorithms.fixed_window import FixedWindowAlgorithm
from admission.algorithms.leaky_bucket import LeakyBucketAlgorithm
from admission.algorithms.sliding_log import SlidingLogAlgorithm
from admission.algorithms.sliding_window import SlidingWindowAlgorithm
from admission.algorithms.token_bucket import TokenBucketAlgorithm
from admission.config import Algorithm, LimiterConfig
from admission.scripts.manager import ScriptManager


def build_algorithm(config: LimiterConfig, scripts: ScriptManager) -> AdmissionAlgorithm:
    """Create the algorithm named by ``config.algorithm``.

    Args:
        config: Validated limiter configuration.
        scripts: Script manager shared by the limiter.

    Returns:
        AdmissionAlgorithm: The selected strategy.
    """
    match config.algorithm:
        case Algorithm.TOKEN_BUCKET:
            return TokenBucketAlgorithm(config, scripts)
        case Algorithm.FIXED_WINDOW:
            return FixedWindowAlgorithm(config, scripts)
        case Algorithm.SLIDING_WINDOW:
            return SlidingWindowAlgorithm(config, scripts)
        case Algorithm.LEAKY_BUCKET:
            return LeakyBucketAlgorithm(config, scripts)
        case Algorithm.SLIDING_LOG:
            return SlidingLogAlgorithm(config, scripts)


__all__ = [
    "AdmissionAlgorithm",
    "FixedWindowAlgorithm",
    "LeakyBucketAlgorithm",
    "SlidingLogAlgorithm",
    "SlidingWindowAlgorithm",
    "TokenBucketAlgorithm",
    "build_algorithm",
]
