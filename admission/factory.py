"""Build a Redis-backed RateLimiter from environment settings.

Usage:
    ```python
    from admission.factory import create_rate_limiter
    from admission.keys import client_ip

    limiter = create_rate_limiter(
        window_length=60, max=10, key_fn=client_ip, algorithm="token-bucket"
    )
    ...
    await limiter.close()
    ```
"""

from typing import Any

from redis.asyncio import Redis

from admission.service import RateLimiter
from admission.settings import AdmissionSettings, get_settings
from admission.storage.redis_store import RedisStore


def create_rate_limiter(
    *,
    settings: AdmissionSettings | None = None,
    redis_client: Redis | None = None,
    **options: Any,
) -> RateLimiter:
    """Create a RateLimiter backed by Redis.

    ``store_timeout`` and ``key_prefix`` default to the settings values;
    explicit options win.

    Args:
        settings: Settings to use. Defaults to get_settings().
        redis_client: Existing client. Defaults to one built from
            ``settings.redis_url``.
        **options: LimiterConfig options (window_length, max, key_fn,
            algorithm, ...). ``store_fn`` is supplied here.

    Returns:
        RateLimiter: Configured limiter; call ``close()`` on shutdown.

    Raises:
        ConfigError: If the options are invalid.
    """
    settings = settings or get_settings()
    if redis_client is None:
        redis_client = Redis.from_url(settings.redis_url)

    if "store_timeout" not in options and "storeTimeout" not in options:
        options["store_timeout"] = settings.store_timeout
    if "key_prefix" not in options and "keyPrefix" not in options:
        options["key_prefix"] = settings.key_prefix
    return RateLimiter(store_fn=RedisStore(redis_client), **options)
