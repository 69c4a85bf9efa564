"""Store adapter package.

Available Stores:
    - RedisStore: redis.asyncio client (production default)
    - Any callable ``store(command, *args)``, sync or async

Usage:
    ```python
    from admission.storage import RedisStore, StoreAdapter

    store = StoreAdapter(RedisStore(redis_client), timeout=1.0)
    ```
"""

from admission.storage.base import StoreAdapter, StoreProtocol
from admission.storage.redis_store import RedisStore

__all__ = [
    "RedisStore",
    "StoreAdapter",
    "StoreProtocol",
]
