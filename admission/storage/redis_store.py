"""Redis implementation of the store function.

Thin callable over ``redis.asyncio.Redis.execute_command`` so a Redis client
can be passed wherever the engine expects ``store_fn(command, *args)``.

Usage:
    ```python
    from redis.asyncio import Redis
    from admission.storage import RedisStore

    redis_client = Redis.from_url("redis://localhost:6379/0", decode_responses=True)
    store_fn = RedisStore(redis_client)
    await store_fn("PING")
    ```
"""

from typing import Any

from redis.asyncio import Redis


class RedisStore:
    """Store function backed by an async Redis client.

    Args:
        redis_client: redis.asyncio.Redis instance (fakeredis works in tests).
    """

    def __init__(self, redis_client: Redis):
        self.client = redis_client

    async def __call__(self, command: str, *args: Any) -> Any:
        """Execute one Redis command.

        Args:
            command: Command verb, e.g. "EVALSHA".
            *args: Command arguments.

        Returns:
            Raw Redis reply.
        """
        return await self.client.execute_command(command, *args)

    async def close(self) -> None:
        """Close the underlying Redis connection pool."""
        await self.client.aclose()
