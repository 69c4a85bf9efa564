"""Store adapter: the engine's only path to the counter store.

The engine issues command verbs and arguments ("EVALSHA", sha, "1", key, ...)
and receives typed results. Any store works as long as it can run these
verbs atomically: hash get/set, ordered-set add and range-count-by-score,
integer/float increment, key expiration, and script registration (SCRIPT
LOAD) and invocation by content hash (EVALSHA).

Key Design Decisions:
    1. One error type for callers
       - Every transport or protocol failure becomes StoreError
       - The underlying exception is chained (raise ... from exc)
       - An unknown script handle becomes ScriptNotFoundError so the
         ScriptManager can re-register it

    2. Bounded time
       - Every call runs under asyncio.timeout(store_timeout)
       - A timeout is a StoreError (code STORE_TIMEOUT), never a verdict

    3. Store functions may be sync or async
       - Awaitable results are awaited; plain results are returned as-is

Usage:
    ```python
    from admission.storage import RedisStore, StoreAdapter

    store = StoreAdapter(RedisStore(redis_client), timeout=0.5)
    sha = await store.execute("SCRIPT", "LOAD", "return 1")
    ```
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Protocol

import structlog
from redis.exceptions import NoScriptError
from redis.exceptions import TimeoutError as RedisTimeoutError

from admission.errors import ErrorCode, ScriptNotFoundError, StoreError

logger = structlog.get_logger(__name__)

NOSCRIPT_PREFIX = "NOSCRIPT"


class StoreProtocol(Protocol):
    """Anything callable as ``store(command, *args)``.

    Implementations intentionally do NOT inherit from this protocol (PEP 544
    structural subtyping). A plain ``async def`` function is compatible.
    """

    def __call__(self, command: str, *args: Any) -> Any:
        """Execute one store command and return its reply (or an awaitable)."""
        ...


class StoreAdapter:
    """Wraps a store function with a timeout and error mapping.

    Args:
        store_fn: Store function, e.g. a RedisStore instance.
        timeout: Seconds allowed per command.
    """

    def __init__(self, store_fn: StoreProtocol, *, timeout: float) -> None:
        self._store_fn = store_fn
        self._timeout = timeout

    async def execute(self, command: str, *args: Any) -> Any:
        """Execute one command against the store.

        Args:
            command: Command verb ("EVALSHA", "SCRIPT", ...).
            *args: Command arguments.

        Returns:
            The store reply. Bytes replies are decoded to str.

        Raises:
            ScriptNotFoundError: If the store does not know a script handle.
            StoreError: On any other transport, protocol or timeout failure.
        """
        try:
            async with asyncio.timeout(self._timeout):
                reply = self._store_fn(command, *args)
                if inspect.isawaitable(reply):
                    reply = await reply
        except (TimeoutError, RedisTimeoutError) as exc:
            logger.error(
                "Store command timed out",
                command=command,
                timeout_seconds=self._timeout,
            )
            raise StoreError(
                f"Store command {command} timed out after {self._timeout}s",
                code=ErrorCode.STORE_TIMEOUT,
                details={"command": command},
            ) from exc
        except StoreError:
            raise
        except Exception as exc:
            if is_noscript_error(exc):
                raise ScriptNotFoundError(
                    "Store does not know the requested script handle",
                    details={"command": command},
                ) from exc
            logger.error(
                "Store command failed",
                command=command,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            raise StoreError(
                f"Store command {command} failed: {exc}",
                details={"command": command},
            ) from exc

        return decode_reply(reply)


def is_noscript_error(exc: BaseException) -> bool:
    """Check whether an exception is the store's unknown-script reply."""
    if isinstance(exc, NoScriptError):
        return True
    return str(exc).upper().startswith(NOSCRIPT_PREFIX)


def decode_reply(reply: Any) -> Any:
    """Decode bytes replies (and nested lists of them) to str."""
    if isinstance(reply, bytes):
        return reply.decode("utf-8")
    if isinstance(reply, (list, tuple)):
        return [decode_reply(item) for item in reply]
    return reply
