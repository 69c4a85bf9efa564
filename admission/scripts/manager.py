"""Script registration and invocation.

Every algorithm runs as one server-side script so its read-modify-write
cycle is atomic. The ScriptManager registers a script source with the store
once (SCRIPT LOAD), remembers the returned handle, and invokes the script by
handle afterwards (EVALSHA).

Key Design Decisions:
    1. One process-wide handle cache
       - Maps script source to store handle, shared by every limiter
       - Insert-if-absent; entries are never replaced or evicted
       - Concurrent first calls may register the same source twice; the
         store returns the same content hash, so the race is harmless

    2. Self-healing after store restarts
       - A NOSCRIPT reply (store lost its script cache) triggers one
         re-registration and one retry
       - A second NOSCRIPT surfaces as StoreError

    3. No verdicts here
       - The manager returns raw script replies; algorithms interpret them

Usage:
    ```python
    from admission.scripts import ScriptManager

    scripts = ScriptManager(store_adapter)
    reply = await scripts.execute("return {1, 9}", keys=["rate_limit:ip"], args=[])
    ```
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog

from admission.errors import ErrorCode, ScriptNotFoundError, StoreError
from admission.scripts.loader import RESET, read_script
from admission.storage.base import StoreAdapter

logger = structlog.get_logger(__name__)


class ScriptCache:
    """Script source to store handle map (insert-if-absent)."""

    def __init__(self) -> None:
        self._handles: dict[str, str] = {}

    def get(self, source: str) -> str | None:
        return self._handles.get(source)

    def add(self, source: str, handle: str) -> str:
        """Store a handle unless one is already cached; return the cached one."""
        return self._handles.setdefault(source, handle)

    def __contains__(self, source: object) -> bool:
        return source in self._handles

    def __len__(self) -> int:
        return len(self._handles)


SCRIPT_CACHE = ScriptCache()


class ScriptManager:
    """Registers scripts with the store and runs them by handle.

    Args:
        store: Store adapter used for SCRIPT LOAD and EVALSHA.
        cache: Handle cache. Defaults to the process-wide SCRIPT_CACHE.
    """

    def __init__(self, store: StoreAdapter, *, cache: ScriptCache | None = None) -> None:
        self.store = store
        self.cache = cache if cache is not None else SCRIPT_CACHE

    async def load(self, source: str, *, name: str | None = None) -> str:
        """Return the store handle for a script, registering it if needed.

        Args:
            source: Script source text.
            name: Script name for logs.

        Returns:
            str: Store handle (content hash).

        Raises:
            StoreError: If registration fails.
        """
        handle = self.cache.get(source)
        if handle is not None:
            return handle
        handle = await self._register(source, name=name)
        return self.cache.add(source, handle)

    async def run(self, handle: str, key_count: int, *args: Any) -> Any:
        """Invoke a registered script by handle.

        Args:
            handle: Store handle returned by load().
            key_count: How many leading args are store keys.
            *args: Keys followed by script arguments.

        Raises:
            ScriptNotFoundError: If the store does not know the handle.
            StoreError: On any other store failure.
        """
        return await self.store.execute("EVALSHA", handle, str(key_count), *args)

    async def execute(
        self,
        source: str,
        keys: Sequence[str],
        args: Sequence[Any],
        *,
        name: str | None = None,
    ) -> Any:
        """Run a script, registering it first and re-registering on NOSCRIPT.

        Args:
            source: Script source text.
            keys: Store keys the script touches.
            args: Script arguments.
            name: Script name for logs.

        Returns:
            The raw script reply.

        Raises:
            StoreError: If the store fails, or still does not know the script
                after one re-registration.
        """
        handle = await self.load(source, name=name)
        try:
            return await self.run(handle, len(keys), *keys, *args)
        except ScriptNotFoundError:
            logger.warning(
                "Script missing from store, re-registering", name=name, sha=handle
            )

        handle = await self._register(source, name=name)
        try:
            return await self.run(handle, len(keys), *keys, *args)
        except ScriptNotFoundError as exc:
            raise StoreError(
                "Script still unknown to store after re-registration",
                code=ErrorCode.SCRIPT_NOT_FOUND,
                details={"name": name, "sha": handle},
            ) from exc

    async def reset_key(self, key: str) -> None:
        """Delete all limiter state for a key.

        Raises:
            StoreError: If the store fails.
        """
        source = await read_script(RESET)
        deleted = await self.execute(source, [key], [], name=RESET)
        logger.info("Rate limit key reset", key=key, deleted=bool(deleted))

    async def _register(self, source: str, *, name: str | None = None) -> str:
        try:
            handle = await self.store.execute("SCRIPT", "LOAD", source)
        except StoreError as exc:
            raise StoreError(
                f"Failed to register script: {exc.message}",
                code=ErrorCode.SCRIPT_LOAD_FAILED,
            ) from exc
        logger.info("Registered Lua script", name=name, sha=handle)
        return str(handle)
