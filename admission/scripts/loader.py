"""Lua script sources shipped with the package.

Scripts live in ``admission/scripts/lua/``. Each file is read once, off the
event loop, and kept in memory for the life of the process.
"""

from __future__ import annotations

import asyncio
from functools import partial
from pathlib import Path

LUA_DIR = Path(__file__).parent / "lua"

TOKEN_BUCKET = "token_bucket.lua"
FIXED_WINDOW = "fixed_window.lua"
SLIDING_WINDOW = "sliding_window.lua"
LEAKY_BUCKET = "leaky_bucket.lua"
SLIDING_LOG = "sliding_log.lua"
RESET = "reset.lua"

_sources: dict[str, str] = {}


def _read_lua_script_sync(path: Path) -> str:
    """Synchronous helper to read Lua script (called via run_in_executor)."""
    return path.read_text(encoding="utf-8")


async def read_script(name: str) -> str:
    """Read a bundled Lua script by file name.

    Uses run_in_executor to avoid blocking the event loop on file IO.

    Args:
        name: File name under the lua/ directory, e.g. "token_bucket.lua".

    Returns:
        Script contents as string.
    """
    source = _sources.get(name)
    if source is not None:
        return source
    loop = asyncio.get_running_loop()
    source = await loop.run_in_executor(
        None, partial(_read_lua_script_sync, LUA_DIR / name)
    )
    return _sources.setdefault(name, source)
