"""Server-side scripts and their registration."""

from admission.scripts.loader import read_script
from admission.scripts.manager import SCRIPT_CACHE, ScriptCache, ScriptManager

__all__ = ["SCRIPT_CACHE", "ScriptCache", "ScriptManager", "read_script"]
