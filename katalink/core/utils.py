"""
Core Utilities

Small formatting helpers shared by the engine session and the CLI.
"""

import json
from pathlib import Path
from typing import Any


def format_value(value: Any) -> str:
    """
    Format an arbitrary value for alert text.

    Dicts and lists are rendered as indented JSON; anything JSON cannot
    encode falls back to str().
    """
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, indent=2, default=str)
    except (TypeError, ValueError):
        return str(value)


def path_exists(path: str) -> bool:
    """True when path is non-empty and exists on disk."""
    if not path:
        return False
    return Path(path).exists()


def basename(path: str) -> str:
    return Path(path).name
