"""Browser overrides read from ``PLEXWATCH_*`` environment variables."""

from __future__ import annotations

import os
import shlex
from typing import List, Optional, Sequence

from plexwatch.utils.logging import get_logger


logger = get_logger("env")

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


def _read(name: str) -> Optional[str]:
    """Stripped value of ``name``; unset and blank both read as ``None``."""
    value = (os.environ.get(name) or "").strip()
    return value or None


def get_bool_env(name: str, *, default: bool = False) -> bool:
    """Parse a yes/no switch such as ``PLEXWATCH_HEADLESS=0``.

    Unrecognized spellings keep ``default`` rather than guessing.
    """
    value = _read(name)
    if value is None:
        return default
    lowered = value.lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    logger.warning("Ignoring %s=%r; expected one of %s", name, value, sorted(_TRUTHY | _FALSY))
    return default


def get_list_env(name: str, *, default: Sequence[str] = ()) -> List[str]:
    """Split extra Chromium flags with shell quoting, e.g. ``--lang=en "--window-size=1280,800"``."""
    value = _read(name)
    if value is None:
        return list(default)
    try:
        return shlex.split(value)
    except ValueError as exc:
        logger.warning("Unbalanced quotes in %s (%s); splitting on whitespace", name, exc)
        return value.split()
