"""Checks for values accepted by the runtime API server commands."""

from __future__ import annotations

import re

_SERVER_STATES = frozenset({"ready", "drain", "maint"})
_SERVER_HEALTHS = frozenset({"up", "stopping", "down"})
_INT_RE = re.compile(r"[+-]?[0-9]+")


def server_state_valid(state: str) -> bool:
    """Tell whether ``state`` is a valid server administrative state."""
    return state in _SERVER_STATES


def server_health_valid(health: str) -> bool:
    """Tell whether ``health`` is a valid server health value."""
    return health in _SERVER_HEALTHS


def server_weight_valid(weight: str) -> bool:
    """Tell whether ``weight`` is 0..256 or a percentage 0%..100%."""
    if weight.endswith("%"):
        percent = weight[:-1]
        return bool(_INT_RE.fullmatch(percent)) and 0 <= int(percent) <= 100
    return bool(_INT_RE.fullmatch(weight)) and 0 <= int(weight) <= 256