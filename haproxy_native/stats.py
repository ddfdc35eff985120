"""Parsing of the CSV output of the runtime API ``show stat`` command."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Union

_INT_RE = re.compile(r"-?[0-9]+")

StatValue = Union[int, str]


@dataclass
class NativeStat:
    """One line of ``show stat``: a frontend, a backend or a server."""

    name: str
    type: str
    backend_name: str = ""
    stats: dict[str, StatValue] = field(default_factory=dict)


@dataclass
class NativeStatsCollection:
    """Stats gathered from one runtime API socket."""

    runtime_api: str
    stats: list[NativeStat] = field(default_factory=list)
    error: Optional[str] = None


def _coerce(value: str) -> StatValue:
    return int(value) if _INT_RE.fullmatch(value) else value


def parse_stats(raw: str) -> list[NativeStat]:
    """Parse the raw ``show stat`` response.

    The response starts with a two character prefix (``# ``) before the CSV
    header. Lines shorter than the header are skipped and empty fields are
    left out of each stat's values.
    """
    lines = raw[2:].split("\n")
    keys = lines[0].split(",")
    result = []
    for line in lines[1:]:
        columns = line.split(",")
        if len(columns) < len(keys):
            continue
        values = {
            key: _coerce(column)
            for key, column in zip(keys, columns)
            if key and column
        }
        kind = columns[1].lower()
        if kind in ("backend", "frontend"):
            stat = NativeStat(name=columns[0], type=kind, stats=values)
        else:
            stat = NativeStat(
                name=kind, type="server", backend_name=columns[0], stats=values
            )
        result.append(stat)
    return result