"""Parsing of the runtime API ``show servers state`` output."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INT_RE = re.compile(r"[+-]?[0-9]+")

_FORMAT_ERROR = "Unsupported output format version, supporting format version 1"
_MIN_FIELDS = 19

_ADMIN_STATES = {
    "0": "ready",
    "1": "maint",
    "2": "maint",
    "4": "maint",
    "20": "maint",
    "40": "maint",
    "8": "drain",
    "10": "drain",
}

_OPERATIONAL_STATES = {
    "0": "down",
    "3": "stopping",
    "1": "up",
    "2": "up",
}


@dataclass
class RuntimeServer:
    """Runtime state of one server in a backend."""

    name: str
    address: str
    id: str
    port: Optional[int] = None
    admin_state: str = ""
    operational_state: str = ""


def _int_or_none(text: str) -> Optional[int]:
    if not _INT_RE.fullmatch(text):
        return None
    number = int(text)
    if number < _INT64_MIN or number > _INT64_MAX:
        return None
    return number


def _server_lines(output: str) -> list[str]:
    """Return the data lines of a format version 1 response.

    Raises ValueError when the response is not in format version 1.
    """
    lines = output.split("\n")
    if lines[0].strip() != "1":
        raise ValueError(_FORMAT_ERROR)
    return [
        line
        for line in lines[1:]
        if line.strip() and not line.startswith("#") and line.strip() != "1"
    ]


def parse_runtime_server(line: str) -> Optional[RuntimeServer]:
    """Parse one data line of ``show servers state``.

    Returns None when the line has fewer fields than the format defines.
    """
    fields = line.split(" ")
    if len(fields) < _MIN_FIELDS:
        return None
    return RuntimeServer(
        name=fields[3],
        address=fields[4],
        id=fields[2],
        port=_int_or_none(fields[18]),
        admin_state=_ADMIN_STATES.get(fields[6], ""),
        operational_state=_OPERATIONAL_STATES.get(fields[5], ""),
    )


def parse_runtime_servers(output: str) -> list[RuntimeServer]:
    """Parse every server of a ``show servers state`` response.

    Raises ValueError when the output format version is not 1.
    """
    servers = []
    for line in _server_lines(output):
        server = parse_runtime_server(line)
        if server is not None:
            servers.append(server)
    return servers


def find_runtime_server(output: str, server: str) -> Optional[RuntimeServer]:
    """Return the state of the server named ``server``, or None if absent.

    Raises ValueError when the output format version is not 1.
    """
    for line in _server_lines(output):
        fields = line.split(" ")
        if len(fields) < 4 or fields[3] != server:
            continue
        return parse_runtime_server(line)
    return None