"""Parsing of the runtime API ``show table`` outputs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INT_RE = re.compile(r"[+-]?[0-9]+")

_TABLE_PREFIX = "# table:"

_EXACT_INT_KEYS = {
    "server_id": "server_id",
    "gpc_0": "gpc0",
    "gpc_1": "gpc1",
    "conn_cnt": "conn_cnt",
    "conn_cur": "conn_cur",
    "sess_cnt": "sess_cnt",
    "http_req_cnt": "http_req_cnt",
    "http_err_cnt": "http_err_cnt",
    "bytes_in_cnt": "bytes_in_cnt",
    "bytes_out_cnt": "bytes_out_cnt",
    "exp": "exp",
}

_RATE_PREFIXES = (
    ("gpc_0_rate(", "gpc0_rate"),
    ("gpc_1_rate(", "gpc1_rate"),
    ("conn_rate(", "conn_rate"),
    ("sess_rate(", "sess_rate"),
    ("http_req_rate(", "http_req_rate"),
    ("http_err_rate(", "http_err_rate"),
    ("bytes_in_rate(", "bytes_in_rate"),
    ("bytes_out_rate(", "bytes_out_rate"),
)


@dataclass
class StickTable:
    """Description of a stick table as reported by one process."""

    name: str = ""
    type: str = ""
    size: Optional[int] = None
    used: Optional[int] = None
    process: Optional[int] = None


@dataclass
class StickTableEntry:
    """One entry of a stick table."""

    id: str
    key: str = ""
    use: bool = False
    exp: Optional[int] = None
    server_id: Optional[int] = None
    gpc0: Optional[int] = None
    gpc0_rate: Optional[int] = None
    gpc1: Optional[int] = None
    gpc1_rate: Optional[int] = None
    conn_cnt: Optional[int] = None
    conn_cur: Optional[int] = None
    conn_rate: Optional[int] = None
    sess_cnt: Optional[int] = None
    sess_rate: Optional[int] = None
    http_req_cnt: Optional[int] = None
    http_req_rate: Optional[int] = None
    http_err_cnt: Optional[int] = None
    http_err_rate: Optional[int] = None
    bytes_in_cnt: Optional[int] = None
    bytes_in_rate: Optional[int] = None
    bytes_out_cnt: Optional[int] = None
    bytes_out_rate: Optional[int] = None


def _int_or_none(text: str) -> Optional[int]:
    text = text.strip()
    if not _INT_RE.fullmatch(text):
        return None
    number = int(text)
    if number < _INT64_MIN or number > _INT64_MAX:
        return None
    return number


def parse_stick_table(line: str, process: int) -> Optional[StickTable]:
    """Parse a ``# table: name, type: ip, size:N, used:N`` line.

    Returns None when the line is not a table description. Sizes that
    cannot be parsed are reported as 0.
    """
    if not line.startswith(_TABLE_PREFIX):
        return None
    table = StickTable(process=process)
    for part in line.split(","):
        if part.startswith(_TABLE_PREFIX):
            table.name = part[len(_TABLE_PREFIX):].strip()
        elif part.startswith(" type:"):
            table.type = part[len(" type:"):].strip()
        elif part.startswith(" size:"):
            table.size = _int_or_none(part[len(" size:"):]) or 0
        elif part.startswith(" used:"):
            table.used = _int_or_none(part[len(" used:"):]) or 0
    return table


def parse_stick_tables(output: str, process: int) -> list[StickTable]:
    """Parse every table description in a ``show table`` response."""
    tables = []
    for line in output.split("\n"):
        if not line.strip().startswith(_TABLE_PREFIX):
            continue
        table = parse_stick_table(line, process)
        if table is not None:
            tables.append(table)
    return tables


def parse_stick_table_entry(line: str) -> Optional[StickTableEntry]:
    """Parse one ``<id>: key=... use=... exp=...`` entry line.

    Returns None when the line has no ``:`` separating the id from the data.
    """
    id_part, sep, data = line.partition(":")
    if not sep:
        return None
    entry = StickTableEntry(id=id_part)
    for item in data.strip().split(" "):
        parts = item.split("=")
        key = parts[0]
        value = parts[1] if len(parts) > 1 else ""
        if key == "use":
            entry.use = value.strip() == "1"
        elif key == "key":
            entry.key = value.strip()
        elif key in _EXACT_INT_KEYS:
            number = _int_or_none(value)
            if number is not None:
                setattr(entry, _EXACT_INT_KEYS[key], number)
        else:
            for prefix, attr in _RATE_PREFIXES:
                if key.startswith(prefix):
                    number = _int_or_none(value)
                    if number is not None:
                        setattr(entry, attr, number)
                    break
    return entry


def parse_stick_table_entries(output: str) -> list[StickTableEntry]:
    """Parse the entries of a ``show table <name>`` response, skipping comments."""
    entries = []
    for line in output.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        entry = parse_stick_table_entry(line)
        if entry is not None:
            entries.append(entry)
    return entries