"""Small helpers shared across the package: lookups, case conversion, unit parsing."""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional, Sequence

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INT_RE = re.compile(r"[+-]?[0-9]+")

_TIMEOUT_UNITS = (
    ("ms", 1),
    ("s", 1000),
    ("m", 1000 * 60),
    ("h", 1000 * 60 * 60),
    ("d", 1000 * 60 * 60 * 24),
)

_SIZE_UNITS = (
    ("k", 1024),
    ("m", 1024 * 1024),
    ("g", 1024 * 1024 * 1024),
)

_CAMEL_REPLACEMENTS = (
    ("Http", "HTTP"),
    ("Uri", "URI"),
    ("http", "HTTP"),
    ("tcp", "TCP"),
    ("Tcp", "TCP"),
    ("Id", "ID"),
    ("Tls", "TLS"),
)


def _field_value(item: Any, identifier: str) -> Any:
    if isinstance(item, dict):
        return item.get(identifier)
    return getattr(item, identifier, None)


def obj_in_array(value: str, items: Iterable[Any], identifier: str) -> bool:
    """Return True if any item has attribute ``identifier`` equal to ``value``."""
    return get_obj_by_field(items, identifier, value) is not None


def get_obj_by_field(items: Iterable[Any], identifier: str, value: str) -> Any:
    """Return the first item whose attribute ``identifier`` equals ``value``, or None."""
    return next(
        (item for item in items if _field_value(item, identifier) == value), None
    )


def is_zero_value(value: Any) -> bool:
    """Tell whether ``value`` is the zero value of its kind.

    None, False, numeric zero and empty strings, bytes and tuples count as zero.
    Other objects, including empty lists and dicts, do not.
    """
    if value is None:
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float, complex)):
        return value == 0
    if isinstance(value, (str, bytes, tuple)):
        return len(value) == 0
    return False


def string_in_slice(a: str, items: Iterable[str]) -> bool:
    """Return True if ``a`` is one of ``items``."""
    return a in items


def camel_case(field_name: str, init_case: bool) -> str:
    """Turn a snake, dash or space separated name into camel case."""
    out = []
    cap_next = init_case
    for ch in field_name.strip(" "):
        if "A" <= ch <= "Z" or "0" <= ch <= "9":
            out.append(ch)
        elif "a" <= ch <= "z":
            out.append(ch.upper() if cap_next else ch)
        cap_next = ch in "_ -"
    result = "".join(out)
    for old, new in _CAMEL_REPLACEMENTS:
        result = result.replace(old, new)
    return result


def _split_case(field_name: str, sep: str) -> str:
    name = field_name.strip(" ")
    out = ""
    for i, ch in enumerate(name):
        case_changes = False
        if i + 1 < len(name):
            nxt = name[i + 1]
            case_changes = ("A" <= ch <= "Z" and "a" <= nxt <= "z") or (
                "a" <= ch <= "z" and "A" <= nxt <= "Z"
            )
        if i > 0 and out and out[-1] != sep and case_changes:
            if "A" <= ch <= "Z":
                out += sep + ch
            elif "a" <= ch <= "z":
                out += ch + sep
        elif ch == " ":
            out += sep
        else:
            out += ch
    return out.lower().replace("httpuri", f"http{sep}uri")


def snake_case(field_name: str) -> str:
    """Turn a camel case name into snake case, keeping acronyms as whole words."""
    return _split_case(field_name, "_")


def dash_case(field_name: str) -> str:
    """Turn a camel case name into dash case, keeping acronyms as whole words."""
    return _split_case(field_name, "-")


def _parse_int64(text: str) -> int:
    """Parse a base-10 signed 64-bit integer, returning 0 when it is not one."""
    if not _INT_RE.fullmatch(text):
        return 0
    number = int(text)
    if number < _INT64_MIN or number > _INT64_MAX:
        return 0
    return number


def _parse_with_units(text: str, units: Sequence[tuple[str, int]]) -> Optional[int]:
    for suffix, factor in units:
        if text.endswith(suffix):
            number = _parse_int64(text[: -len(suffix)]) * factor
            break
    else:
        number = _parse_int64(text)
    return number or None


def parse_timeout(value: str) -> Optional[int]:
    """Parse a timeout such as ``5s`` or ``100ms`` into milliseconds.

    Returns None when the value is zero or cannot be parsed.
    """
    return _parse_with_units(value, _TIMEOUT_UNITS)


def parse_size(value: str) -> Optional[int]:
    """Parse a size such as ``16k`` or ``2g`` into bytes.

    Returns None when the value is zero or cannot be parsed.
    """
    return _parse_with_units(value, _SIZE_UNITS)