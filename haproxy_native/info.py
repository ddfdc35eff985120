"""Parsing of the runtime API ``show info typed`` output."""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from typing import Optional

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INT_RE = re.compile(r"[+-]?[0-9]+")

# Field position in ``show info typed`` -> attribute holding an integer value.
_INT_FIELDS = {
    "3": "nbthread",
    "4": "processes",
    "5": "process_num",
    "6": "pid",
    "8": "uptime",
    "9": "mem_max_mb",
    "10": "pool_alloc_mb",
    "11": "pool_used_mb",
    "12": "pool_failed",
    "13": "ulimit_n",
    "14": "max_sock",
    "15": "max_conn",
    "16": "hard_max_conn",
    "17": "curr_conns",
    "18": "cum_conns",
    "19": "cum_req",
    "20": "max_ssl_conns",
    "21": "curr_ssl_conns",
    "22": "cum_ssl_conns",
    "23": "max_pipes",
    "24": "pipes_used",
    "25": "pipes_free",
    "26": "conn_rate",
    "27": "conn_rate_limit",
    "28": "max_conn_rate",
    "29": "sess_rate",
    "30": "sess_rate_limit",
    "31": "max_sess_rate",
    "32": "ssl_rate",
    "33": "ssl_rate_limit",
    "34": "max_ssl_rate",
    "35": "ssl_frontend_key_rate",
    "36": "ssl_frontend_max_key_rate",
    "37": "ssl_frontend_session_reuse",
    "38": "ssl_backend_key_rate",
    "39": "ssl_backend_max_key_rate",
    "40": "ssl_cache_lookups",
    "41": "ssl_cache_misses",
    "42": "compress_bps_in",
    "43": "compress_bps_out",
    "44": "compress_bps_rate_lim",
    "45": "zlib_mem_usage",
    "46": "max_zlib_mem_usage",
    "47": "tasks",
    "48": "run_queue",
    "49": "idle_pct",
    "52": "stopping",
    "53": "jobs",
    "54": "unstoppable",
    "55": "listeners",
    "56": "active_peers",
    "57": "connected_peers",
    "58": "dropped_logs",
    "59": "busy_polling",
    "60": "failed_resolutions",
    "61": "total_bytes_out",
    "62": "bytes_out_rate",
}

_STR_FIELDS = {"1": "version", "50": "node"}
_RELEASE_DATE_FIELD = "2"


@dataclass
class ProcessInfoItem:
    """Information about one HAProxy process."""

    version: str = ""
    release_date: Optional[datetime.date] = None
    node: str = ""
    nbthread: Optional[int] = None
    processes: Optional[int] = None
    process_num: Optional[int] = None
    pid: Optional[int] = None
    uptime: Optional[int] = None
    mem_max_mb: Optional[int] = None
    pool_alloc_mb: Optional[int] = None
    pool_used_mb: Optional[int] = None
    pool_failed: Optional[int] = None
    ulimit_n: Optional[int] = None
    max_sock: Optional[int] = None
    max_conn: Optional[int] = None
    hard_max_conn: Optional[int] = None
    curr_conns: Optional[int] = None
    cum_conns: Optional[int] = None
    cum_req: Optional[int] = None
    max_ssl_conns: Optional[int] = None
    curr_ssl_conns: Optional[int] = None
    cum_ssl_conns: Optional[int] = None
    max_pipes: Optional[int] = None
    pipes_used: Optional[int] = None
    pipes_free: Optional[int] = None
    conn_rate: Optional[int] = None
    conn_rate_limit: Optional[int] = None
    max_conn_rate: Optional[int] = None
    sess_rate: Optional[int] = None
    sess_rate_limit: Optional[int] = None
    max_sess_rate: Optional[int] = None
    ssl_rate: Optional[int] = None
    ssl_rate_limit: Optional[int] = None
    max_ssl_rate: Optional[int] = None
    ssl_frontend_key_rate: Optional[int] = None
    ssl_frontend_max_key_rate: Optional[int] = None
    ssl_frontend_session_reuse: Optional[int] = None
    ssl_backend_key_rate: Optional[int] = None
    ssl_backend_max_key_rate: Optional[int] = None
    ssl_cache_lookups: Optional[int] = None
    ssl_cache_misses: Optional[int] = None
    compress_bps_in: Optional[int] = None
    compress_bps_out: Optional[int] = None
    compress_bps_rate_lim: Optional[int] = None
    zlib_mem_usage: Optional[int] = None
    max_zlib_mem_usage: Optional[int] = None
    tasks: Optional[int] = None
    run_queue: Optional[int] = None
    idle_pct: Optional[int] = None
    stopping: Optional[int] = None
    jobs: Optional[int] = None
    unstoppable: Optional[int] = None
    listeners: Optional[int] = None
    active_peers: Optional[int] = None
    connected_peers: Optional[int] = None
    dropped_logs: Optional[int] = None
    busy_polling: Optional[int] = None
    failed_resolutions: Optional[int] = None
    total_bytes_out: Optional[int] = None
    bytes_out_rate: Optional[int] = None


@dataclass
class ProcessInfo:
    """Info fetched from one runtime API socket, or the error that prevented it."""

    runtime_api: str
    info: Optional[ProcessInfoItem] = None
    error: Optional[str] = None


def _int_or_none(text: str) -> Optional[int]:
    if not _INT_RE.fullmatch(text):
        return None
    number = int(text)
    if number < _INT64_MIN or number > _INT64_MAX:
        return None
    return number


def _date_or_none(text: str) -> Optional[datetime.date]:
    try:
        return datetime.date.fromisoformat(text.replace("/", "-"))
    except ValueError:
        return None


def parse_info(info: str) -> ProcessInfoItem:
    """Parse ``show info typed`` output into a ProcessInfoItem.

    Each line looks like ``<pos>.<Name>.<proc>:<origin>:<type>:<value>``.
    Unknown positions, short lines and unparseable numbers are ignored.
    """
    item = ProcessInfoItem()
    for line in info.split("\n"):
        fields = line.split(":")
        field_id = fields[0].split(".")[0].strip()
        if len(fields) < 4:
            continue
        value = fields[3]
        if field_id in _STR_FIELDS:
            setattr(item, _STR_FIELDS[field_id], value)
        elif field_id == _RELEASE_DATE_FIELD:
            release = _date_or_none(value)
            if release is not None:
                item.release_date = release
        elif field_id in _INT_FIELDS:
            number = _int_or_none(value)
            if number is not None:
                setattr(item, _INT_FIELDS[field_id], number)
    return item