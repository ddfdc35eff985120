"""Client for a single HAProxy runtime API socket."""

from __future__ import annotations

import socket
import threading
from typing import Optional, Sequence

from .info import ProcessInfo, parse_info
from .servers import RuntimeServer, find_runtime_server, parse_runtime_servers
from .stats import NativeStatsCollection, parse_stats
from .stick_tables import (
    StickTable,
    StickTableEntry,
    parse_stick_table,
    parse_stick_table_entries,
    parse_stick_tables,
)
from .validation import server_health_valid, server_state_valid, server_weight_valid

_TIMEOUT = 30.0
_BUFFER_SIZE = 1024
_ERROR_PREFIXES = frozenset({"[3]:", "[2]:", "[1]:", "[0]:"})


class RuntimeAPIError(Exception):
    """Raised when the runtime API cannot be reached or reports an error."""


class SingleRuntime:
    """One runtime API socket, optionally addressing a worker through the master.

    ``worker`` is non-zero in master-worker mode, where ``socket_path`` is the
    master socket. ``process`` is the process number this socket reports for.
    Commands sent through one instance are executed one at a time.
    """

    def __init__(self, socket_path: str, worker: int = 0, process: int = 0) -> None:
        self.socket_path = socket_path
        self.worker = worker
        self.process = process
        self.timeout = _TIMEOUT
        self._lock = threading.Lock()

    def _full_command(self, command: str) -> str:
        if self.worker > 0:
            w = self.worker
            return f"@{w} set severity-output number;@{w} {command}\n"
        return f"set severity-output number;{command}\n"

    def _read_from_socket(self, command: str) -> str:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as api:
            api.settimeout(self.timeout)
            api.connect(self.socket_path)
            api.sendall(self._full_command(command).encode())
            chunks = []
            while True:
                try:
                    chunk = api.recv(_BUFFER_SIZE)
                except TimeoutError:
                    raise
                except OSError:
                    break
                if not chunk:
                    break
                chunks.append(chunk)
        data = b"".join(chunks).decode("utf-8", errors="replace")
        return data.removesuffix("\n> ").removesuffix("\n")

    def execute_raw(self, command: str) -> str:
        """Run ``command`` and return the raw response, retrying once on failure."""
        last_error: Optional[OSError] = None
        for _ in range(2):
            try:
                with self._lock:
                    return self._read_from_socket(command)
            except TimeoutError:
                raise RuntimeAPIError("timeout reached") from None
            except OSError as err:
                last_error = err
        raise RuntimeAPIError(str(last_error)) from last_error

    @staticmethod
    def _check_response(raw: str, command: str) -> None:
        if len(raw) > 5 and raw[1:5] in _ERROR_PREFIXES:
            raise RuntimeAPIError(f"[{raw[2]}] {raw[5:]} [{command}]")

    def _raw_or_error(self, command: str) -> str:
        try:
            raw = self.execute_raw(command)
        except RuntimeAPIError as err:
            raise RuntimeAPIError(f"{err} [{command}]") from err
        self._check_response(raw, command)
        return raw

    def execute(self, command: str) -> None:
        """Run ``command``, raising RuntimeAPIError if HAProxy reports an error."""
        self._raw_or_error(command)

    def execute_with_response(self, command: str) -> str:
        """Run ``command`` and return its response without the leading separator."""
        raw = self._raw_or_error(command)
        return raw[1:] if len(raw) > 1 else ""

    def set_frontend_maxconn(self, frontend: str, maxconn: int) -> None:
        """Set maxconn for a frontend."""
        self.execute(f"set maxconn frontend {frontend} {maxconn}")

    def set_server_addr(self, backend: str, server: str, ip: str, port: int) -> None:
        """Set the address, and the port when positive, of a server."""
        if port > 0:
            cmd = f"set server {backend}/{server} addr {ip} port {port}"
        else:
            cmd = f"set server {backend}/{server} addr {ip}"
        self.execute(cmd)

    def set_server_state(self, backend: str, server: str, state: str) -> None:
        """Set the administrative state of a server."""
        if not server_state_valid(state):
            raise ValueError("bad request")
        self.execute(f"set server {backend}/{server} state {state}")

    def set_server_weight(self, backend: str, server: str, weight: str) -> None:
        """Set the weight of a server."""
        if not server_weight_valid(weight):
            raise ValueError("bad request")
        self.execute(f"set server {backend}/{server} weight {weight}")

    def set_server_health(self, backend: str, server: str, health: str) -> None:
        """Set the health of a server."""
        if not server_health_valid(health):
            raise ValueError("bad request")
        self.execute(f"set server {backend}/{server} health {health}")

    def set_server_check_port(self, backend: str, server: str, port: int) -> None:
        """Set the health check port of a server."""
        if not 0 < port <= 65535:
            raise ValueError("bad request")
        self.execute(f"set server {backend}/{server} check-port {port}")

    def enable_agent_check(self, backend: str, server: str) -> None:
        """Enable the agent check of a server."""
        self.execute(f"enable agent {backend}/{server}")

    def disable_agent_check(self, backend: str, server: str) -> None:
        """Disable the agent check of a server."""
        self.execute(f"disable agent {backend}/{server}")

    def enable_server(self, backend: str, server: str) -> None:
        """Mark a server as UP."""
        self.execute(f"enable server {backend}/{server}")

    def disable_server(self, backend: str, server: str) -> None:
        """Mark a server as DOWN for maintenance."""
        self.execute(f"disable server {backend}/{server}")

    def set_server_agent_addr(self, backend: str, server: str, addr: str) -> None:
        """Set the agent address of a server."""
        self.execute(f"set server {backend}/{server} agent-addr {addr}")

    def set_server_agent_send(self, backend: str, server: str, send: str) -> None:
        """Set the string sent to the agent of a server."""
        self.execute(f"set server {backend}/{server} agent-send {send}")

    def get_servers_state(self, backend: str) -> list[RuntimeServer]:
        """Return the runtime state of every server in ``backend``."""
        result = self.execute_with_response(f"show servers state {backend}")
        return parse_runtime_servers(result)

    def get_server_state(self, backend: str, server: str) -> Optional[RuntimeServer]:
        """Return the runtime state of one server, or None if it is not found."""
        result = self.execute_with_response(f"show servers state {backend}")
        return find_runtime_server(result, server)

    def get_stats(self) -> NativeStatsCollection:
        """Fetch ``show stat``; failures are reported in the result's error."""
        if self.worker != 0:
            runtime_api = f"{self.socket_path}@{self.worker}"
        else:
            runtime_api = self.socket_path
        try:
            raw = self.execute_raw("show stat")
        except RuntimeAPIError as err:
            return NativeStatsCollection(runtime_api=runtime_api, error=str(err))
        return NativeStatsCollection(runtime_api=runtime_api, stats=parse_stats(raw))

    def get_info(self) -> ProcessInfo:
        """Fetch ``show info typed``; failures are reported in the result's error."""
        try:
            raw = self.execute_raw("show info typed")
        except RuntimeAPIError as err:
            return ProcessInfo(runtime_api=self.socket_path, error=str(err))
        return ProcessInfo(runtime_api=self.socket_path, info=parse_info(raw))

    def show_tables(self) -> list[StickTable]:
        """Return the descriptions of all stick tables."""
        response = self.execute_with_response("show table")
        return parse_stick_tables(response, self.process)

    def show_table(self, name: str) -> Optional[StickTable]:
        """Return the description of the stick table ``name``, or None."""
        response = self.execute_with_response("show table")
        for line in response.split("\n"):
            table = parse_stick_table(line, self.process)
            if table is not None and table.name == name:
                return table
        return None

    def get_table_entries(
        self, name: str, filter: Optional[Sequence[str]] = None, key: str = ""
    ) -> list[StickTableEntry]:
        """Return the entries of a stick table; only the first filter is used."""
        cmd = f"show table {name}"
        if filter:
            cmd = f"{cmd} data.{filter[0]}"
        if key:
            cmd = f"{cmd} key {key}"
        response = self.execute_with_response(cmd)
        return parse_stick_table_entries(response)