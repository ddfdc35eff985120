"""Client that fans runtime API commands out to several HAProxy sockets."""

from __future__ import annotations

from typing import Callable, Mapping, Optional, Sequence, TypeVar

from .info import ProcessInfo
from .servers import RuntimeServer
from .single import RuntimeAPIError, SingleRuntime
from .stats import NativeStatsCollection
from .stick_tables import StickTable, StickTableEntry

DEFAULT_SOCKET_PATH = "/var/run/haproxy.sock"

_T = TypeVar("_T")


def _prefixed(runtime: SingleRuntime, err: Exception) -> Exception:
    """Build an error of the same kind whose message names the socket."""
    return type(err)(f"{runtime.socket_path} {err}")


class Client:
    """Runtime API client covering every configured socket or worker process."""

    def __init__(self) -> None:
        self._runtimes: list[SingleRuntime] = []

    @property
    def runtimes(self) -> tuple[SingleRuntime, ...]:
        """The single-socket runtimes this client talks to."""
        return tuple(self._runtimes)

    def init(
        self,
        socket_paths: Sequence[str],
        master_socket_path: str = "",
        nbproc: int = 0,
    ) -> None:
        """Set up one runtime per socket, plus ``nbproc`` workers of the master.

        Prefer :meth:`init_with_sockets` or :meth:`init_with_master_socket`.
        """
        runtimes = [
            SingleRuntime(path, 0, index) for index, path in enumerate(socket_paths)
        ]
        if master_socket_path and nbproc:
            runtimes.extend(
                SingleRuntime(master_socket_path, i, i) for i in range(1, nbproc + 1)
            )
        self._runtimes = runtimes

    def init_with_sockets(self, socket_paths: Mapping[int, str]) -> None:
        """Set up one runtime per process number and socket path."""
        self._runtimes = [
            SingleRuntime(path, 0, process) for process, path in socket_paths.items()
        ]

    def init_with_master_socket(self, master_socket_path: str, nbproc: int = 0) -> None:
        """Set up one runtime per worker, all reached through the master socket."""
        if nbproc == 0:
            nbproc = 1
        if not master_socket_path:
            raise ValueError("Master socket not configured")
        self._runtimes = [
            SingleRuntime(master_socket_path, i, i) for i in range(1, nbproc + 1)
        ]

    def _each(self, action: Callable[[SingleRuntime], _T]) -> list[_T]:
        results = []
        for runtime in self._runtimes:
            try:
                results.append(action(runtime))
            except (RuntimeAPIError, ValueError) as err:
                raise _prefixed(runtime, err) from err
        return results

    def get_stats(self) -> list[NativeStatsCollection]:
        """Return stats from every socket; failures are stored in each result."""
        return [runtime.get_stats() for runtime in self._runtimes]

    def get_info(self) -> list[ProcessInfo]:
        """Return process info from every socket; failures are stored in each result."""
        return [runtime.get_info() for runtime in self._runtimes]

    def set_frontend_maxconn(self, frontend: str, maxconn: int) -> None:
        """Set maxconn for a frontend."""
        self._each(lambda rt: rt.set_frontend_maxconn(frontend, maxconn))

    def set_server_addr(self, backend: str, server: str, ip: str, port: int) -> None:
        """Set the address and port of a server."""
        self._each(lambda rt: rt.set_server_addr(backend, server, ip, port))

    def set_server_state(self, backend: str, server: str, state: str) -> None:
        """Set the administrative state of a server."""
        self._each(lambda rt: rt.set_server_state(backend, server, state))

    def set_server_weight(self, backend: str, server: str, weight: str) -> None:
        """Set the weight of a server."""
        self._each(lambda rt: rt.set_server_weight(backend, server, weight))

    def set_server_health(self, backend: str, server: str, health: str) -> None:
        """Set the health of a server."""
        self._each(lambda rt: rt.set_server_health(backend, server, health))

    def enable_agent_check(self, backend: str, server: str) -> None:
        """Enable the agent check of a server."""
        self._each(lambda rt: rt.enable_agent_check(backend, server))

    def disable_agent_check(self, backend: str, server: str) -> None:
        """Disable the agent check of a server."""
        self._each(lambda rt: rt.disable_agent_check(backend, server))

    def enable_server(self, backend: str, server: str) -> None:
        """Mark a server as UP."""
        self._each(lambda rt: rt.enable_server(backend, server))

    def disable_server(self, backend: str, server: str) -> None:
        """Mark a server as DOWN for maintenance."""
        self._each(lambda rt: rt.disable_server(backend, server))

    def set_server_agent_addr(self, backend: str, server: str, addr: str) -> None:
        """Set the agent address of a server."""
        self._each(lambda rt: rt.set_server_agent_addr(backend, server, addr))

    def set_server_agent_send(self, backend: str, server: str, send: str) -> None:
        """Set the string sent to the agent of a server."""
        self._each(lambda rt: rt.set_server_agent_send(backend, server, send))

    def get_servers_state(self, backend: str) -> Optional[list[RuntimeServer]]:
        """Return the servers' runtime state, which must agree across sockets.

        A socket that fails to answer contributes no state.
        """
        states: Optional[list[RuntimeServer]] = None
        first = True
        for runtime in self._runtimes:
            try:
                current: Optional[list[RuntimeServer]] = runtime.get_servers_state(backend)
            except (RuntimeAPIError, ValueError):
                current = None
            if not first and current != states:
                raise RuntimeAPIError("Servers states differ in multiple runtime APIs")
            states = current
            first = False
        return states

    def get_server_state(self, backend: str, server: str) -> Optional[RuntimeServer]:
        """Return one server's runtime state, which must agree across sockets."""
        state: Optional[RuntimeServer] = None
        first = True
        for runtime in self._runtimes:
            try:
                current = runtime.get_server_state(backend, server)
            except (RuntimeAPIError, ValueError):
                current = None
            if not first and current != state:
                raise RuntimeAPIError("Server states differ in multiple runtime APIs")
            state = current
            first = False
        return state

    def set_server_check_port(self, backend: str, server: str, port: int) -> None:
        """Set the health check port of a server."""
        self._each(lambda rt: rt.set_server_check_port(backend, server, port))

    def show_tables(self, process: int = 0) -> list[StickTable]:
        """Return stick tables of ``process``, or of every process when it is 0."""
        tables: list[StickTable] = []
        for runtime in self._runtimes:
            if process != 0 and runtime.process != process:
                continue
            try:
                tables.extend(runtime.show_tables())
            except (RuntimeAPIError, ValueError) as err:
                raise _prefixed(runtime, err) from err
        return tables

    def get_table_entries(
        self,
        name: str,
        process: int,
        filter: Optional[Sequence[str]] = None,
        key: str = "",
    ) -> list[StickTableEntry]:
        """Return the entries of table ``name`` in ``process``."""
        for runtime in self._runtimes:
            if runtime.process != process:
                continue
            try:
                return runtime.get_table_entries(name, filter, key)
            except (RuntimeAPIError, ValueError) as err:
                raise _prefixed(runtime, err) from err
        return []

    def show_table(self, name: str, process: int) -> Optional[StickTable]:
        """Return the description of table ``name`` in ``process``, or None."""
        table: Optional[StickTable] = None
        for runtime in self._runtimes:
            if runtime.process != process:
                continue
            try:
                table = runtime.show_table(name)
            except (RuntimeAPIError, ValueError) as err:
                raise _prefixed(runtime, err) from err
        return table

    def execute_raw(self, command: str) -> list[str]:
        """Run ``command`` on every socket and return the raw responses in order."""
        return self._each(lambda rt: rt.execute_raw(command))


def default_client() -> Client:
    """Return a client for the default runtime API socket."""
    client = Client()
    client.init([DEFAULT_SOCKET_PATH], "", 0)
    return client