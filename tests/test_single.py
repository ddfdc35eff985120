import os
import shutil
import socket
import tempfile
import threading

import pytest

from haproxy_native.single import RuntimeAPIError, SingleRuntime


class FakeSocket:
    """A unix socket server answering each command with a canned response."""

    def __init__(self, path, responder):
        self.path = path
        self.commands = []
        self._responder = responder
        self._stop = threading.Event()
        self._server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._server.bind(path)
        self._server.listen(5)
        self._server.settimeout(0.1)
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self._server.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            with conn:
                data = b""
                while not data.endswith(b"\n"):
                    chunk = conn.recv(1024)
                    if not chunk:
                        break
                    data += chunk
                command = data.decode()
                self.commands.append(command)
                conn.sendall(self._responder(command).encode())

    def close(self):
        self._stop.set()
        self._thread.join(timeout=2)
        self._server.close()


@pytest.fixture
def serve():
    started = []
    dirs = []

    def start(response):
        responder = response if callable(response) else (lambda _cmd: response)
        base = "/tmp" if os.path.isdir("/tmp") else None
        directory = tempfile.mkdtemp(prefix="hn", dir=base)
        dirs.append(directory)
        fake = FakeSocket(os.path.join(directory, "s.sock"), responder)
        started.append(fake)
        return fake

    yield start
    for fake in started:
        fake.close()
    for directory in dirs:
        shutil.rmtree(directory, ignore_errors=True)


@pytest.fixture
def missing_path():
    base = "/tmp" if os.path.isdir("/tmp") else None
    directory = tempfile.mkdtemp(prefix="hn", dir=base)
    yield os.path.join(directory, "absent.sock")
    shutil.rmtree(directory, ignore_errors=True)


def test_execute_raw_sends_severity_prefix_and_trims(serve):
    fake = serve("\nhello\n> ")
    runtime = SingleRuntime(fake.path, 0, 1)
    assert runtime.execute_raw("show info") == "\nhello"
    assert fake.commands == ["set severity-output number;show info\n"]


def test_execute_raw_with_worker_prefix(serve):
    fake = serve("\n")
    runtime = SingleRuntime(fake.path, 2, 2)
    runtime.execute_raw("show stat")
    assert fake.commands == ["@2 set severity-output number;@2 show stat\n"]


def test_execute_raw_missing_socket(missing_path):
    runtime = SingleRuntime(missing_path, 0, 1)
    with pytest.raises(RuntimeAPIError):
        runtime.execute_raw("show info")


def test_execute_missing_socket_names_command(missing_path):
    runtime = SingleRuntime(missing_path, 0, 1)
    with pytest.raises(RuntimeAPIError) as info:
        runtime.execute("show info")
    assert str(info.value).endswith("[show info]")


def test_execute_reports_haproxy_error(serve):
    fake = serve("\n[3]: No such frontend.\n")
    runtime = SingleRuntime(fake.path, 0, 1)
    with pytest.raises(RuntimeAPIError) as info:
        runtime.set_frontend_maxconn("fe", 10)
    assert str(info.value) == "[3]  No such frontend. [set maxconn frontend fe 10]"


def test_execute_with_response_drops_first_char(serve):
    fake = serve("\nline one\nline two\n")
    runtime = SingleRuntime(fake.path, 0, 1)
    assert runtime.execute_with_response("show x") == "line one\nline two"


def test_set_frontend_maxconn_command(serve):
    fake = serve("\n")
    SingleRuntime(fake.path, 0, 1).set_frontend_maxconn("fe", 10)
    assert fake.commands == ["set severity-output number;set maxconn frontend fe 10\n"]


def test_set_server_addr_with_and_without_port(serve):
    fake = serve("\n")
    runtime = SingleRuntime(fake.path, 0, 1)
    runtime.set_server_addr("be", "srv", "10.0.0.1", 8080)
    runtime.set_server_addr("be", "srv", "10.0.0.1", 0)
    assert fake.commands == [
        "set severity-output number;set server be/srv addr 10.0.0.1 port 8080\n",
        "set severity-output number;set server be/srv addr 10.0.0.1\n",
    ]


@pytest.mark.parametrize(
    "method, args, expected",
    [
        ("enable_agent_check", ("be", "srv"), "enable agent be/srv"),
        ("disable_agent_check", ("be", "srv"), "disable agent be/srv"),
        ("enable_server", ("be", "srv"), "enable server be/srv"),
        ("disable_server", ("be", "srv"), "disable server be/srv"),
        ("set_server_agent_addr", ("be", "srv", "10.0.0.2"), "set server be/srv agent-addr 10.0.0.2"),
        ("set_server_agent_send", ("be", "srv", "ping"), "set server be/srv agent-send ping"),
        ("set_server_state", ("be", "srv", "drain"), "set server be/srv state drain"),
        ("set_server_health", ("be", "srv", "up"), "set server be/srv health up"),
        ("set_server_weight", ("be", "srv", "50%"), "set server be/srv weight 50%"),
        ("set_server_check_port", ("be", "srv", 8081), "set server be/srv check-port 8081"),
    ],
)
def test_server_commands(serve, method, args, expected):
    fake = serve("\n")
    getattr(SingleRuntime(fake.path, 0, 1), method)(*args)
    assert fake.commands == [f"set severity-output number;{expected}\n"]


@pytest.mark.parametrize(
    "method, args",
    [
        ("set_server_state", ("be", "srv", "broken")),
        ("set_server_health", ("be", "srv", "sick")),
        ("set_server_weight", ("be", "srv", "300")),
        ("set_server_check_port", ("be", "srv", 0)),
        ("set_server_check_port", ("be", "srv", 70000)),
    ],
)
def test_invalid_values_are_rejected_before_sending(serve, method, args):
    fake = serve("\n")
    with pytest.raises(ValueError, match="bad request"):
        getattr(SingleRuntime(fake.path, 0, 1), method)(*args)
    assert fake.commands == []


SERVERS_STATE = (
    "\n1\n# be_id be_name srv_id srv_name srv_addr srv_op_state\n"
    "3 test 1 webserv 192.168.1.1 2 0 10 10 100 6 3 4 6 0 0 0 - 9200\n"
    "3 test 2 webserv2 192.168.1.1 0 1 10 10 100 6 3 4 6 0 0 0 - 9300\n"
)


def test_get_servers_state(serve):
    fake = serve(SERVERS_STATE)
    servers = SingleRuntime(fake.path, 0, 1).get_servers_state("test")
    assert [s.name for s in servers] == ["webserv", "webserv2"]
    assert servers[1].admin_state == "maint"
    assert fake.commands == ["set severity-output number;show servers state test\n"]


def test_get_server_state(serve):
    fake = serve(SERVERS_STATE)
    runtime = SingleRuntime(fake.path, 0, 1)
    server = runtime.get_server_state("test", "webserv")
    assert server.port == 9200
    assert server.operational_state == "up"
    assert runtime.get_server_state("test", "missing") is None


def test_get_stats(serve):
    fake = serve("\n# pxname,svname,status\nfe,FRONTEND,OPEN\nbe,srv1,UP\n")
    collection = SingleRuntime(fake.path, 1, 1).get_stats()
    assert collection.runtime_api == f"{fake.path}@1"
    assert collection.error is None
    assert [(s.name, s.type, s.backend_name) for s in collection.stats] == [
        ("fe", "frontend", ""),
        ("srv1", "server", "be"),
    ]


def test_get_stats_reports_error(missing_path):
    collection = SingleRuntime(missing_path, 0, 1).get_stats()
    assert collection.runtime_api == missing_path
    assert collection.stats == []
    assert collection.error


def test_get_info(serve):
    fake = serve("\n1.Version.1:POS:str:2.0.1\n6.Pid.1:POS:u32:1234\n")
    result = SingleRuntime(fake.path, 2, 2).get_info()
    assert result.runtime_api == fake.path
    assert result.info.version == "2.0.1"
    assert result.info.pid == 1234
    assert fake.commands == ["@2 set severity-output number;@2 show info typed\n"]


def test_get_info_reports_error(missing_path):
    result = SingleRuntime(missing_path, 0, 1).get_info()
    assert result.info is None
    assert result.error


TABLES = (
    "\n# table: t1, type: ip, size:100, used:2\n"
    "# table: t2, type: string, size:10, used:0\n"
)


def test_show_tables(serve):
    fake = serve(TABLES)
    tables = SingleRuntime(fake.path, 0, 3).show_tables()
    assert [t.name for t in tables] == ["t1", "t2"]
    assert all(t.process == 3 for t in tables)
    assert tables[0].size == 100


def test_show_table(serve):
    fake = serve(TABLES)
    runtime = SingleRuntime(fake.path, 0, 3)
    table = runtime.show_table("t2")
    assert (table.name, table.type, table.used) == ("t2", "string", 0)
    assert runtime.show_table("nope") is None


def test_get_table_entries(serve):
    fake = serve(
        "\n# table: t1, type: ip, size:100, used:1\n"
        "0x55d1: key=10.0.0.1 use=0 exp=1000 server_id=1\n"
    )
    runtime = SingleRuntime(fake.path, 0, 1)
    entries = runtime.get_table_entries("t1", ["gpc0 gt 0"], "10.0.0.1")
    assert fake.commands == [
        "set severity-output number;show table t1 data.gpc0 gt 0 key 10.0.0.1\n"
    ]
    assert len(entries) == 1
    assert entries[0].key == "10.0.0.1"
    assert entries[0].exp == 1000
    assert entries[0].server_id == 1


def test_get_table_entries_without_filter(serve):
    fake = serve("\n")
    entries = SingleRuntime(fake.path, 0, 1).get_table_entries("t1", [], "")
    assert entries == []
    assert fake.commands == ["set severity-output number;show table t1\n"]