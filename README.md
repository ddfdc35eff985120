# haproxy-native

A small Python client for the HAProxy runtime API. It sends commands to one
or more UNIX stats sockets, including a master socket in master-worker mode,
and turns the replies into dataclasses.

## Installation

```
pip install .
```

## Connecting

```python
from haproxy_native.client import Client, default_client

# One socket at the default path (/var/run/haproxy.sock)
client = default_client()

# Several stats sockets, keyed by process number
client = Client()
client.init_with_sockets({1: "/run/haproxy-1.sock", 2: "/run/haproxy-2.sock"})

# A master socket that fronts two workers (nbproc 0 means one worker)
client = Client()
client.init_with_master_socket("/run/haproxy-master.sock", 2)
```

`init_with_master_socket` raises `ValueError` when the socket path is empty.
`Client.runtimes` holds the `SingleRuntime` objects the client talks to; a
`SingleRuntime` from `haproxy_native.single` can also be used on its own.

Nothing connects until a command is sent. Each command opens the socket,
sends the command, reads the reply and closes it again. A failed attempt is
retried once; each `SingleRuntime` waits up to 30 seconds (its `timeout`
attribute) before giving up.

## Reading state

```python
stats = client.get_stats()                 # list of NativeStatsCollection, one per socket
infos = client.get_info()                  # list of ProcessInfo, one per socket
servers = client.get_servers_state("web")  # list of RuntimeServer
server = client.get_server_state("web", "srv1")
tables = client.show_tables(0)             # stick tables of every process
table = client.show_table("web", 1)        # one StickTable, or None
entries = client.get_table_entries("web", 1, ["gpc0>0"], "")
```

- `get_stats` and `get_info` never raise for a socket that fails; the failure
  is stored in the `error` field of that socket's result.
- In a `NativeStat`, numeric fields of `stats` are ints, other fields strings,
  and empty fields are left out.
- `get_servers_state` and `get_server_state` raise `RuntimeAPIError` when the
  sockets disagree.
- `get_table_entries` uses only the first filter given.

## Changing servers

```python
client.set_server_state("web", "srv1", "drain")  # ready, drain or maint
client.set_server_weight("web", "srv1", "50%")   # 0-256, or 0%-100%
client.set_server_health("web", "srv1", "up")    # up, stopping or down
client.set_server_addr("web", "srv1", "10.0.0.5", 8080)  # port <= 0 leaves it out
client.set_server_check_port("web", "srv1", 9000)        # 1-65535
client.set_server_agent_addr("web", "srv1", "10.0.0.6")
client.set_server_agent_send("web", "srv1", "hello")
client.enable_agent_check("web", "srv1")
client.disable_agent_check("web", "srv1")
client.disable_server("web", "srv1")
client.enable_server("web", "srv1")
client.set_frontend_maxconn("http-in", 2000)
```

A value that fails validation raises `ValueError("bad request")`. An error
reported by HAProxy, or a socket that cannot be reached, raises
`haproxy_native.single.RuntimeAPIError`. When a command fails on one socket
of a `Client`, the message starts with that socket's path.

To send any other command and get the raw reply from every socket:

```python
replies = client.execute_raw("show pools")
```

## Parsing without a socket

The reply parsers work on plain strings:

- `haproxy_native.stats.parse_stats` for `show stat`
- `haproxy_native.info.parse_info` for `show info typed`
- `haproxy_native.servers.parse_runtime_servers`, `parse_runtime_server` and
  `find_runtime_server` for `show servers state` (format version 1 only;
  others raise `ValueError`)
- `haproxy_native.stick_tables.parse_stick_tables`, `parse_stick_table`,
  `parse_stick_table_entries` and `parse_stick_table_entry` for `show table`

`haproxy_native.validation` has the checks used before sending commands:
`server_state_valid`, `server_health_valid` and `server_weight_valid`.

## Helpers

`haproxy_native.misc` has general helpers: `camel_case`, `snake_case`,
`dash_case`, `parse_timeout` (to milliseconds), `parse_size` (to bytes),
`string_in_slice`, `obj_in_array`, `get_obj_by_field` and `is_zero_value`.

## What this package does not do

It only talks to the runtime API. It does not read, edit or validate HAProxy
configuration files, and has no transactions or versioned configuration
changes. It has no command-line tool.