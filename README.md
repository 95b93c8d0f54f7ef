# leopard

Building blocks for Python services:

- `leopard.eventbus`: an in-process publish/subscribe bus with nested,
  named routes.
- `leopard.httpserver`: runs a WSGI application in a background thread on a
  fixed or random port, over HTTP or HTTPS.
- `leopard.portscan`: picks a random TCP port between 30000 and 59999,
  avoiding excluded port ranges.
- `leopard.command`: runs an external program and returns its output lines.
- `leopard.log` and `leopard.filehook`: a process-wide logger with coloured
  console output and a log file per day that drops files older than seven days.
- `leopard.mqtt`: an MQTT-over-TLS client that restores its subscriptions
  on every reconnect.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Event bus

```python
from leopard import eventbus

root = eventbus.get()                    # the shared root bus
orders = eventbus.get("shop", "orders")  # a nested route, created on first use

def on_created(order_id):
    print("created", order_id)

orders.subscribe("created", on_created)
orders.publish("created", 42)
orders.unsubscribe("created", on_created)
```

- `subscribe(topic, *callbacks)` runs callbacks in the publishing thread.
- `subscribe_async(topic, transactional, *callbacks)` runs each call in its
  own thread; with `transactional=True` the calls of one callback run one
  after another.
- `wait_async()` blocks until every asynchronous call started so far has
  finished.
- `subscribe`, `subscribe_async` and `unsubscribe` raise `ValueError` when no
  callback is given; subscribing something that is not callable raises
  `TypeError`; `unsubscribe` raises `KeyError` for a topic with no
  subscribers. Callbacks are removed last given first.

## HTTP server

```python
from leopard.httpserver import Server

def app(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [b"hello"]

server = Server(app, host="127.0.0.1", port="8080")
server.start()               # binds the address and serves in a thread
print(server.address, server.get_listen_port())
server.shutdown()
```

- A `host` that is not an IP address is ignored and the server listens on
  all interfaces; the default port is `"80"`.
- `start_with_random_port()` picks the port with `PortScan` first.
- When both `cert_path` and `key_path` are given, the socket is wrapped in TLS.
- Starting a server that is already running raises `RuntimeError`.
- `info(fmt, *args)` logs through the given `logger` (any object with
  `info`, `error` and `fatal` methods), or prints when there is none. The
  server logs `HTTP Serve On <address>` once it is serving.
- `is_port_used(port)` tells whether something answers on the port locally
  or the port cannot be bound.

## Port scanning

```python
from leopard.portscan import PortScan, ExcludePort

scanner = PortScan([ExcludePort(start_port=50000, end_port=50100)])
print(scanner.get_random_port())
```

`get_random_port()` returns a port string, or `""` if the excluded ranges
cannot be read. On Windows, `scan()` also adds the ranges reported by
`netsh interface ipv4 show excludedportrange protocol=tcp`;
`parse_excluded_ranges(lines)` turns such output into an `ExcludePortList`,
whose `is_excluded(port)` checks a decimal port string.

## Running commands

```python
from leopard.command import new_cmd, run_and_parse

lines = run_and_parse(new_cmd("git", "status", "--short"))
```

`run_and_parse` raises `OSError` if the program cannot be started and
`subprocess.CalledProcessError` if it exits with a non-zero status. On Windows
no console window is shown.

## Logging

```python
from leopard import log

log.init("myapp")
logger = log.get()
logger.info("service started")
```

`init(app_name)` creates the logger once and returns it; the name is upper-cased
and cut to three letters. Without a name it is taken from the caller's
directory. `get()` raises `RuntimeError` before `init`.

Settings come from the environment (see `read_config`, which returns a
`LogConfig`):

| Variable              | Meaning                                     |
|-----------------------|---------------------------------------------|
| `LOG_LEVEL`           | level name; `info` when missing or unknown  |
| `LOG_NEED_CALLER`     | add `file:line` to each line                |
| `LOG_DISABLE_CONSOLE` | no console output                           |
| `LOG_DISABLE_FILE`    | no log file                                 |

Booleans accept `1`, `t`, `true` and `0`, `f`, `false` (in the usual
capitalisations); anything else raises `ValueError`.

Console lines go to standard error, formatted by `ConsoleFormatter`. Files are
written by `filehook.FileHandler` to `../logs` next to the running program,
one per day, named `<APP>-YYYY-MM-DD.log`; whenever a new file is opened,
files in that folder whose name carries a date more than seven days old are
deleted.

## MQTT

```python
from leopard.mqtt import Client

password = "password"
client = Client("device-uid", password, "broker.example.com", "8883")
client.connect()
client.subscribe("sensors/#", lambda c, message: print(message.payload))
client.publish("status", False, "online")
client.disconnect()
```

The client connects over TLS without verifying the broker's certificate,
uses QoS 1 and retries failed connections every 15 seconds. Publishing while
disconnected is dropped. A missing uid, password, host or port raises
`UIDRequiredError`, `PasswordRequiredError`, `HostRequiredError` or
`PortRequiredError`, all subclasses of `MqttConfigError` (a `ValueError`).
`ClientLogger` forwards to a logger with `info`, `warn`, `error` and `fatal`
methods, or prints one line per message when there is none.

## What it does not do

The package is a library only: it installs no command-line program, and
starts nothing by itself.