"""A threaded WSGI server that starts in the background on a chosen or random port."""

from __future__ import annotations

import ipaddress
import logging
import socket
import ssl
import sys
import threading
from collections.abc import Callable
from socketserver import ThreadingMixIn
from typing import Any, Protocol
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer

from .portscan import PortScan

_DEFAULT_HOST = ""
_DEFAULT_PORT = "80"
_READ_TIMEOUT = 5.0
_SHUTDOWN_TIMEOUT = 3.0
_DIAL_TIMEOUT = 0.5

_log = logging.getLogger(__name__)


class Logger(Protocol):
    """What the server needs from a logger."""

    def info(self, fmt: str, *args: Any) -> None: ...

    def error(self, fmt: str, *args: Any) -> None: ...

    def fatal(self, fmt: str, *args: Any) -> None: ...


class _QuietRequestHandler(WSGIRequestHandler):
    timeout = _READ_TIMEOUT

    def log_message(self, format: str, *args: Any) -> None:
        # Request logs go to a debug-level logger instead of stderr.
        _log.debug("%s - %s", self.address_string(), format % args)


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True

    def handle_error(self, request: Any, client_address: Any) -> None:
        _log.debug("error while handling request from %s", client_address, exc_info=True)


class _ThreadingWSGIServer6(_ThreadingWSGIServer):
    address_family = socket.AF_INET6


def _is_ip(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def _join_host_port(host: str, port: str) -> str:
    return f"[{host}]:{port}" if ":" in host else f"{host}:{port}"


def is_port_used(port: str) -> bool:
    """Tell whether *port* is taken: something answers on it or it cannot be bound."""
    try:
        with socket.create_connection(("127.0.0.1", int(port)), timeout=_DIAL_TIMEOUT):
            return True
    except (OSError, OverflowError, ValueError):
        pass
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
            if sys.platform != "win32":
                probe.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            probe.bind(("", int(port)))
    except (OSError, OverflowError, ValueError):
        return True
    return False


class Server:
    """Serves a WSGI application over HTTP, or HTTPS when a certificate is given."""

    def __init__(
        self,
        app: Callable[..., Any],
        *,
        host: str = _DEFAULT_HOST,
        port: str = "",
        logger: Logger | None = None,
        key_path: str = "",
        cert_path: str = "",
    ) -> None:
        self.app = app
        self.host = host if _is_ip(host) else _DEFAULT_HOST
        self.port = port or _DEFAULT_PORT
        self.logger = logger
        self.key_path = key_path
        self.cert_path = cert_path
        self._httpd: _ThreadingWSGIServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> str:
        """The ``host:port`` address the server listens on."""
        return _join_host_port(self.host, self.port)

    def get_listen_port(self) -> str:
        """Return the port the server listens on."""
        return self.port

    def start(self) -> None:
        """Bind the configured address and begin serving in the background."""
        self._listen()

    def start_with_random_port(self) -> None:
        """Pick a random free port, bind it and begin serving in the background."""
        self.port = PortScan().get_random_port()
        self._listen()

    def shutdown(self) -> None:
        """Stop serving and release the listening socket."""
        if self._httpd is None:
            return
        self._httpd.shutdown()
        self._httpd.server_close()
        if self._thread is not None:
            self._thread.join(_SHUTDOWN_TIMEOUT)
        self._httpd = None
        self._thread = None

    def info(self, fmt: str, *args: Any) -> None:
        """Log through the configured logger, or print when there is none."""
        if self.logger is not None:
            self.logger.info(fmt.replace("\n", ""), *args)
        else:
            print(fmt % args, end="")

    def _listen(self) -> None:
        if self._httpd is not None:
            raise RuntimeError("server already started")
        server_class = _ThreadingWSGIServer6 if ":" in self.host else _ThreadingWSGIServer
        httpd = server_class((self.host, int(self.port or 0)), _QuietRequestHandler)
        try:
            httpd.set_app(self.app)
            if self.cert_path and self.key_path:
                context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
                context.load_cert_chain(self.cert_path, self.key_path)
                httpd.socket = context.wrap_socket(httpd.socket, server_side=True)
        except BaseException:
            httpd.server_close()
            raise
        self._httpd = httpd
        self._thread = threading.Thread(
            target=httpd.serve_forever, name="httpserver", daemon=True
        )
        self._thread.start()
        self.info("HTTP Serve On %s", self.address)