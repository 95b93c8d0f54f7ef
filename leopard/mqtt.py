"""An MQTT-over-TLS client that resubscribes its topics whenever it reconnects."""

from __future__ import annotations

import ssl
import sys
import threading
from collections.abc import Callable
from typing import Any, Protocol

import paho.mqtt.client as paho

QOS = 1
_RETRY_INTERVAL = 15
_CONNECT_TIMEOUT = 10.0
_KEEPALIVE = 300


class MqttConfigError(ValueError):
    """A required client setting is missing."""


class UIDRequiredError(MqttConfigError):
    def __init__(self) -> None:
        super().__init__("uid is required")


class PasswordRequiredError(MqttConfigError):
    def __init__(self) -> None:
        super().__init__("password is required")


class HostRequiredError(MqttConfigError):
    def __init__(self) -> None:
        super().__init__("host is required")


class PortRequiredError(MqttConfigError):
    def __init__(self) -> None:
        super().__init__("port is required")


class _BaseLogger(Protocol):
    def info(self, fmt: str, *args: Any) -> None: ...

    def warn(self, fmt: str, *args: Any) -> None: ...

    def error(self, fmt: str, *args: Any) -> None: ...

    def fatal(self, fmt: str, *args: Any) -> None: ...


class ClientLogger:
    """Forwards to a base logger, or prints one line per message when there is none."""

    def __init__(self, base: _BaseLogger | None = None) -> None:
        self.base = base

    @staticmethod
    def _print(fmt: str, args: tuple[Any, ...]) -> None:
        if "\n" not in fmt:
            fmt += "\n"
        print(fmt % args if args else fmt, end="")

    def info(self, fmt: str, *args: Any) -> None:
        if self.base is not None:
            self.base.info(fmt, *args)
        else:
            self._print(fmt, args)

    def warn(self, fmt: str, *args: Any) -> None:
        if self.base is not None:
            self.base.warn(fmt, *args)
        else:
            self._print(fmt, args)

    def error(self, fmt: str, *args: Any) -> None:
        if self.base is not None:
            self.base.error(fmt, *args)
        else:
            self._print(fmt, args)

    def fatal(self, fmt: str, *args: Any) -> None:
        """Log and, without a base logger, exit the process."""
        if self.base is not None:
            self.base.fatal(fmt, *args)
        else:
            self._print(fmt, args)
            sys.exit(-1)


MessageHandler = Callable[["Client", Any], Any]


class Client:
    """MQTT client keeping a topic-to-handler table across reconnections."""

    def __init__(self, uid: str, password: str, host: str, port: str,
                 logger: _BaseLogger | None = None) -> None:
        if not uid:
            raise UIDRequiredError()
        if not password:
            raise PasswordRequiredError()
        if not host:
            raise HostRequiredError()
        if not port:
            raise PortRequiredError()
        self.uid = uid
        self.password = password
        self.host = host
        self.port = str(port)
        self._logger = logger if isinstance(logger, ClientLogger) else ClientLogger(logger)
        self._connected = False
        self._lock = threading.RLock()
        self._handlers: dict[str, MessageHandler] = {}
        self._mq = self._build()

    def _build(self) -> paho.Client:
        mq = paho.Client(
            callback_api_version=paho.CallbackAPIVersion.VERSION2,
            client_id=self.uid,
            clean_session=True,
        )
        mq.username_pw_set(self.uid, self.password)
        mq.reconnect_delay_set(min_delay=_RETRY_INTERVAL, max_delay=_RETRY_INTERVAL)
        mq.connect_timeout = _CONNECT_TIMEOUT
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        mq.tls_set_context(context)
        mq.tls_insecure_set(True)
        mq.on_connect = self._on_connect
        mq.on_disconnect = self._on_disconnect
        return mq

    def connect(self) -> None:
        """Start connecting in the background; failed attempts are retried."""
        self._mq.connect_async(self.host, int(self.port), keepalive=_KEEPALIVE)
        self._mq.loop_start()

    def connected(self) -> bool:
        """Tell whether the broker connection is up."""
        with self._lock:
            return self._connected

    def disconnect(self) -> None:
        """Close the connection and stop the network thread."""
        self._mq.disconnect()
        self._mq.loop_stop()

    def subscribe(self, topic: str, callback: MessageHandler) -> None:
        """Route messages on *topic* to ``callback(client, message)``."""
        with self._lock:
            self._handlers[topic] = callback
        self._mq.message_callback_add(topic, self._dispatcher(callback))
        if self.connected():
            self._mq.subscribe(topic, QOS)

    def unsubscribe(self, topic: str) -> None:
        """Stop routing messages on *topic*."""
        with self._lock:
            self._handlers.pop(topic, None)
        self._mq.message_callback_remove(topic)
        if self.connected():
            self._mq.unsubscribe(topic)

    def publish(self, topic: str, retained: bool, payload: Any) -> None:
        """Send *payload* on *topic*; dropped while disconnected."""
        if self.connected():
            self._mq.publish(topic, payload, qos=QOS, retain=retained)

    def _dispatcher(self, callback: MessageHandler) -> Callable[..., Any]:
        def dispatch(_mq: Any, _userdata: Any, message: Any) -> Any:
            return callback(self, message)

        return dispatch

    def _on_connect(self, _mq: Any, _userdata: Any, _flags: Any,
                    reason_code: Any, _properties: Any = None) -> None:
        if reason_code.is_failure:
            return
        self._logger.info("MQTT broker connected to %s:%s", self.host, self.port)
        with self._lock:
            handlers = dict(self._handlers)
        for topic, callback in handlers.items():
            self._mq.message_callback_add(topic, self._dispatcher(callback))
            self._mq.subscribe(topic, QOS)
        with self._lock:
            self._connected = True

    def _on_disconnect(self, _mq: Any, _userdata: Any, _flags: Any,
                       reason_code: Any, _properties: Any = None) -> None:
        with self._lock:
            self._connected = False
        if reason_code.is_failure:
            self._logger.error("MQTT broker connection lost: %s", reason_code)