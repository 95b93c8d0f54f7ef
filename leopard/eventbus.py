"""A topic-based publish/subscribe bus with nested named routes."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


@dataclass(eq=False)
class _Handler:
    callback: Callable[..., Any]
    is_async: bool = False
    transactional: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock)


class Bus:
    """Delivers published arguments to the callbacks subscribed to a topic."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[_Handler]] = {}
        self._routes: dict[str, Bus] = {}
        self._lock = threading.Lock()
        self._idle = threading.Condition()
        self._active = 0

    def publish(self, topic: str, *args: Any) -> None:
        """Call every callback subscribed to *topic* with *args*."""
        with self._lock:
            handlers = list(self._handlers.get(topic, ()))
        for handler in handlers:
            if not handler.is_async:
                handler.callback(*args)
                continue
            if handler.transactional:
                handler.lock.acquire()
            with self._idle:
                self._active += 1
            threading.Thread(
                target=self._run_async, args=(handler, args), daemon=True
            ).start()

    def _run_async(self, handler: _Handler, args: tuple[Any, ...]) -> None:
        try:
            handler.callback(*args)
        finally:
            if handler.transactional:
                handler.lock.release()
            with self._idle:
                self._active -= 1
                self._idle.notify_all()

    def subscribe(self, topic: str, *callbacks: Callable[..., Any]) -> None:
        """Run each callback synchronously whenever *topic* is published."""
        _require_callbacks(callbacks)
        for callback in callbacks:
            self._add(topic, _Handler(callback))

    def subscribe_async(
        self, topic: str, transactional: bool, *callbacks: Callable[..., Any]
    ) -> None:
        """Run each callback in its own thread whenever *topic* is published.

        With *transactional* set, calls of one callback run one after another;
        otherwise they may overlap.
        """
        _require_callbacks(callbacks)
        for callback in callbacks:
            self._add(topic, _Handler(callback, is_async=True, transactional=transactional))

    def unsubscribe(self, topic: str, *callbacks: Callable[..., Any]) -> None:
        """Remove callbacks from *topic*, last given first.

        Raises ``KeyError`` if the topic has no subscribers.
        """
        _require_callbacks(callbacks)
        for callback in reversed(callbacks):
            with self._lock:
                handlers = self._handlers.get(topic)
                if not handlers:
                    raise KeyError(f"topic {topic} doesn't exist")
                for index, handler in enumerate(handlers):
                    if handler.callback == callback:
                        del handlers[index]
                        break

    def wait_async(self) -> None:
        """Block until every asynchronous callback started so far has finished."""
        with self._idle:
            self._idle.wait_for(lambda: self._active == 0)

    def _add(self, topic: str, handler: _Handler) -> None:
        if not callable(handler.callback):
            raise TypeError(f"{handler.callback!r} is not callable")
        with self._lock:
            self._handlers.setdefault(topic, []).append(handler)

    def _route(self, name: str) -> Bus:
        with self._lock:
            bus = self._routes.get(name)
            if bus is None:
                bus = Bus()
                self._routes[name] = bus
            return bus


def _require_callbacks(callbacks: tuple[Callable[..., Any], ...]) -> None:
    if not callbacks:
        raise ValueError("fn length must be greater than 0")


_root = Bus()


def get(*route: str) -> Bus:
    """Return the shared root bus, or the bus reached by following *route* from it."""
    bus = _root
    for name in route:
        bus = bus._route(name)
    return bus