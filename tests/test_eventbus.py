import threading
import time

import pytest

from leopard import eventbus


def _record_slow(received, lock, value):
    time.sleep(0.01)
    with lock:
        received.append(value)


def _record_span(events, value):
    events.append(f"start {value}")
    time.sleep(0.02)
    events.append(f"end {value}")


def _meet(barrier, results):
    try:
        barrier.wait()
        results.append(True)
    except threading.BrokenBarrierError:
        results.append(False)


def test_get_without_route_returns_singleton():
    root = eventbus.get()
    assert eventbus.get() is root
    received = []
    root.subscribe("singleton-topic", received.append)
    eventbus.get().publish("singleton-topic", "hello")
    assert received == ["hello"]


def test_get_route_is_stable_and_distinct():
    nested = eventbus.get("routes-a", "routes-b")
    assert eventbus.get("routes-a", "routes-b") is nested
    assert eventbus.get("routes-a") is not nested
    assert eventbus.get("routes-a") is not eventbus.get()


def test_subscribe_and_publish_passes_arguments():
    bus = eventbus.Bus()
    received = []
    bus.subscribe("topic", lambda a, b: received.append((a, b)))
    bus.publish("topic", 1, "two")
    assert received == [(1, "two")]


def test_subscribe_many_callbacks_in_order():
    bus = eventbus.Bus()
    received = []
    bus.subscribe("t", lambda: received.append("first"), lambda: received.append("second"))
    bus.publish("t")
    assert received == ["first", "second"]


def test_publish_unknown_topic_calls_nothing():
    bus = eventbus.Bus()
    received = []
    bus.subscribe("known", received.append)
    bus.publish("unknown", 1)
    assert received == []


def test_subscribe_requires_callbacks():
    with pytest.raises(ValueError):
        eventbus.Bus().subscribe("t")
    with pytest.raises(ValueError):
        eventbus.Bus().subscribe_async("t", True)


def test_subscribe_rejects_non_callable():
    with pytest.raises(TypeError):
        eventbus.Bus().subscribe("t", 42)


def test_unsubscribe_stops_delivery():
    bus = eventbus.Bus()
    received = []
    drop = lambda value: received.append(("dropped", value))  # noqa: E731
    bus.subscribe("t", received.append, drop)
    bus.unsubscribe("t", drop)
    bus.publish("t", 5)
    assert received == [5]


def test_unsubscribe_unknown_topic_raises():
    with pytest.raises(KeyError):
        eventbus.Bus().unsubscribe("missing", print)


def test_unsubscribe_emptied_topic_raises():
    bus = eventbus.Bus()
    bus.subscribe("t", print)
    bus.unsubscribe("t", print)
    with pytest.raises(KeyError):
        bus.unsubscribe("t", print)


def test_async_callbacks_finish_before_wait_returns():
    bus = eventbus.Bus()
    received = []
    lock = threading.Lock()
    bus.subscribe_async("t", False, lambda value: _record_slow(received, lock, value))
    for value in range(5):
        bus.publish("t", value)
    bus.wait_async()
    assert sorted(received) == [0, 1, 2, 3, 4]


def test_transactional_callbacks_run_serially():
    bus = eventbus.Bus()
    events = []
    bus.subscribe_async("t", True, lambda value: _record_span(events, value))
    bus.publish("t", 1)
    bus.publish("t", 2)
    bus.wait_async()
    assert events == ["start 1", "end 1", "start 2", "end 2"]


def test_non_transactional_callbacks_overlap():
    bus = eventbus.Bus()
    barrier = threading.Barrier(2, timeout=5)
    results = []
    bus.subscribe_async("t", False, lambda: _meet(barrier, results))
    bus.publish("t")
    bus.publish("t")
    bus.wait_async()
    assert results == [True, True]