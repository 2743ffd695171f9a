import logging
import queue

import pytest

from conftest import wait_for
from zkreg.cache import ServiceCache
from zkreg.errors import ServiceNotFound
from zkreg.events import EventType, WatchEvent
from zkreg.reconciler import Reconciler

ROOT = "/test/discovery"


@pytest.fixture
def cache():
    return ServiceCache()


@pytest.fixture
def rec(cache):
    return Reconciler(cache, queue.Queue(), offset=2, tick_interval_s=0.02)


def ev(path, kind, error=None):
    return WatchEvent(ROOT + path, kind, error)


def test_create_endpoint_adds(rec, cache):
    rec.handle(ev("/name/version/addr", EventType.CREATE))
    assert cache.lookup("name", "version") == ("addr",)


@pytest.mark.parametrize("path", ["", "/name", "/name/version"])
def test_create_on_parent_nodes_is_ignored(rec, cache, path):
    rec.handle(ev(path, EventType.CREATE))
    assert cache.snapshot() == {}


def test_update_never_mutates(rec, cache):
    cache.add("name", "version", "addr")
    for path in ["/name", "/name/version", "/name/version/addr", "/name/version/other"]:
        rec.handle(ev(path, EventType.UPDATE))
    assert cache.snapshot() == {"name": {"version": ["addr"]}}


def test_delete_dispatches_by_depth(rec, cache):
    cache.add("name", "v1", "a")
    cache.add("name", "v1", "b")
    cache.add("name", "v2", "c")
    cache.add("other", "v1", "d")

    rec.handle(ev("/name/v1/a", EventType.DELETE))
    assert cache.lookup("name", "v1") == ("b",)

    rec.handle(ev("/name/v1", EventType.DELETE))
    with pytest.raises(ServiceNotFound):
        cache.lookup("name", "v1")
    assert cache.lookup("name", "v2") == ("c",)

    rec.handle(ev("/name", EventType.DELETE))
    assert cache.snapshot() == {"other": {"v1": ["d"]}}


def test_delete_of_root_is_discarded(rec, cache):
    cache.add("name", "version", "addr")
    rec.handle(ev("", EventType.DELETE))
    assert cache.lookup("name", "version") == ("addr",)


def test_invalid_path_is_logged_and_dropped(rec, cache, caplog):
    with caplog.at_level(logging.WARNING, logger="zkreg.reconciler"):
        rec.handle(ev("/name/version/addr/too/deep", EventType.CREATE))
    assert cache.snapshot() == {}
    assert 'error parsing the event from zookeeper: invalid path received: "test/discovery/name/version/addr/too/deep" (None)' in caplog.text


def test_event_error_is_logged_without_mutation(rec, cache, caplog):
    cache.add("name", "version", "addr")
    with caplog.at_level(logging.WARNING, logger="zkreg.reconciler"):
        rec.handle(ev("/name/version", EventType.DELETE, ConnectionError("connection lost")))
    assert cache.lookup("name", "version") == ("addr",)
    assert "watch error from zookeeper for name/version: connection lost" in caplog.text


def test_loop_applies_events_in_order(rec, cache):
    rec.start()
    try:
        for kind, path in [
            (EventType.CREATE, "/name/version/a"),
            (EventType.CREATE, "/name/version/b"),
            (EventType.DELETE, "/name/version/a"),
            (EventType.CREATE, "/name/version/a"),
        ]:
            rec.events.put(ev(path, kind))
        assert wait_for(lambda: rec.events.empty() and cache.snapshot() == {"name": {"version": ["b", "a"]}})
    finally:
        rec.stop()


def test_loop_survives_bad_events(rec, cache):
    rec.start()
    try:
        rec.events.put(ev("/a/b/c/d/e", EventType.CREATE))
        rec.events.put(ev("/name/version", EventType.CREATE, RuntimeError("boom")))
        rec.events.put(ev("/name/version/addr", EventType.CREATE))
        assert wait_for(lambda: cache.snapshot() == {"name": {"version": ["addr"]}})
        assert rec.running
    finally:
        rec.stop()


def test_timer_ticks_without_mutation(rec, cache):
    rec.start()
    try:
        assert wait_for(lambda: rec.ticks >= 3)
        assert cache.snapshot() == {}
    finally:
        rec.stop()


def test_stop_joins_the_thread(rec):
    rec.start()
    assert rec.running
    rec.stop(timeout=2)
    assert not rec.running


def test_stop_before_start_is_harmless(rec):
    rec.stop()
    assert not rec.running
