import posixpath
import queue
import time

import pytest
from kazoo.exceptions import NoNodeError, NodeExistsError, NotEmptyError

from zkreg.errors import WatchStartError
from zkreg.events import EventType, WatchEvent
from zkreg.paths import path_offset, sanitize_path
from zkreg.registry import Registry


class FakeZK:
    """In-memory stand-in for a connected KazooClient.

    Only the node primitives the registry uses are provided. Every mutation is
    forwarded to the attached watchers, the way a live subtree watch would see it.
    """

    def __init__(self):
        self.connected = True
        self.nodes = {"/": b""}
        self.watchers = []
        self.fail_exists = None
        self.fail_watch = False

    def _notify(self, path, kind):
        for w in list(self.watchers):
            w.notify(path, kind)

    def exists(self, path):
        if self.fail_exists is not None:
            raise self.fail_exists
        return path in self.nodes

    def create(self, path, value=b"", makepath=False):
        if path in self.nodes:
            raise NodeExistsError()
        parent = posixpath.dirname(path)
        if parent not in self.nodes:
            if not makepath:
                raise NoNodeError()
            self.create(parent, b"", makepath=True)
        self.nodes[path] = value
        self._notify(path, EventType.CREATE)
        return path

    def set(self, path, value):
        if path not in self.nodes:
            raise NoNodeError()
        self.nodes[path] = value
        self._notify(path, EventType.UPDATE)

    def get_children(self, path):
        if path not in self.nodes:
            raise NoNodeError()
        prefix = path.rstrip("/") + "/"
        return sorted(
            p[len(prefix):] for p in self.nodes if p != path and p.startswith(prefix) and "/" not in p[len(prefix):]
        )

    def delete(self, path, version=-1):
        if path not in self.nodes:
            raise NoNodeError()
        if self.get_children(path):
            raise NotEmptyError()
        del self.nodes[path]
        self._notify(path, EventType.DELETE)


class FakeWatcher:
    """Subtree watcher over FakeZK with the same surface as TreeWatcher."""

    def __init__(self, conn, root, depth=2, maxsize=0):
        self.conn = conn
        self.root = "/" + sanitize_path(root)
        self.depth = depth
        self.events = queue.Queue(maxsize=maxsize)
        self.closed = False
        self._offset = path_offset(root)

    def _watched(self, path):
        if path != self.root and not path.startswith(self.root.rstrip("/") + "/"):
            return False
        return len(sanitize_path(path).split("/")) - self._offset <= self.depth + 1

    def notify(self, path, kind):
        if not self.closed and self._watched(path):
            self.events.put(WatchEvent(path, kind))

    def start(self):
        if self.conn.fail_watch:
            raise WatchStartError(f'error watching "{self.root}": boom')
        self.conn.watchers.append(self)
        for path in sorted(self.conn.nodes):
            self.notify(path, EventType.CREATE)

    def close(self):
        self.closed = True
        if self in self.conn.watchers:
            self.conn.watchers.remove(self)


def wait_for(predicate, timeout=2.0, interval=0.005):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def lookup_or_none(registry, name, version):
    try:
        return list(registry.lookup(name, version))
    except LookupError:
        return None


@pytest.fixture
def zk():
    return FakeZK()


@pytest.fixture
def registry(zk):
    reg = Registry(zk, "/test/discovery", tick_interval_s=0.05, watcher_factory=FakeWatcher)
    yield reg
    reg.close()
