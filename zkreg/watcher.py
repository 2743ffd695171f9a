"""Subtree watch feeding the reconciliation loop.

``TreeWatcher`` keeps a kazoo ``TreeCache`` on the registry root and turns
its node events into ``WatchEvent`` items on a queue. The cache's initial
population reports every pre-existing node as added, so the consumer sees
the current tree before any live change.
"""
from __future__ import annotations

import logging
import queue
from threading import Lock

from kazoo.exceptions import KazooException
from kazoo.handlers.threading import KazooTimeoutError
from kazoo.recipe.cache import TreeCache, TreeEvent

from .errors import WatchStartError
from .events import EventType, WatchEvent
from .paths import path_offset, sanitize_path

logger = logging.getLogger(__name__)

_NODE_EVENTS = {
    TreeEvent.NODE_ADDED: EventType.CREATE,
    TreeEvent.NODE_REMOVED: EventType.DELETE,
    TreeEvent.NODE_UPDATED: EventType.UPDATE,
}

_CONNECTION_ERRORS = {
    TreeEvent.CONNECTION_SUSPENDED: "connection suspended",
    TreeEvent.CONNECTION_LOST: "connection lost",
}


class TreeWatcher:
    """Forwards events for the root and up to ``depth + 1`` levels below it.

    ``TreeCache`` itself watches the entire subtree; the depth bound is applied
    when events are forwarded, not when the subscription is made.
    """

    def __init__(self, conn, root: str, depth: int = 2, maxsize: int = 0):
        self.conn = conn
        self.root = "/" + sanitize_path(root)
        self.depth = max(0, int(depth))
        self.events: queue.Queue[WatchEvent] = queue.Queue(maxsize=maxsize)
        self._offset = path_offset(root)
        self._cache: TreeCache | None = None
        self._lock = Lock()
        self._closed = False

    def start(self) -> None:
        with self._lock:
            if self._cache is not None:
                return
            cache = TreeCache(self.conn, self.root)
            cache.listen(self._on_event)
            cache.listen_fault(self._on_fault)
            try:
                cache.start()
            except (KazooException, KazooTimeoutError) as e:
                cache.close()
                raise WatchStartError(f'error watching "{self.root}": {e}') from e
            self._cache = cache

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._cache is not None:
                self._cache.close()

    def _within_depth(self, path: str) -> bool:
        relative = len(sanitize_path(path).split("/")) - self._offset
        # Children of the deepest watched level are still reported.
        return relative <= self.depth + 1

    def _on_event(self, event: TreeEvent) -> None:
        kind = _NODE_EVENTS.get(event.event_type)
        if kind is not None:
            path = event.event_data.path
            if self._within_depth(path):
                self.events.put(WatchEvent(path, kind))
            return

        reason = _CONNECTION_ERRORS.get(event.event_type)
        if reason is not None:
            self.events.put(WatchEvent(self.root, EventType.UPDATE, ConnectionError(reason)))

    def _on_fault(self, exc: Exception) -> None:
        logger.error("tree watch fault on %s: %s", self.root, exc)
        self.events.put(WatchEvent(self.root, EventType.UPDATE, exc))
