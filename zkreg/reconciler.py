from __future__ import annotations

import logging
import queue
import time
from threading import Event, Thread

from .cache import ServiceCache
from .errors import InvalidPathError
from .events import EventType, WatchEvent
from .paths import PathDepth, parse_config_path
from .settings import settings

_STOP = object()


class Reconciler:
    """Applies watch notifications to the service cache, one at a time, in arrival order."""

    def __init__(
        self,
        cache: ServiceCache,
        events: queue.Queue,
        offset: int,
        logger: logging.Logger | None = None,
        tick_interval_s: float = settings.tick_interval_s,
    ):
        self.cache = cache
        self.events = events
        self.offset = offset
        self.logger = logger or logging.getLogger(__name__)
        self.tick_interval_s = max(0.01, float(tick_interval_s))
        self.ticks = 0
        self._stop = Event()
        self._thr: Thread | None = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._stop.clear()
        self._thr = Thread(target=self._loop, name="zkreg-reconciler", daemon=True)
        self._thr.start()

    def stop(self, timeout: float | None = None) -> None:
        """Signal the loop and wait for it to exit."""
        self._stop.set()
        thr = self._thr
        if thr is None:
            return
        if thr.is_alive():
            # Wake the loop if it is blocked on an empty queue.
            self.events.put(_STOP)
        thr.join(timeout)

    @property
    def running(self) -> bool:
        return self._thr is not None and self._thr.is_alive()

    def _loop(self) -> None:
        self.logger.debug("reconciler started (offset=%d)", self.offset)
        next_tick = time.monotonic() + self.tick_interval_s
        while not self._stop.is_set():
            now = time.monotonic()
            if now >= next_tick:
                self._tick()
                next_tick = now + self.tick_interval_s
                continue
            try:
                item = self.events.get(timeout=next_tick - now)
            except queue.Empty:
                continue
            if item is _STOP or self._stop.is_set():
                break
            try:
                self.handle(item)
            except Exception:
                self.logger.exception("failed to apply watch event %r", item)
        self.logger.debug("reconciler stopped")

    def _tick(self) -> None:
        # Periodic wake-up; no reconciliation work is attached to it yet.
        self.ticks += 1

    def handle(self, event: WatchEvent) -> None:
        try:
            parsed = parse_config_path(event.path, self.offset)
        except InvalidPathError as e:
            self.logger.warning("error parsing the event from zookeeper: %s (%s)", e, event.error)
            return
        if event.error is not None:
            self.logger.warning(
                "watch error from zookeeper for %s/%s: %s", parsed.service, parsed.version, event.error
            )
            return

        depth = parsed.depth
        # Events on the root itself carry no registration.
        if depth is PathDepth.ROOT:
            return

        name, version, endpoint = parsed
        if event.type is EventType.CREATE:
            # Only endpoint nodes materialize entries; bare service/version nodes are parents.
            if depth is PathDepth.ENDPOINT:
                self.cache.add(name, version, endpoint)
        elif event.type is EventType.DELETE:
            if depth is PathDepth.SERVICE:
                self.cache.delete_service(name)
            elif depth is PathDepth.VERSION:
                self.cache.delete_version(name, version)
            else:
                self.cache.delete_endpoint(name, version, endpoint)
        elif event.type is EventType.UPDATE:
            # Node payloads are not interpreted.
            pass
