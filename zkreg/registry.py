from __future__ import annotations

import logging
from threading import Lock
from typing import Callable

from .cache import ServiceCache
from .errors import NilConnectionError, RegistryError, ServiceNotFound, TreeError, WatchStartError
from .paths import create_tree, path_offset
from .reconciler import Reconciler
from .settings import settings
from .watcher import TreeWatcher

__all__ = [
    "Registry",
    "RegistryError",
    "NilConnectionError",
    "ServiceNotFound",
    "TreeError",
    "WatchStartError",
]

_log = logging.getLogger(__name__)


class Registry:
    """Local replica of the service registrations found under ``root``.

    Construction makes sure ``root`` exists, subscribes to it and starts the
    background reconciler. ``lookup`` only ever reads the local cache, so it
    keeps answering while the coordination store is unreachable.
    """

    def __init__(
        self,
        conn,
        root: str,
        logger: logging.Logger | None = None,
        tick_interval_s: float | None = None,
        watch_depth: int | None = None,
        watcher_factory: Callable[..., TreeWatcher] = TreeWatcher,
    ):
        if conn is None or not getattr(conn, "connected", True):
            raise NilConnectionError()

        self.conn = conn
        self.root = root
        self.logger = logger or _log
        self.offset = path_offset(root)
        self.cache = ServiceCache()
        self._close_lock = Lock()
        self._closed = False

        create_tree(conn, root)

        depth = settings.watch_depth if watch_depth is None else watch_depth
        self.watcher = watcher_factory(conn, root, depth=depth)
        self.reconciler = Reconciler(
            self.cache,
            self.watcher.events,
            self.offset,
            logger=self.logger,
            tick_interval_s=settings.tick_interval_s if tick_interval_s is None else tick_interval_s,
        )
        self.reconciler.start()
        try:
            self.watcher.start()
        except Exception:
            try:
                self.close()
            except Exception:
                self.logger.debug("cleanup after failed watch start raised", exc_info=True)
            raise

    def __enter__(self) -> "Registry":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __str__(self) -> str:
        return self.describe()

    def set_logger(self, logger: logging.Logger) -> "Registry":
        self.logger = logger
        self.reconciler.logger = logger
        return self

    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        try:
            self.watcher.close()
        finally:
            self.reconciler.stop()

    @property
    def closed(self) -> bool:
        return self._closed

    def describe(self) -> str:
        """JSON rendering of the whole cache. Takes the cache lock; keep it off hot paths."""
        return self.cache.to_json()

    def lookup(self, name: str, version: str) -> tuple[str, ...]:
        return self.cache.lookup(name, version)

    def report_failure(self, name: str, version: str, endpoint: str, err: BaseException | str) -> None:
        # Advisory only: the endpoint stays registered.
        self.logger.error("Error accessing %s/%s (%s): %s", name, version, endpoint, err)

    def add(self, name: str, version: str, endpoint: str) -> None:
        self.cache.add(name, version, endpoint)

    def delete_endpoint(self, name: str, version: str, endpoint: str) -> None:
        self.cache.delete_endpoint(name, version, endpoint)

    def delete_version(self, name: str, version: str) -> None:
        self.cache.delete_version(name, version)

    def delete_service(self, name: str) -> None:
        self.cache.delete_service(name)
