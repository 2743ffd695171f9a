"""zkreg: local replica of a ZooKeeper service-registration tree.

Registrations are laid out as ``<root>/<service>/<version>/<endpoint>``.
A background reconciler turns subtree watch notifications into updates of
an in-memory table, and callers resolve endpoints with ``Registry.lookup``
without touching the coordination store.
"""
from __future__ import annotations

from .cache import ServiceCache
from .errors import (
    InvalidPathError,
    NilConnectionError,
    RegistryError,
    ServiceNotFound,
    TreeError,
    WatchStartError,
)
from .events import EventType, WatchEvent
from .paths import parse_config_path, path_offset, sanitize_path
from .registry import Registry

__all__ = [
    "EventType",
    "InvalidPathError",
    "NilConnectionError",
    "Registry",
    "RegistryError",
    "ServiceCache",
    "ServiceNotFound",
    "TreeError",
    "WatchEvent",
    "WatchStartError",
    "parse_config_path",
    "path_offset",
    "sanitize_path",
]
