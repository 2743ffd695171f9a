"""Coordination-store path handling.

Registrations live under a watched root as ``<root>/<service>/<version>/<endpoint>``.
``parse_config_path`` maps a node path back onto that hierarchy given the
segment depth of the root (the *offset*).
"""
from __future__ import annotations

import posixpath
from enum import Enum
from typing import NamedTuple

from kazoo.exceptions import KazooException, NodeExistsError, NoNodeError
from kazoo.handlers.threading import KazooTimeoutError

from .errors import InvalidPathError, TreeError


class PathDepth(Enum):
    ROOT = 0
    SERVICE = 1
    VERSION = 2
    ENDPOINT = 3


class ParsedPath(NamedTuple):
    service: str = ""
    version: str = ""
    endpoint: str = ""

    @property
    def depth(self) -> PathDepth:
        if not self.service:
            return PathDepth.ROOT
        if not self.version:
            return PathDepth.SERVICE
        if not self.endpoint:
            return PathDepth.VERSION
        return PathDepth.ENDPOINT


def sanitize_path(path: str) -> str:
    """Trim one leading and one trailing ``/``."""
    if path.startswith("/"):
        path = path[1:]
    if path.endswith("/"):
        path = path[:-1]
    return path


def path_offset(root: str) -> int:
    """Number of segments in the root path; ``/`` and ``""`` have none."""
    root = sanitize_path(root)
    if not root:
        return 0
    return len(root.split("/"))


def parse_config_path(path: str, offset: int) -> ParsedPath:
    """Extract service name, version and endpoint from a node path.

    ``offset`` is the number of leading segments to skip. A path naming the
    root itself yields an all-empty result; anything shorter than the root or
    deeper than an endpoint raises ``InvalidPathError``.
    """
    path = sanitize_path(path)
    parts = path.split("/")
    n = len(parts)

    if n < offset or n > offset + 3:
        raise InvalidPathError(path)
    if n == offset:
        return ParsedPath()
    if n == offset + 1:
        return ParsedPath(parts[offset])
    if n == offset + 2:
        return ParsedPath(parts[offset], parts[offset + 1])
    return ParsedPath(parts[offset], parts[offset + 1], parts[offset + 2])


def create_tree(conn, path: str) -> None:
    """Create every missing node along ``path``."""
    target = "/"
    for elem in path.split("/"):
        if not elem:
            continue
        target = posixpath.join(target, elem)
        try:
            if conn.exists(target):
                continue
        except (KazooException, KazooTimeoutError) as e:
            raise TreeError(f'error looking up "{target}": {e}') from e
        try:
            conn.create(target, b"")
        except NodeExistsError:
            # Created concurrently by someone else.
            continue
        except (KazooException, KazooTimeoutError) as e:
            raise TreeError(f'error creating "{target}": {e}') from e


def remove_tree(conn, path: str) -> None:
    """Recursively remove ``path`` and everything below it."""
    try:
        children = conn.get_children(path)
    except (KazooException, KazooTimeoutError) as e:
        raise TreeError(f'error listing "{path}": {e}') from e
    for child in children:
        remove_tree(conn, posixpath.join(path, child))
    try:
        conn.delete(path)
    except NoNodeError:
        return
    except (KazooException, KazooTimeoutError) as e:
        raise TreeError(f'error removing "{path}": {e}') from e
