from __future__ import annotations

import json
from threading import Lock

from .errors import ServiceNotFound


class ServiceCache:
    """In-memory service -> version -> endpoints table."""

    def __init__(self) -> None:
        self.lock = Lock()
        self.services: dict[str, dict[str, list[str]]] = {}

    def lookup(self, name: str, version: str) -> tuple[str, ...]:
        """Return the endpoints registered for ``name``/``version``.

        Raises ``ServiceNotFound`` when either the service or the version is unknown.
        """
        with self.lock:
            endpoints = self.services.get(name, {}).get(version)
            if endpoints is None:
                raise ServiceNotFound()
            return tuple(endpoints)

    def add(self, name: str, version: str, endpoint: str) -> None:
        # Duplicates are kept on purpose; every registration is appended.
        with self.lock:
            self.services.setdefault(name, {}).setdefault(version, []).append(endpoint)

    def delete_endpoint(self, name: str, version: str, endpoint: str) -> None:
        with self.lock:
            endpoints = self.services.get(name, {}).get(version)
            if endpoints is None:
                return
            endpoints[:] = [e for e in endpoints if e != endpoint]

    def delete_version(self, name: str, version: str) -> None:
        with self.lock:
            service = self.services.get(name)
            if service is not None:
                service.pop(version, None)

    def delete_service(self, name: str) -> None:
        with self.lock:
            self.services.pop(name, None)

    def snapshot(self) -> dict[str, dict[str, list[str]]]:
        with self.lock:
            return {
                name: {version: list(endpoints) for version, endpoints in versions.items()}
                for name, versions in self.services.items()
            }

    def to_json(self) -> str:
        return json.dumps(self.snapshot(), separators=(",", ":"), sort_keys=True)
