from __future__ import annotations


class RegistryError(Exception):
    """Base class for registry construction and bootstrap failures."""


class NilConnectionError(RegistryError):
    def __init__(self, message: str = "can't create registry with <nil> zk connection"):
        super().__init__(message)


class TreeError(RegistryError):
    pass


class WatchStartError(RegistryError):
    pass


class ServiceNotFound(LookupError):
    def __init__(self, message: str = "service not found"):
        super().__init__(message)


class InvalidPathError(ValueError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f'invalid path received: "{path}"')
