from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EventType(Enum):
    CREATE = "create"
    DELETE = "delete"
    UPDATE = "update"


@dataclass(frozen=True)
class WatchEvent:
    path: str
    type: EventType
    error: BaseException | None = None
