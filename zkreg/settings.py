from __future__ import annotations

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Coordination store
    zk_hosts: str = os.getenv("ZKREG_HOSTS", "127.0.0.1:2181")
    root_path: str = os.getenv("ZKREG_ROOT", "/discovery")
    connect_timeout_s: float = _env_float("ZKREG_CONNECT_TIMEOUT_S", 10.0)

    # Reconciliation
    tick_interval_s: float = _env_float("ZKREG_TICK_INTERVAL_S", 10.0)
    watch_depth: int = _env_int("ZKREG_WATCH_DEPTH", 2)

    # Logging
    log_level: str = os.getenv("ZKREG_LOG_LEVEL", "INFO")
    log_file: str | None = os.getenv("ZKREG_LOG_FILE")

    # CLI
    api_url: str = os.getenv("ZKREG_API", "http://localhost:8000")


settings = Settings()
