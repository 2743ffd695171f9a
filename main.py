"""Registry service entry point.

Run with ``uvicorn main:app``. Connection and root path come from the
``ZKREG_*`` environment variables (see ``zkreg/settings.py``).
"""
from __future__ import annotations

import logging

from kazoo.client import KazooClient

from zkreg.api import create_app
from zkreg.logging_config import setup_logging
from zkreg.registry import Registry
from zkreg.settings import settings

setup_logging(settings.log_level, settings.log_file)
logger = logging.getLogger("zkreg.main")

app = create_app()


@app.on_event("startup")
def startup() -> None:
    client = KazooClient(hosts=settings.zk_hosts)
    client.start(timeout=settings.connect_timeout_s)
    app.state.zk = client
    try:
        app.state.registry = Registry(client, settings.root_path)
    except Exception:
        client.stop()
        client.close()
        raise
    logger.info("watching %s on %s", settings.root_path, settings.zk_hosts)


@app.on_event("shutdown")
def shutdown() -> None:
    registry = getattr(app.state, "registry", None)
    if registry is not None:
        registry.close()
    client = getattr(app.state, "zk", None)
    if client is not None:
        client.stop()
        client.close()
