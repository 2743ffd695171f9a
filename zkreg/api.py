from __future__ import annotations

import json

from fastapi import Depends, FastAPI, HTTPException, Request

from .api_models import EndpointRequest, FailureReport, LookupResponse
from .errors import ServiceNotFound
from .registry import Registry


def get_registry(request: Request) -> Registry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None or registry.closed:
        raise HTTPException(status_code=503, detail="registry not running")
    return registry


def create_app(registry: Registry | None = None) -> FastAPI:
    """HTTP diagnostics surface over a registry.

    The registry may be attached later through ``app.state.registry``.
    """
    app = FastAPI(title="zkreg service registry")
    app.state.registry = registry

    @app.get("/health")
    def health(reg: Registry = Depends(get_registry)) -> dict:
        return {"status": "healthy", "root": reg.root}

    @app.get("/registry")
    def describe(reg: Registry = Depends(get_registry)) -> dict:
        return json.loads(reg.describe())

    @app.get("/services/{name}/{version}", response_model=LookupResponse)
    def lookup(name: str, version: str, reg: Registry = Depends(get_registry)) -> LookupResponse:
        try:
            endpoints = reg.lookup(name, version)
        except ServiceNotFound as e:
            raise HTTPException(status_code=404, detail=str(e))
        return LookupResponse(service=name, version=version, endpoints=list(endpoints))

    @app.post("/services/{name}/{version}/endpoints")
    def add_endpoint(name: str, version: str, req: EndpointRequest, reg: Registry = Depends(get_registry)) -> dict:
        reg.add(name, version, req.endpoint)
        return {"ok": True}

    @app.delete("/services/{name}/{version}/endpoints/{endpoint}")
    def delete_endpoint(name: str, version: str, endpoint: str, reg: Registry = Depends(get_registry)) -> dict:
        reg.delete_endpoint(name, version, endpoint)
        return {"ok": True}

    @app.delete("/services/{name}/{version}")
    def delete_version(name: str, version: str, reg: Registry = Depends(get_registry)) -> dict:
        reg.delete_version(name, version)
        return {"ok": True}

    @app.delete("/services/{name}")
    def delete_service(name: str, reg: Registry = Depends(get_registry)) -> dict:
        reg.delete_service(name)
        return {"ok": True}

    @app.post("/failures")
    def report_failure(report: FailureReport, reg: Registry = Depends(get_registry)) -> dict:
        reg.report_failure(report.service, report.version, report.endpoint, report.error)
        return {"ok": True}

    return app
