from __future__ import annotations

from pydantic import BaseModel, Field


class EndpointRequest(BaseModel):
    endpoint: str = Field(..., min_length=1, description="Endpoint address, e.g. host:port")


class FailureReport(BaseModel):
    service: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    endpoint: str = Field(..., min_length=1)
    error: str = Field(..., description="What went wrong when calling the endpoint")


class LookupResponse(BaseModel):
    service: str
    version: str
    endpoints: list[str]
