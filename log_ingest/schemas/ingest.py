from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, Field

from log_ingest.models.records import LogFamily


class ClassifyRequest(BaseModel):
    line: str = Field(..., max_length=65536)
    family: LogFamily


class ClassifyResponse(BaseModel):
    family: LogFamily
    document: Dict[str, Any]
    alert: bool
    severity: str | None = None
    alert_message: str | None = None


class DispatchResponse(BaseModel):
    path: str
    family: LogFamily
    index_name: str


class ProcessResponse(BaseModel):
    statusCode: int
    body: str
