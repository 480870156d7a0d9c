from __future__ import annotations

from typing import Any, Dict, Protocol

from log_ingest.models.records import Severity


class ObjectSource(Protocol):
    async def fetch(self, bucket: str, key: str) -> bytes:
        ...


class Decompressor(Protocol):
    def decompress(self, key: str, data: bytes) -> bytes:
        ...


class IndexSink(Protocol):
    async def upsert(self, index_name: str, document: Dict[str, Any]) -> None:
        ...


class AlertSink(Protocol):
    async def publish(self, message: str, severity: Severity) -> None:
        ...


class IndexSchemaProvider(Protocol):
    async def ensure_indices(self) -> list[str]:
        ...


class ObjectNotFoundError(LookupError):
    """The requested object does not exist in the bucket."""
