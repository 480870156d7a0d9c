from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

import httpx


LOG = logging.getLogger(__name__)


def _mapping(properties: Dict[str, Any]) -> Dict[str, Any]:
    return {"mappings": {"properties": {"timestamp": {"type": "date"}, "type": {"type": "keyword"}, **properties}}}


ERROR_MAPPING = _mapping({
    "message": {"type": "text", "fields": {"keyword": {"type": "keyword", "ignore_above": 1024}}},
    "repeat_count": {"type": "integer"},
})

ACCESS_MAPPING = _mapping({
    "version": {"type": "keyword"},
    "ip": {"type": "ip"},
    "domain": {"type": "keyword"},
    "status": {"type": "integer"},
    "bytes": {"type": "long"},
    "server": {"type": "keyword"},
    "response_time": {"type": "float"},
    "total_time": {"type": "float"},
    "request": {"type": "text"},
})

APACHE_ACCESS_MAPPING = _mapping({
    "ip": {"type": "ip"},
    "request": {"type": "text"},
    "status": {"type": "integer"},
    "bytes": {"type": "long"},
    "referer": {"type": "keyword"},
    "user_agent": {"type": "text"},
})


def index_mappings(settings) -> Dict[str, Dict[str, Any]]:
    return {
        settings.ERROR_INDEX: ERROR_MAPPING,
        settings.ACCESS_INDEX: ACCESS_MAPPING,
        settings.APACHE_ACCESS_INDEX: APACHE_ACCESS_MAPPING,
    }


def build_client(settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.OPENSEARCH_ENDPOINT.rstrip("/"),
        auth=settings.opensearch_auth,
        verify=settings.OPENSEARCH_VERIFY_SSL,
        timeout=settings.INDEX_TIMEOUT_SEC,
    )


class OpenSearchIndexSink:
    """Writes one JSON document per record through the OpenSearch REST API."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def upsert(self, index_name: str, document: Dict[str, Any]) -> None:
        resp = await self._client.post(f"/{index_name}/_doc", json=document)
        resp.raise_for_status()


class OpenSearchSchemaProvider:
    """Creates the log indices with their field mappings when they are missing."""

    def __init__(self, client: httpx.AsyncClient, mappings: Dict[str, Dict[str, Any]]):
        self._client = client
        self.mappings = mappings

    async def ensure_indices(self) -> List[str]:
        created: List[str] = []
        for index_name, mapping in self.mappings.items():
            exists = await self._client.head(f"/{index_name}")
            if exists.status_code == 200:
                LOG.info("index %s already exists", index_name)
                continue
            LOG.info("creating index %s", index_name)
            resp = await self._client.put(f"/{index_name}", json=mapping)
            resp.raise_for_status()
            created.append(index_name)
        return created


async def wait_for_opensearch(client: httpx.AsyncClient, *, attempts: int = 30, interval: float = 1.0) -> None:
    """Poll cluster health until it is reachable and not red; raise TimeoutError after `attempts`."""
    last_error = ""
    for attempt in range(1, attempts + 1):
        try:
            resp = await client.get("/_cluster/health")
            resp.raise_for_status()
            status = resp.json().get("status")
            if status != "red":
                LOG.info("opensearch ready status=%s", status)
                return
            last_error = "cluster health is red"
        except (httpx.HTTPError, ValueError) as exc:
            last_error = str(exc)
        LOG.info("opensearch not ready (attempt %d/%d): %s", attempt, attempts, last_error)
        if attempt < attempts:
            await asyncio.sleep(interval)
    raise TimeoutError(f"Timeout waiting for OpenSearch: {last_error}")
