from __future__ import annotations

import gzip
import logging
from pathlib import Path
from urllib.parse import quote

import aiofiles
import httpx

from log_ingest.collaborators.base import ObjectNotFoundError


LOG = logging.getLogger(__name__)


class LocalObjectSource:
    """Buckets are directories below `root`; keys are paths relative to the bucket."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _resolve(self, bucket: str, key: str) -> Path:
        bucket_dir = (self.root / bucket).resolve()
        path = (bucket_dir / key).resolve()
        if bucket_dir not in path.parents:
            raise ObjectNotFoundError(f"key escapes bucket: {bucket}/{key}")
        return path

    async def fetch(self, bucket: str, key: str) -> bytes:
        path = self._resolve(bucket, key)
        if not path.is_file():
            raise ObjectNotFoundError(f"object not found: {bucket}/{key}")
        LOG.info("local source: reading %s", path)
        async with aiofiles.open(path, mode="rb") as f:
            return await f.read()


class HttpObjectSource:
    """Path-style object GET against an S3-compatible endpoint (`{endpoint}/{bucket}/{key}`)."""

    def __init__(self, endpoint: str, *, client: httpx.AsyncClient | None = None, timeout: float = 30.0):
        self.endpoint = endpoint.rstrip("/")
        self._client = client
        self.timeout = timeout

    async def fetch(self, bucket: str, key: str) -> bytes:
        url = f"{self.endpoint}/{quote(bucket)}/{quote(key)}"
        if self._client is not None:
            resp = await self._client.get(url)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(url)
        if resp.status_code == 404:
            raise ObjectNotFoundError(f"object not found: {bucket}/{key}")
        resp.raise_for_status()
        LOG.info("http source: fetched %s bytes=%d", url, len(resp.content))
        return resp.content


class GzipDecompressor:
    """Gunzip objects whose key ends with `.gz`; everything else passes through."""

    def decompress(self, key: str, data: bytes) -> bytes:
        if key.endswith(".gz"):
            return gzip.decompress(data)
        return data
