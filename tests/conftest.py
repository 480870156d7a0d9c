"""
Pytest configuration and shared fixtures for log ingest tests
"""

import asyncio
import gzip
from typing import Any, Dict, List, Tuple

import pytest

from log_ingest.collaborators.base import ObjectNotFoundError
from log_ingest.core.config import Settings
from log_ingest.handler import Collaborators
from log_ingest.collaborators.sources import GzipDecompressor
from log_ingest.models.records import Severity


ERROR_LOG = (
    "[2025-02-09T06:13:54.773313+00:00] enforcing rate limit [wpe_rate_limits_login_failed_5796938_user_jpollock911gmail-com]\n"
    "[2025-02-09T06:14:09.326787+00:00] message repeated 4 times: [ enforcing rate limit [wpe_rate_limits_login_failed_5796938_user_jpollock911gmail-com]]\n"
)

ACCESS_LOG = (
    "06/Feb/2025:00:39:17 +0000|v1|91.242.95.38|jeremypollock.me|200|56701|127.0.0.1:9002|0.001|0.001|GET / HTTP/1.0|0|0|90d7150f19e93b5a-IAD\n"
    "06/Feb/2025:00:39:18 +0000|v1|176.103.242.216|jeremypollock.me|301|0|127.0.0.1:9002|0.001|0.002|HEAD / HTTP/1.0|0|0|90d715122f484295-EWR\n"
)

APACHE_LINE = '192.168.1.1 - - [10/Feb/2025:00:00:00 +0000] "GET /test HTTP/1.1" 200 1234 "-" "Mozilla/5.0"'


class FakeIndexSink:
    """Records upserts; raises for documents whose text contains a poison marker."""

    def __init__(self, poison: str | None = None, delay: float = 0.0):
        self.poison = poison
        self.delay = delay
        self.documents: List[Tuple[str, Dict[str, Any]]] = []

    async def upsert(self, index_name: str, document: Dict[str, Any]) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.poison and any(self.poison in str(v) for v in document.values()):
            raise ConnectionError("index unavailable")
        self.documents.append((index_name, document))


class FakeAlertSink:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.alerts: List[Tuple[str, Severity]] = []

    async def publish(self, message: str, severity: Severity) -> None:
        if self.fail:
            raise ConnectionError("alert channel down")
        self.alerts.append((message, severity))


class FakeObjectSource:
    def __init__(self, objects: Dict[Tuple[str, str], bytes]):
        self.objects = objects
        self.requested: List[Tuple[str, str]] = []

    async def fetch(self, bucket: str, key: str) -> bytes:
        self.requested.append((bucket, key))
        if (bucket, key) not in self.objects:
            raise ObjectNotFoundError(f"object not found: {bucket}/{key}")
        return self.objects[(bucket, key)]


def make_event(key: str, bucket: str = "test-bucket") -> Dict[str, Any]:
    return {"Records": [{"s3": {"bucket": {"name": bucket}, "object": {"key": key}}}]}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ERROR_PATTERNS=["error", "critical", "failed"],
        ALERT_SINK="log",
        INDEX_TIMEOUT_SEC=1.0,
    )


@pytest.fixture
def index_sink() -> FakeIndexSink:
    return FakeIndexSink()


@pytest.fixture
def alert_sink() -> FakeAlertSink:
    return FakeAlertSink()


@pytest.fixture
def objects() -> Dict[Tuple[str, str], bytes]:
    return {
        ("test-bucket", "wpe_logs/error/error.log"): ERROR_LOG.encode(),
        ("test-bucket", "wpe_logs/access/access.log"): ACCESS_LOG.encode(),
        ("test-bucket", "wpe_logs/access/access.log.gz"): gzip.compress(ACCESS_LOG.encode()),
        ("test-bucket", "wpe_logs/access/apachestyle.log"): (APACHE_LINE + "\n").encode(),
        ("test-bucket", "wpe_logs/access/empty.log"): b"",
    }


@pytest.fixture
def collaborators(objects, index_sink, alert_sink) -> Collaborators:
    return Collaborators(
        source=FakeObjectSource(objects),
        decompressor=GzipDecompressor(),
        index_sink=index_sink,
        alert_sink=alert_sink,
    )
