"""Entry point invoked once per uploaded object.

The event carries the bucket and key of the object (storage notification
shape). The object is fetched, decompressed when its key says so, split into
lines and handed to the per-line processor. Any failure before or outside the
per-line loop publishes one ERROR alert and is re-raised to the invoker.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple
from urllib.parse import unquote

import redis.asyncio as aioredis

from log_ingest.collaborators.alerts import LoggingAlertSink, RedisAlertSink
from log_ingest.collaborators.base import AlertSink, Decompressor, IndexSink, ObjectSource
from log_ingest.collaborators.opensearch import OpenSearchIndexSink, build_client
from log_ingest.collaborators.sources import GzipDecompressor, HttpObjectSource, LocalObjectSource
from log_ingest.core.config import Settings, get_settings
from log_ingest.models.records import Severity
from log_ingest.services.critical_rules import load_critical_patterns
from log_ingest.services.dispatch import select_family
from log_ingest.services.processor import BatchSummary, process_lines, split_lines


LOG = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Logs processed successfully"
FAILURE_PREFIX = "Error processing log file: "


class InvalidEventError(ValueError):
    """The trigger event does not identify an object."""


@dataclass
class Collaborators:
    source: ObjectSource
    decompressor: Decompressor
    index_sink: IndexSink
    alert_sink: AlertSink


def build_alert_sink(settings: Settings) -> AlertSink:
    if settings.ALERT_SINK.lower() == "log":
        return LoggingAlertSink()
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return RedisAlertSink(redis, settings.ALERTS_STREAM, settings.ALERTS_TTL_SEC)


def build_collaborators(settings: Settings) -> Collaborators:
    """Construct the I/O collaborators once per process from settings."""
    if settings.OBJECT_SOURCE.lower() == "http":
        source: ObjectSource = HttpObjectSource(settings.OBJECT_STORE_ENDPOINT)
    else:
        source = LocalObjectSource(settings.OBJECT_STORE_ROOT)

    return Collaborators(
        source=source,
        decompressor=GzipDecompressor(),
        index_sink=OpenSearchIndexSink(build_client(settings)),
        alert_sink=build_alert_sink(settings),
    )


def parse_event(event: Dict[str, Any]) -> Tuple[str, str]:
    """Return `(bucket, key)` from the first record of a storage event; the key is URL-decoded."""
    try:
        s3 = event["Records"][0]["s3"]
        bucket = str(s3["bucket"]["name"])
        raw_key = str(s3["object"]["key"])
    except (KeyError, IndexError, TypeError) as exc:
        raise InvalidEventError(f"event does not identify an object: {exc!r}") from exc
    if not bucket or not raw_key:
        raise InvalidEventError("event has an empty bucket or key")
    return bucket, unquote(raw_key)


def success_response(lines_processed: int) -> Dict[str, Any]:
    return {
        "statusCode": 200,
        "body": json.dumps({"message": SUCCESS_MESSAGE, "linesProcessed": lines_processed}),
    }


async def process_object(
    bucket: str,
    key: str,
    collaborators: Collaborators,
    settings: Settings,
    patterns: Sequence[str],
) -> BatchSummary:
    content = await collaborators.source.fetch(bucket, key)
    content = collaborators.decompressor.decompress(key, content)
    lines: List[str] = split_lines(content)

    target = select_family(key, settings)
    LOG.info("processing object bucket=%s key=%s family=%s index=%s lines=%d", bucket, key, target.family.value, target.index_name, len(lines))
    return await process_lines(
        lines,
        target,
        patterns,
        collaborators.index_sink,
        collaborators.alert_sink,
        index_timeout=settings.INDEX_TIMEOUT_SEC,
    )


async def handle_event(
    event: Dict[str, Any],
    collaborators: Collaborators,
    settings: Settings,
    patterns: Sequence[str] | None = None,
) -> Dict[str, Any]:
    try:
        if patterns is None:
            patterns = load_critical_patterns(settings)
        bucket, key = parse_event(event)
        summary = await process_object(bucket, key, collaborators, settings, patterns)
    except Exception as exc:
        LOG.exception("error processing log file err=%s", exc)
        try:
            await collaborators.alert_sink.publish(f"{FAILURE_PREFIX}{exc}", Severity.ERROR)
        except Exception as alert_exc:  # noqa: BLE001
            LOG.error("failed to publish failure alert err=%s", alert_exc)
        raise
    return success_response(summary.lines)


_collaborators: Collaborators | None = None
_loop: asyncio.AbstractEventLoop | None = None


def _get_collaborators() -> Collaborators:
    global _collaborators
    if _collaborators is None:
        _collaborators = build_collaborators(get_settings())
    return _collaborators


def lambda_handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Synchronous entry point for function runtimes.

    Clients are built once per process and bound to a single event loop that is
    reused across invocations.
    """
    global _loop
    if _loop is None:
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(handle_event(event, _get_collaborators(), get_settings()))
