from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

import aiofiles

from log_ingest.collaborators.alerts import LoggingAlertSink, RedisAlertSink
from log_ingest.collaborators.opensearch import (
    OpenSearchIndexSink,
    OpenSearchSchemaProvider,
    build_client,
    index_mappings,
    wait_for_opensearch,
)
from log_ingest.collaborators.sources import GzipDecompressor
from log_ingest.core.config import Settings, get_settings
from log_ingest.core.logging_config import configure_logging
from log_ingest.handler import build_alert_sink
from log_ingest.models.records import ClassificationRequest, LogFamily, Parsed
from log_ingest.parsers.registry import classify
from log_ingest.services.critical_rules import load_critical_patterns
from log_ingest.services.dispatch import select_family
from log_ingest.services.processor import BatchSummary, process_lines, split_lines


async def _process_file(path: Path, settings: Settings, log_alerts: bool) -> BatchSummary:
    async with aiofiles.open(path, mode="rb") as f:
        content = await f.read()
    content = GzipDecompressor().decompress(path.name, content)
    target = select_family(path.as_posix(), settings)
    patterns = load_critical_patterns(settings)
    print(f"Processing {target.family.value} log file, using index: {target.index_name}")

    alert_sink = LoggingAlertSink() if log_alerts else build_alert_sink(settings)
    try:
        async with build_client(settings) as client:
            return await process_lines(
                split_lines(content),
                target,
                patterns,
                OpenSearchIndexSink(client),
                alert_sink,
                index_timeout=settings.INDEX_TIMEOUT_SEC,
            )
    finally:
        if isinstance(alert_sink, RedisAlertSink):
            await alert_sink.aclose()


async def _setup_indices(settings: Settings) -> list[str]:
    async with build_client(settings) as client:
        await wait_for_opensearch(
            client,
            attempts=settings.SERVICE_WAIT_ATTEMPTS,
            interval=settings.SERVICE_WAIT_INTERVAL_SEC,
        )
        provider = OpenSearchSchemaProvider(client, index_mappings(settings))
        return await provider.ensure_indices()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Log ingest CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    p_file = sub.add_parser("process-file", help="Classify, index and alert on a local log file")
    p_file.add_argument("path", type=Path)
    p_file.add_argument("--log-alerts", action="store_true", help="Write alerts to the log instead of the alert sink")

    sub.add_parser("setup-indices", help="Wait for the index cluster and create missing indices")

    p_cls = sub.add_parser("classify", help="Classify a single line and print the document")
    p_cls.add_argument("family", choices=[f.value for f in LogFamily])
    p_cls.add_argument("line")

    args = parser.parse_args(argv)
    configure_logging()
    settings = get_settings()

    if args.command == "process-file":
        summary = asyncio.run(_process_file(args.path, settings, args.log_alerts))
        print(f"Successfully processed {summary.lines} lines from {args.path}")
        print(json.dumps(summary.to_dict(), indent=2))
        return 0

    if args.command == "setup-indices":
        created = asyncio.run(_setup_indices(settings))
        for name in created:
            print(f"Successfully created index {name}")
        print("Indices ready")
        return 0

    result = classify(ClassificationRequest(raw_line=args.line, family=LogFamily(args.family)))
    if not isinstance(result, Parsed):
        print(f"rejected: {result.reason}", file=sys.stderr)
        return 1
    print(json.dumps(result.record.to_document(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
