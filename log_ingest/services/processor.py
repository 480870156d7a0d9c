from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence

from log_ingest.collaborators.base import AlertSink, IndexSink
from log_ingest.models.records import ClassificationRequest, Parsed
from log_ingest.parsers.registry import classify
from log_ingest.services.critical_rules import evaluate_alert
from log_ingest.services.dispatch import DispatchTarget


LOG = logging.getLogger(__name__)


@dataclass
class BatchSummary:
    family: str
    index_name: str
    lines: int = 0
    parsed: int = 0
    rejected: int = 0
    indexed: int = 0
    index_failures: int = 0
    alerts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "family": self.family,
            "indexName": self.index_name,
            "linesProcessed": self.lines,
            "parsed": self.parsed,
            "rejected": self.rejected,
            "indexed": self.indexed,
            "indexFailures": self.index_failures,
            "alerts": self.alerts,
        }


def split_lines(content: bytes) -> List[str]:
    """Decode an object body as UTF-8 and return its non-blank lines in order."""
    text = content.decode("utf-8", errors="replace")
    return [line.rstrip("\r") for line in text.split("\n") if line.strip()]


async def _index_record(index_sink: IndexSink, index_name: str, document: Dict[str, Any], timeout: float | None) -> None:
    if timeout:
        await asyncio.wait_for(index_sink.upsert(index_name, document), timeout=timeout)
    else:
        await index_sink.upsert(index_name, document)


async def process_lines(
    lines: Iterable[str],
    target: DispatchTarget,
    patterns: Sequence[str],
    index_sink: IndexSink,
    alert_sink: AlertSink,
    *,
    index_timeout: float | None = None,
) -> BatchSummary:
    """Classify, index and alert on each line in order.

    Rejected lines are skipped. An index failure (timeouts included) is logged
    and the line still goes through alert evaluation. Alert publishing errors
    propagate to the caller.
    """
    summary = BatchSummary(family=target.family.value, index_name=target.index_name)
    for line_no, line in enumerate(lines, start=1):
        summary.lines += 1
        result = classify(ClassificationRequest(raw_line=line, family=target.family))
        if not isinstance(result, Parsed):
            summary.rejected += 1
            LOG.debug("line %d rejected family=%s reason=%s", line_no, target.family.value, result.reason)
            continue
        summary.parsed += 1
        record = result.record

        try:
            await _index_record(index_sink, target.index_name, record.to_document(), index_timeout)
            summary.indexed += 1
        except Exception as exc:  # noqa: BLE001
            summary.index_failures += 1
            LOG.warning("index failed line=%d index=%s err=%r", line_no, target.index_name, exc)

        decision = evaluate_alert(record, patterns)
        if decision.should_alert:
            await alert_sink.publish(decision.reason, decision.severity)
            summary.alerts += 1

    LOG.info(
        "batch done family=%s index=%s lines=%d parsed=%d rejected=%d indexed=%d index_failures=%d alerts=%d",
        summary.family,
        summary.index_name,
        summary.lines,
        summary.parsed,
        summary.rejected,
        summary.indexed,
        summary.index_failures,
        summary.alerts,
    )
    return summary
