from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence

import yaml

from log_ingest.models.records import AccessRecord, AlertDecision, ApacheAccessRecord, ErrorRecord, LogRecord, Severity


LOG = logging.getLogger(__name__)

_DEFAULT_RULES_FILE = Path(__file__).parent.parent / "rules" / "critical_patterns.yml"

CRITICAL_PREFIX = "Critical Error Detected: "
SERVER_ERROR_PREFIX = "High number of 5xx errors detected for "
SERVER_ERROR_STATUS = 500


def load_patterns_file(path: Path | None = None) -> List[str]:
    """Load critical substrings from a YAML file shaped like `patterns: [critical, fatal]`."""
    path = path or _DEFAULT_RULES_FILE
    if not path.exists():
        return []
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        return []
    return [str(p) for p in (data.get("patterns") or []) if str(p)]


def load_critical_patterns(settings) -> List[str]:
    """ERROR_PATTERNS wins when set; otherwise fall back to the patterns file."""
    if settings.ERROR_PATTERNS:
        return list(settings.ERROR_PATTERNS)
    path = Path(settings.CRITICAL_PATTERNS_FILE) if settings.CRITICAL_PATTERNS_FILE else None
    patterns = load_patterns_file(path)
    LOG.info("critical patterns loaded count=%d source=%s", len(patterns), path or _DEFAULT_RULES_FILE)
    return patterns


def is_critical(message: str, patterns: Sequence[str]) -> bool:
    """Case-insensitive substring match of any pattern within the message."""
    text = (message or "").lower()
    return any(pattern.lower() in text for pattern in patterns)


def evaluate_alert(record: LogRecord, patterns: Sequence[str]) -> AlertDecision:
    if isinstance(record, ErrorRecord):
        if is_critical(record.message, patterns):
            return AlertDecision(True, Severity.CRITICAL, f"{CRITICAL_PREFIX}{record.message}")
        return AlertDecision(False, Severity.CRITICAL, "no critical pattern matched")

    if isinstance(record, (AccessRecord, ApacheAccessRecord)):
        status = record.status
        if status is not None and status >= SERVER_ERROR_STATUS:
            # Apache records have no domain; name the client instead
            target = record.domain if isinstance(record, AccessRecord) else record.ip
            return AlertDecision(True, Severity.WARNING, f"{SERVER_ERROR_PREFIX}{target}")
        return AlertDecision(False, Severity.WARNING, "status below 500")

    raise TypeError(f"Unsupported record type: {type(record).__name__}")
