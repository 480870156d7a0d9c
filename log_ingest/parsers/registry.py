from __future__ import annotations

import logging
from typing import Callable, Optional

from log_ingest.models.records import ClassificationRequest, LogFamily, LogRecord, Parsed, ParseResult, Rejected
from log_ingest.parsers.access_log import classify_access_line
from log_ingest.parsers.apache_log import classify_apache_line
from log_ingest.parsers.error_log import classify_error_line


LOG = logging.getLogger(__name__)


def classifier_for(family: LogFamily) -> Callable[[str], ParseResult]:
    if family is LogFamily.ERROR:
        return classify_error_line
    if family is LogFamily.ACCESS:
        return classify_access_line
    if family is LogFamily.APACHE_ACCESS:
        return classify_apache_line
    raise KeyError(f"Unknown log family: {family}")


def classify(request: ClassificationRequest) -> ParseResult:
    """Classify one raw line; an unexpected classifier error rejects the line instead of raising."""
    classifier = classifier_for(request.family)
    try:
        return classifier(request.raw_line)
    except Exception as exc:  # noqa: BLE001
        LOG.debug("classifier failed family=%s err=%r", request.family.value, exc)
        return Rejected(f"parse error: {exc!r}")


def parse_line(line: str, family: LogFamily) -> Optional[LogRecord]:
    """Return the record for `line`, or None when the family's classifier rejects it."""
    result = classify(ClassificationRequest(raw_line=line, family=family))
    return result.record if isinstance(result, Parsed) else None
