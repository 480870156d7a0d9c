from __future__ import annotations

import re
from typing import Optional

from log_ingest.models.records import ErrorRecord, Parsed, ParseResult, Rejected
from log_ingest.parsers.timestamps import TimestampEncoding, normalize_timestamp


# Error log format:
# [2025-02-09T06:13:54.773313+00:00] enforcing rate limit [...]
ERROR_REGEX = re.compile(r"^\[(?P<timestamp>[0-9T:.+\-]+)\] (?P<message>.+)$")

# message repeated 4 times: [ enforcing rate limit [...]]
REPEATED_REGEX = re.compile(r"message repeated (?P<count>\d+) times: \[(?P<inner>.*)\]", re.ASCII)


def classify_error_line(line: str) -> ParseResult:
    match = ERROR_REGEX.match(line.strip())
    if not match:
        return Rejected("line does not match '[<timestamp>] <message>'")

    timestamp = normalize_timestamp(match.group("timestamp"), TimestampEncoding.ISO8601)
    if timestamp is None:
        return Rejected(f"unparsable timestamp {match.group('timestamp')!r}")

    message = match.group("message")
    repeated = REPEATED_REGEX.search(message)
    if repeated:
        count = int(repeated.group("count"), 10)
        if count < 1:
            return Rejected(f"invalid repeat count {count}")
        return Parsed(ErrorRecord(timestamp=timestamp, message=repeated.group("inner").strip(), repeat_count=count))

    return Parsed(ErrorRecord(timestamp=timestamp, message=message.strip(), repeat_count=1))


def parse_error_line(line: str) -> Optional[ErrorRecord]:
    result = classify_error_line(line)
    return result.record if isinstance(result, Parsed) else None  # type: ignore[return-value]
