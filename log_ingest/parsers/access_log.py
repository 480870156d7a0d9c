from __future__ import annotations

import re
from typing import Optional

from log_ingest.models.records import AccessRecord, Parsed, ParseResult, Rejected
from log_ingest.parsers.timestamps import TimestampEncoding, normalize_timestamp


# Pipe-delimited access log, extra trailing fields are ignored:
# 06/Feb/2025:00:39:17 +0000|v1|91.242.95.38|jeremypollock.me|200|56701|127.0.0.1:9002|0.001|0.001|GET / HTTP/1.0|0|0|90d7...
ACCESS_FIELD_COUNT = 10

INT_PREFIX = re.compile(r"^\s*([+-]?\d+)", re.ASCII)
FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)", re.ASCII)


def parse_int_prefix(value: str) -> Optional[int]:
    """Best-effort integer: leading digits win (`"200x"` -> 200), nothing parsable -> None."""
    match = INT_PREFIX.match(value or "")
    return int(match.group(1), 10) if match else None


def parse_float_prefix(value: str) -> Optional[float]:
    match = FLOAT_PREFIX.match(value or "")
    return float(match.group(1)) if match else None


def classify_access_line(line: str) -> ParseResult:
    parts = line.split("|")
    if len(parts) < ACCESS_FIELD_COUNT:
        return Rejected(f"expected at least {ACCESS_FIELD_COUNT} fields, got {len(parts)}")

    timestamp = normalize_timestamp(parts[0], TimestampEncoding.APACHE_STYLE)
    if timestamp is None:
        return Rejected(f"unparsable timestamp {parts[0]!r}")

    return Parsed(
        AccessRecord(
            timestamp=timestamp,
            version=parts[1],
            ip=parts[2],
            domain=parts[3],
            status=parse_int_prefix(parts[4]),
            bytes=0 if parts[5].strip() == "-" else parse_int_prefix(parts[5]),
            server=parts[6],
            response_time=parse_float_prefix(parts[7]),
            total_time=parse_float_prefix(parts[8]),
            request=parts[9],
        )
    )


def parse_access_line(line: str) -> Optional[AccessRecord]:
    result = classify_access_line(line)
    return result.record if isinstance(result, Parsed) else None  # type: ignore[return-value]
