from __future__ import annotations

import re
from typing import Optional

from log_ingest.models.records import ApacheAccessRecord, Parsed, ParseResult, Rejected
from log_ingest.parsers.timestamps import TimestampEncoding, normalize_timestamp


# Apache combined log format:
# 192.168.1.1 - - [10/Feb/2025:00:00:00 +0000] "GET /test HTTP/1.1" 200 1234 "-" "Mozilla/5.0"
APACHE_REGEX = re.compile(
    r"^(?P<ip>\S+) \S+ \S+ \[(?P<timestamp>[^\]]+)\] "
    r"\"(?P<request>[^\"]*)\" (?P<status>\d{3}) (?P<bytes>\d+|-) "
    r"\"(?P<referer>[^\"]*)\" \"(?P<user_agent>[^\"]*)\"",
    re.ASCII,
)


def classify_apache_line(line: str) -> ParseResult:
    match = APACHE_REGEX.match(line.strip())
    if not match:
        return Rejected("line does not match the combined log format")

    timestamp = normalize_timestamp(match.group("timestamp"), TimestampEncoding.APACHE_STYLE)
    if timestamp is None:
        return Rejected(f"unparsable timestamp {match.group('timestamp')!r}")

    raw_bytes = match.group("bytes")
    return Parsed(
        ApacheAccessRecord(
            timestamp=timestamp,
            ip=match.group("ip"),
            request=match.group("request"),
            status=int(match.group("status"), 10),
            bytes=0 if raw_bytes == "-" else int(raw_bytes, 10),
            referer=match.group("referer"),
            user_agent=match.group("user_agent"),
        )
    )


def parse_apache_line(line: str) -> Optional[ApacheAccessRecord]:
    result = classify_apache_line(line)
    return result.record if isinstance(result, Parsed) else None  # type: ignore[return-value]
