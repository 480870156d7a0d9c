from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class TimestampEncoding(str, Enum):
    ISO8601 = "iso8601"
    APACHE_STYLE = "apache_style"


MONTHS = {
    "Jan": "01", "Feb": "02", "Mar": "03", "Apr": "04", "May": "05", "Jun": "06",
    "Jul": "07", "Aug": "08", "Sep": "09", "Oct": "10", "Nov": "11", "Dec": "12",
}

# 06/Feb/2025:00:39:17 +0000
APACHE_TS_REGEX = re.compile(
    r"^(?P<day>\d{2})/(?P<month>[A-Za-z]{3})/(?P<year>\d{4}):"
    r"(?P<time>\d{2}:\d{2}:\d{2})\s+(?P<offset>[+-]\d{4})$",
    re.ASCII,
)

# Must carry a date, a time and either an offset or a Z marker
ISO_SHAPE_REGEX = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})$",
    re.ASCII,
)


def _parse_iso8601(raw: str) -> Optional[datetime]:
    ts = raw.strip()
    if not ISO_SHAPE_REGEX.match(ts):
        return None
    if ts.endswith("Z"):
        ts = ts[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(ts)
        if dt.tzinfo is None:
            return None
        # Offsets can push an instant at the edge of year 1 or 9999 out of range.
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def _parse_apache_style(raw: str) -> Optional[datetime]:
    match = APACHE_TS_REGEX.match(raw.strip())
    if not match:
        return None
    month = MONTHS.get(match.group("month"))
    if month is None:
        return None
    # The offset is matched but not applied: the reassembled wall time is read as UTC.
    canonical = f"{match.group('year')}-{month}-{match.group('day')}T{match.group('time')}.000Z"
    try:
        return datetime.strptime(canonical, "%Y-%m-%dT%H:%M:%S.000Z").replace(tzinfo=timezone.utc)
    except (ValueError, OverflowError):
        return None


def normalize_timestamp(raw: str, encoding: TimestampEncoding) -> Optional[datetime]:
    """Convert a textual timestamp to an aware UTC datetime.

    Returns None when the text cannot be resolved to a real instant; never raises.
    """
    if not raw:
        return None
    if encoding is TimestampEncoding.ISO8601:
        return _parse_iso8601(raw)
    if encoding is TimestampEncoding.APACHE_STYLE:
        return _parse_apache_style(raw)
    return None
