from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, Union


class LogFamily(str, Enum):
    """The recognised log shapes. Every family maps to one record type and one index."""

    ERROR = "error"
    ACCESS = "access"
    APACHE_ACCESS = "apache_access"


class Severity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"


def format_instant(value: datetime) -> str:
    """Render an aware datetime as `YYYY-MM-DDTHH:MM:SS.mmmZ` in UTC."""
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class ErrorRecord:
    family: ClassVar[LogFamily] = LogFamily.ERROR

    timestamp: datetime
    message: str
    repeat_count: int = 1

    def to_document(self) -> Dict[str, Any]:
        return _document(self)


@dataclass(frozen=True)
class AccessRecord:
    family: ClassVar[LogFamily] = LogFamily.ACCESS

    timestamp: datetime
    version: str
    ip: str
    domain: str
    status: int | None
    bytes: int | None
    server: str
    response_time: float | None
    total_time: float | None
    request: str

    def to_document(self) -> Dict[str, Any]:
        return _document(self)


@dataclass(frozen=True)
class ApacheAccessRecord:
    family: ClassVar[LogFamily] = LogFamily.APACHE_ACCESS

    timestamp: datetime
    ip: str
    request: str
    status: int
    bytes: int
    referer: str
    user_agent: str

    def to_document(self) -> Dict[str, Any]:
        return _document(self)


LogRecord = Union[ErrorRecord, AccessRecord, ApacheAccessRecord]


def _document(record: LogRecord) -> Dict[str, Any]:
    # JSON-shaped body for the index: record fields plus the type tag
    doc = asdict(record)
    doc["timestamp"] = format_instant(record.timestamp)
    doc["type"] = record.family.value
    return doc


@dataclass(frozen=True)
class ClassificationRequest:
    raw_line: str
    family: LogFamily


@dataclass(frozen=True)
class Parsed:
    record: LogRecord


@dataclass(frozen=True)
class Rejected:
    reason: str


ParseResult = Union[Parsed, Rejected]


@dataclass(frozen=True)
class AlertDecision:
    should_alert: bool
    severity: Severity
    reason: str
