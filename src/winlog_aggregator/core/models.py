"""Core data models for event log aggregation."""

from __future__ import annotations

import platform
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .errors import RecordNormalizationError

MESSAGE_MAX_CHARS = 200
ELLIPSIS = "..."
DEFAULT_LEVEL = "Information"
UNKNOWN_SOURCE = "Unknown"
UNKNOWN_USER = "N/A"


class Level(str, Enum):
    """Level tokens the Windows event log reports (first word of the display name)."""

    CRITICAL = "Critical"
    ERROR = "Error"
    WARNING = "Warning"
    INFORMATION = "Information"
    VERBOSE = "Verbose"


@dataclass(frozen=True, slots=True)
class RawEvent:
    """Structured record as returned by an OS log reader, before normalization."""

    time: datetime | None
    event_id: int
    level_name: str | None
    provider_name: str | None
    description: str | None
    host: str | None = None
    user: str | None = None


@dataclass(frozen=True, slots=True)
class LogRecord:
    """Normalized, display-ready event."""

    timestamp: datetime
    event_id: int
    level: str
    source: str
    host: str
    user: str
    message: str
    channel: str


@dataclass(frozen=True, slots=True)
class ChannelMetrics:
    """Per-channel counts derived from one collection."""

    channel: str
    total_count: int
    error_count: int
    warning_count: int
    info_count: int
    last_updated: datetime


def normalize_level(raw: str | None) -> str:
    """Return the first whitespace-delimited word of ``raw`` ("Information" if empty)."""
    if not raw:
        return DEFAULT_LEVEL
    parts = raw.split()
    return parts[0] if parts else DEFAULT_LEVEL


def truncate_message(text: str | None) -> str:
    if text is None:
        return ""
    if len(text) > MESSAGE_MAX_CHARS:
        return text[:MESSAGE_MAX_CHARS] + ELLIPSIS
    return text


def local_host() -> str:
    return platform.node() or "localhost"


def normalize_record(raw: RawEvent, *, channel: str, now: datetime | None = None) -> LogRecord:
    """Convert a RawEvent into a LogRecord.

    Raises RecordNormalizationError when a field has an unexpected type.
    """
    try:
        event_id = int(raw.event_id)
        timestamp = raw.time
        if timestamp is None:
            timestamp = now or datetime.now().astimezone()
        elif not isinstance(timestamp, datetime):
            raise TypeError(f"time must be a datetime, got {type(timestamp).__name__}")
        return LogRecord(
            timestamp=timestamp,
            event_id=event_id,
            level=normalize_level(raw.level_name),
            source=raw.provider_name or UNKNOWN_SOURCE,
            host=raw.host or local_host(),
            user=raw.user or UNKNOWN_USER,
            message=truncate_message(raw.description),
            channel=channel,
        )
    except (TypeError, ValueError, AttributeError) as e:
        raise RecordNormalizationError(f"cannot normalize event from {channel}: {e}") from e


def compute_metrics(
    channel: str,
    records: Sequence[LogRecord],
    *,
    now: datetime | None = None,
) -> ChannelMetrics:
    """Count records by severity; info is the remainder so the counts always add up."""
    errors = sum(1 for r in records if Level.ERROR.value in r.level)
    warnings = sum(1 for r in records if Level.WARNING.value in r.level)
    total = len(records)
    return ChannelMetrics(
        channel=channel,
        total_count=total,
        error_count=errors,
        warning_count=warnings,
        info_count=total - errors - warnings,
        last_updated=now or datetime.now().astimezone(),
    )
