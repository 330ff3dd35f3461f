"""Severity filtering over channel collections."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum

from .models import LogRecord


class SeverityFilter(str, Enum):
    ALL = "All"
    ERROR = "Error"
    WARNING = "Warning"
    INFORMATION = "Information"

    @classmethod
    def parse(cls, value: str | SeverityFilter | None) -> SeverityFilter:
        """Parse a filter name case-insensitively ("info" is accepted for Information)."""
        if value is None:
            return cls.ALL
        if isinstance(value, cls):
            return value
        name = value.strip().lower()
        if name == "info":
            return cls.INFORMATION
        for member in cls:
            if member.value.lower() == name:
                return member
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown severity filter '{value}'. Valid values: {valid}.")


def matches(record: LogRecord, severity_filter: SeverityFilter) -> bool:
    # Substring match, the same rule the metrics count with.
    if severity_filter is SeverityFilter.ALL:
        return True
    return severity_filter.value in record.level


def apply_filter(
    collections: Mapping[str, Sequence[LogRecord]],
    severity_filter: SeverityFilter | str = SeverityFilter.ALL,
) -> dict[str, tuple[LogRecord, ...]]:
    """Return a filtered view of every channel; the input collections are left untouched."""
    flt = SeverityFilter.parse(severity_filter)
    return {
        label: tuple(r for r in records if matches(r, flt))
        for label, records in collections.items()
    }
