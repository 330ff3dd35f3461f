from __future__ import annotations

from datetime import datetime, timezone

import pytest

from winlog_aggregator.core.filtering import SeverityFilter, apply_filter
from winlog_aggregator.core.models import LogRecord

NOW = datetime(2025, 12, 30, 12, 0, 0, tzinfo=timezone.utc)


def _rec(event_id: int, level: str, channel: str) -> LogRecord:
    return LogRecord(
        timestamp=NOW,
        event_id=event_id,
        level=level,
        source="src",
        host="WS01",
        user="N/A",
        message=f"event {event_id}",
        channel=channel,
    )


@pytest.fixture
def collections() -> dict[str, tuple[LogRecord, ...]]:
    return {
        "System": (
            _rec(1, "Error", "System"),
            _rec(2, "Information", "System"),
            _rec(3, "Error", "System"),
            _rec(4, "Warning", "System"),
        ),
        "Application": (
            _rec(5, "Information", "Application"),
            _rec(6, "Verbose", "Application"),
        ),
        "DNS": (),
    }


def test_all_returns_everything_unchanged(collections) -> None:
    out = apply_filter(collections, SeverityFilter.ALL)
    assert out == collections


def test_error_keeps_matching_records_in_order(collections) -> None:
    out = apply_filter(collections, "Error")

    assert [r.event_id for r in out["System"]] == [1, 3]
    assert out["Application"] == ()
    assert out["DNS"] == ()


def test_filter_is_substring_match() -> None:
    cols = {"System": (_rec(1, "ErrorX", "System"), _rec(2, "Information", "System"))}
    assert [r.event_id for r in apply_filter(cols, "Error")["System"]] == [1]


def test_filter_does_not_mutate_input(collections) -> None:
    before = {k: tuple(v) for k, v in collections.items()}
    apply_filter(collections, "Warning")
    assert collections == before


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("all", SeverityFilter.ALL),
        ("ERROR", SeverityFilter.ERROR),
        (" warning ", SeverityFilter.WARNING),
        ("info", SeverityFilter.INFORMATION),
        ("Information", SeverityFilter.INFORMATION),
        (None, SeverityFilter.ALL),
        (SeverityFilter.ERROR, SeverityFilter.ERROR),
    ],
)
def test_parse(raw, expected) -> None:
    assert SeverityFilter.parse(raw) is expected


def test_parse_unknown_raises() -> None:
    with pytest.raises(ValueError, match="Valid values"):
        SeverityFilter.parse("debug")
