from __future__ import annotations

from datetime import datetime, timezone

import pytest

from winlog_aggregator.core.errors import RecordNormalizationError
from winlog_aggregator.core.models import (
    LogRecord,
    RawEvent,
    compute_metrics,
    local_host,
    normalize_level,
    normalize_record,
    truncate_message,
)

NOW = datetime(2025, 12, 30, 12, 0, 0, tzinfo=timezone.utc)


def _record(level: str) -> LogRecord:
    return LogRecord(
        timestamp=NOW,
        event_id=1,
        level=level,
        source="src",
        host="WS01",
        user="N/A",
        message="m",
        channel="System",
    )


def test_truncate_message_long() -> None:
    text = "x" * 250
    out = truncate_message(text)
    assert len(out) == 203
    assert out.endswith("...")
    assert out[:200] == text[:200]


@pytest.mark.parametrize("length", [0, 1, 199, 200])
def test_truncate_message_short_is_unchanged(length: int) -> None:
    text = "y" * length
    assert truncate_message(text) == text


def test_truncate_message_none() -> None:
    assert truncate_message(None) == ""


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Error", "Error"),
        ("Warning", "Warning"),
        ("Information", "Information"),
        ("Audit Success", "Audit"),
        ("  Critical  error", "Critical"),
        ("", "Information"),
        (None, "Information"),
        ("   ", "Information"),
    ],
)
def test_normalize_level(raw: str | None, expected: str) -> None:
    assert normalize_level(raw) == expected


def test_normalize_record_defaults() -> None:
    raw = RawEvent(time=None, event_id=42, level_name=None, provider_name=None, description=None)
    rec = normalize_record(raw, channel="Application", now=NOW)

    assert rec.timestamp == NOW
    assert rec.event_id == 42
    assert rec.level == "Information"
    assert rec.source == "Unknown"
    assert rec.user == "N/A"
    assert rec.host == local_host()
    assert rec.message == ""
    assert rec.channel == "Application"


def test_normalize_record_missing_time_uses_now() -> None:
    raw = RawEvent(time=None, event_id=1, level_name="Error", provider_name="x", description="d")
    before = datetime.now().astimezone()
    rec = normalize_record(raw, channel="System")
    assert rec.timestamp >= before


def test_normalize_record_keeps_fields() -> None:
    raw = RawEvent(
        time=NOW,
        event_id=4625,
        level_name="Information",
        provider_name="Microsoft-Windows-Security-Auditing",
        description="An account failed to log on.",
        host="DC01",
        user="S-1-5-18",
    )
    rec = normalize_record(raw, channel="Security")

    assert rec.source == "Microsoft-Windows-Security-Auditing"
    assert rec.host == "DC01"
    assert rec.user == "S-1-5-18"
    assert rec.message == "An account failed to log on."


def test_normalize_record_bad_event_id_raises() -> None:
    raw = RawEvent(time=NOW, event_id="not-a-number", level_name="Error", provider_name="x", description="d")  # type: ignore[arg-type]
    with pytest.raises(RecordNormalizationError):
        normalize_record(raw, channel="System")


def test_normalize_record_bad_time_raises() -> None:
    raw = RawEvent(time="yesterday", event_id=1, level_name="Error", provider_name="x", description="d")  # type: ignore[arg-type]
    with pytest.raises(RecordNormalizationError):
        normalize_record(raw, channel="System")


def test_compute_metrics_counts_by_substring() -> None:
    records = [_record(lvl) for lvl in ["Error", "Warning", "Information", "Critical", "Error"]]
    m = compute_metrics("System", records, now=NOW)

    assert m.total_count == 5
    assert m.error_count == 2
    assert m.warning_count == 1
    assert m.info_count == 2
    assert m.error_count + m.warning_count + m.info_count == m.total_count
    assert m.last_updated == NOW


def test_compute_metrics_empty() -> None:
    m = compute_metrics("DNS", [])
    assert (m.total_count, m.error_count, m.warning_count, m.info_count) == (0, 0, 0, 0)
