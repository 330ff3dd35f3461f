"""JSON-facing view models returned to front ends."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .models import ChannelMetrics, LogRecord


class RecordView(BaseModel):
    timestamp: datetime
    event_id: int
    level: str
    source: str
    computer: str
    user: str
    message: str = Field(max_length=203)
    channel: str

    @classmethod
    def from_record(cls, r: LogRecord) -> RecordView:
        return cls(
            timestamp=r.timestamp,
            event_id=r.event_id,
            level=r.level,
            source=r.source,
            computer=r.host,
            user=r.user,
            message=r.message,
            channel=r.channel,
        )


class MetricsView(BaseModel):
    total_count: int = Field(ge=0, description="Events loaded for the channel (unfiltered).")
    error_count: int = Field(ge=0)
    warning_count: int = Field(ge=0)
    info_count: int = Field(description="total - errors - warnings.")
    last_updated: datetime

    @classmethod
    def from_metrics(cls, m: ChannelMetrics) -> MetricsView:
        return cls(
            total_count=m.total_count,
            error_count=m.error_count,
            warning_count=m.warning_count,
            info_count=m.info_count,
            last_updated=m.last_updated,
        )


class ChannelView(BaseModel):
    label: str = Field(description="Short channel name, e.g. Security or DNS.")
    channel: str = Field(description="Event log channel path.")
    metrics: MetricsView
    visible_count: int = Field(ge=0, description="Records left after the severity filter.")
    records: list[RecordView] = Field(default_factory=list)


class DashboardView(BaseModel):
    status: str
    filter: str = Field(description="Active severity filter: All, Error, Warning or Information.")
    channels: list[ChannelView] = Field(default_factory=list)


class ExportResult(BaseModel):
    path: str
    count: int = Field(ge=0, description="Number of events written.")
    status: str
