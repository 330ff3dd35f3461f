"""UI-agnostic dashboard state shared by the front ends.

Holds the pipeline, the active severity filter and a human-readable status
line. Front ends (MCP server, CLI) call these operations and render the
returned views.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .config import AggregatorConfig
from .errors import ExportError
from .export import export_csv, flatten, write_export
from .filtering import SeverityFilter, apply_filter
from .models import LogRecord
from .pipeline import AggregationPipeline
from .views import ChannelView, DashboardView, ExportResult, MetricsView, RecordView

logger = logging.getLogger(__name__)

STATUS_READY = "Ready"
STATUS_LOADING = "Loading all logs..."
STATUS_LOADED = "All logs loaded successfully"
STATUS_CLEARED = "All logs cleared"


class Dashboard:
    def __init__(
        self,
        pipeline: AggregationPipeline | None = None,
        *,
        config: AggregatorConfig | None = None,
    ) -> None:
        self.pipeline = pipeline or AggregationPipeline(config)
        self.severity_filter = SeverityFilter.ALL
        self.status = STATUS_READY

    async def refresh(self) -> DashboardView:
        self.status = STATUS_LOADING
        result = await self.pipeline.refresh()
        if result.published:
            self.status = STATUS_LOADED
        return self.view()

    def set_filter(self, value: str | SeverityFilter) -> DashboardView:
        self.severity_filter = SeverityFilter.parse(value)
        return self.view()

    def clear(self) -> DashboardView:
        self.pipeline.clear()
        self.status = STATUS_CLEARED
        return self.view()

    def visible(self) -> dict[str, tuple[LogRecord, ...]]:
        """Collections restricted by the active filter."""
        return apply_filter(self.pipeline.collections(), self.severity_filter)

    def view(self, *, channel: str | None = None, limit: int | None = None) -> DashboardView:
        """Build the JSON view; metrics always describe the unfiltered collections."""
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0")
        specs = self.pipeline.channels
        if channel is not None:
            specs = (self.pipeline.config.channel(channel),)

        snapshot = self.pipeline.snapshot()
        visible = apply_filter(snapshot.collections, self.severity_filter)
        channels: list[ChannelView] = []
        for spec in specs:
            records = visible.get(spec.label, ())
            shown = records if limit is None else records[:limit]
            channels.append(
                ChannelView(
                    label=spec.label,
                    channel=spec.name,
                    metrics=MetricsView.from_metrics(snapshot.metrics[spec.label]),
                    visible_count=len(records),
                    records=[RecordView.from_record(r) for r in shown],
                )
            )
        return DashboardView(
            status=self.status,
            filter=self.severity_filter.value,
            channels=channels,
        )

    async def export(self, directory: str | Path | None = None) -> ExportResult:
        """Export every loaded record (unfiltered) to a new CSV file."""
        collections = self.pipeline.collections()
        order = [c.label for c in self.pipeline.channels]
        count = len(flatten(collections, order))
        payload = export_csv(collections, order)
        try:
            path = await write_export(payload, directory or self.pipeline.config.export_dir)
        except ExportError as e:
            self.status = f"Export failed: {e}"
            logger.error("%s", self.status)
            raise
        self.status = f"Exported {count} events to {path.name}"
        return ExportResult(path=str(path), count=count, status=self.status)
