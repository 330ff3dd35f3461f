"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from typing import Any

from winlog_aggregator.core.dashboard import Dashboard
from winlog_aggregator.core.errors import ExportError
from winlog_aggregator.core.filtering import SeverityFilter

DEFAULT_LIMIT = 100
HARD_LIMIT = 1000

_DASHBOARD: Dashboard | None = None


def get_dashboard() -> Dashboard:
    """Return the process-wide dashboard, creating it on first use."""
    global _DASHBOARD
    if _DASHBOARD is None:
        _DASHBOARD = Dashboard()
    return _DASHBOARD


def _resolve_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    if limit <= 0:
        raise ValueError("limit must be > 0")
    return min(limit, HARD_LIMIT)


def _metrics_dict(dashboard: Dashboard) -> dict[str, Any]:
    view = dashboard.view(limit=0)
    return {
        "status": view.status,
        "filter": view.filter,
        "channels": {
            c.label: {**c.metrics.model_dump(mode="json"), "visible_count": c.visible_count}
            for c in view.channels
        },
    }


async def refresh_logs_impl() -> dict[str, Any]:
    """Reload every channel and return per-channel metrics."""
    dashboard = get_dashboard()
    await dashboard.refresh()
    return _metrics_dict(dashboard)


def get_logs_impl(
    *,
    severity: str | None = None,
    channel: str | None = None,
    limit: int | None = None,
) -> dict[str, Any]:
    """Return loaded records, optionally narrowing the active severity filter first."""
    dashboard = get_dashboard()
    if severity is not None:
        dashboard.set_filter(SeverityFilter.parse(severity))
    view = dashboard.view(channel=channel, limit=_resolve_limit(limit))
    return view.model_dump(mode="json")


def get_metrics_impl() -> dict[str, Any]:
    return _metrics_dict(get_dashboard())


def clear_logs_impl() -> dict[str, Any]:
    dashboard = get_dashboard()
    dashboard.clear()
    return _metrics_dict(dashboard)


async def export_logs_impl(*, directory: str | None = None) -> dict[str, Any]:
    """Export loaded records to CSV; failures come back as a status, not an exception."""
    dashboard = get_dashboard()
    try:
        result = await dashboard.export(directory)
    except ExportError:
        return {"ok": False, "status": dashboard.status}
    return {"ok": True, **result.model_dump(mode="json")}
