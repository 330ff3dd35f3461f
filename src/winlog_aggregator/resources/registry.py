"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from winlog_aggregator.core.config import EXPORT_DIR_ENV, MAX_RECORDS_ENV, MAX_WORKERS_ENV
from winlog_aggregator.core.views import DashboardView
from winlog_aggregator.tools.dashboard import get_dashboard


def channels_config() -> list[dict[str, Any]]:
    """Return the configured channels in display order."""
    cfg = get_dashboard().pipeline.config
    return [
        {"label": c.label, "channel": c.name, "max_records": c.max_records}
        for c in cfg.channels
    ]


def help_text() -> str:
    cfg = get_dashboard().pipeline.config
    labels = ", ".join(c.label for c in cfg.channels)
    return (
        "Resources:\n"
        "- app://winlog/help\n"
        "- app://winlog/config/channels\n"
        "- app://winlog/schemas/dashboard-view\n"
        "\nTools: refresh_logs, get_logs, get_metrics, clear_logs, export_logs\n"
        f"Channels: {labels}\n"
        f"Export directory: {cfg.export_dir} (override with {EXPORT_DIR_ENV})\n"
        f"Other settings: {MAX_RECORDS_ENV}, {MAX_WORKERS_ENV}\n"
    )


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://winlog/help")
    def help_resource() -> str:
        """Return a short list of available resources and tools."""
        return help_text()

    @mcp.resource("app://winlog/config/channels")
    def channels_resource() -> list[dict[str, Any]]:
        """Return the configured event log channels."""
        return channels_config()

    @mcp.resource("app://winlog/schemas/dashboard-view")
    def dashboard_view_schema() -> dict[str, Any]:
        """Return the JSON schema of get_logs responses."""
        return DashboardView.model_json_schema()
