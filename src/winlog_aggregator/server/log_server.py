"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: refresh, query, clear and export the aggregated event logs
- Resources: help text, channel configuration, view schema
- Prompts: a triage workflow over the loaded events

Run locally (stdio):
    python -m winlog_aggregator.server.log_server
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from winlog_aggregator.core.config import configure_logging
from winlog_aggregator.prompts.registry import register_prompts
from winlog_aggregator.resources.registry import register_resources
from winlog_aggregator.tools.dashboard import (
    clear_logs_impl,
    export_logs_impl,
    get_logs_impl,
    get_metrics_impl,
    refresh_logs_impl,
)

LOGGER = logging.getLogger(__name__)

mcp = FastMCP("winlog-aggregator", json_response=True)

register_resources(mcp)
register_prompts(mcp)


@mcp.tool()
async def refresh_logs() -> dict[str, Any]:
    """Reload the newest events of every configured channel.

    Returns
    -------
    dict:
        {"status": str, "filter": str, "channels": {label: metrics}}
    """
    return await refresh_logs_impl()


@mcp.tool()
def get_logs(
    severity: str | None = None,
    channel: str | None = None,
    limit: int | None = None,
) -> dict[str, Any]:
    """Return the loaded events, newest first per channel.

    Parameters
    ----------
    severity:
        All, Error, Warning or Information (case-insensitive). Becomes the active filter.
    channel:
        Restrict to one channel label (Security, Firewall, DNS, Application, System).
    limit:
        Maximum records per channel (hard-capped in the implementation).
    """
    return get_logs_impl(severity=severity, channel=channel, limit=limit)


@mcp.tool()
def get_metrics() -> dict[str, Any]:
    """Return per-channel counts (total, error, warning, info) of the loaded events."""
    return get_metrics_impl()


@mcp.tool()
def clear_logs() -> dict[str, Any]:
    """Drop every loaded event."""
    return clear_logs_impl()


@mcp.tool()
async def export_logs(directory: str | None = None) -> dict[str, Any]:
    """Write all loaded events to logs_<yyyyMMdd>_<HHmmss>.csv.

    The file goes to ``directory`` or, when omitted, to WINLOG_EXPORT_DIR
    (default: the user's desktop).
    """
    return await export_logs_impl(directory=directory)


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
