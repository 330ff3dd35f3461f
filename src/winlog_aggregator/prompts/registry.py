"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from winlog_aggregator.core.filtering import SeverityFilter


def build_triage_prompt(
    severity: str = "Error",
    channel: str | None = None,
    limit: int = 50,
) -> list[dict[str, Any]]:
    """Build the message list for the triage_event_logs prompt."""
    flt = SeverityFilter.parse(severity)
    call_lines = [f"- severity: {flt.value}", f"- limit: {limit}"]
    if channel is not None:
        call_lines.append(f"- channel: {channel}")
    call_block = "\n".join(call_lines)
    return [
        {
            "role": "system",
            "content": (
                "You are a Windows security and operations triage assistant. "
                "Provide concise, evidence-based summaries from event log data. "
                "Do not invent details; if the evidence is insufficient, say so."
            ),
        },
        {
            "role": "user",
            "content": (
                "Triage the Windows event logs. Follow this workflow:\n"
                "- Call refresh_logs first so the data is current.\n"
                "- Then call get_logs with the parameters below.\n"
                "- If no events are returned, state that clearly and suggest "
                "a wider severity filter.\n"
                "- Use only tool output for evidence; do not fabricate events.\n\n"
                "Call get_logs with:\n"
                f"{call_block}\n\n"
                "Return this structure:\n"
                "1) What happened (1-3 bullets)\n"
                "2) Evidence (2-5 events; include channel, timestamp, EventID and source)\n"
                "3) Suspected cause (1-2 sentences; say 'Unknown' if unclear)\n"
                "4) Next actions (2-4 bullets)\n"
            ),
        },
    ]


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def triage_event_logs(
        severity: str = "Error",
        channel: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Build a prompt for structured event log triage."""
        return build_triage_prompt(severity=severity, channel=channel, limit=limit)
