"""Error taxonomy for the aggregation pipeline."""

from __future__ import annotations


class WinlogAggregatorError(Exception):
    """Base class for pipeline errors."""


class RecordNormalizationError(WinlogAggregatorError):
    """A single raw event could not be turned into a LogRecord."""


class ChannelAccessError(WinlogAggregatorError):
    """A channel could not be opened or read (missing, access denied, read error)."""

    def __init__(self, channel: str, reason: str) -> None:
        super().__init__(f"{channel}: {reason}")
        self.channel = channel
        self.reason = reason


class ExportError(WinlogAggregatorError):
    """Writing a CSV export failed; the message carries the underlying cause."""
