"""Per-channel fetch: read the newest events of one channel and normalize them."""

from __future__ import annotations

import logging
from datetime import datetime

from .errors import ChannelAccessError, RecordNormalizationError
from .models import LogRecord, normalize_record
from .sources import EventSource, WindowsEventSource

logger = logging.getLogger(__name__)


class ChannelFetcher:
    """Fetch and normalize the newest records of a channel.

    Failures stay local: a bad record is skipped, an unreadable channel
    yields an empty list. The fetcher never touches shared state; results
    are returned to the caller.
    """

    def __init__(self, source: EventSource | None = None) -> None:
        self.source = source or WindowsEventSource()

    def fetch(
        self,
        channel_name: str,
        max_records: int,
        *,
        now: datetime | None = None,
    ) -> list[LogRecord]:
        if max_records < 0:
            raise ValueError("max_records must be >= 0")
        if max_records == 0:
            return []

        out: list[LogRecord] = []
        skipped = 0
        try:
            for raw in self.source.read(channel_name):
                try:
                    out.append(normalize_record(raw, channel=channel_name, now=now))
                except RecordNormalizationError as e:
                    skipped += 1
                    logger.debug("%s", e)
                    continue
                if len(out) >= max_records:
                    break
        except (ChannelAccessError, OSError) as e:
            logger.warning("Could not read channel %s: %s", channel_name, e)
            return []

        if skipped:
            logger.debug("Skipped %d malformed events in %s", skipped, channel_name)
        return out
