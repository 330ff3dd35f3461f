"""Event sources: the OS log readers the fetcher pulls raw events from.

The Windows implementation uses the pywin32 ``win32evtlog`` bindings for the
Windows Event Log API (``EvtQuery``/``EvtNext``/``EvtRender``/``EvtFormatMessage``),
which reads both classic logs (System, Application, Security) and the newer
operational channels such as ``Microsoft-Windows-DNS-Client/Operational``.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterator
from datetime import datetime
from typing import Any, Protocol

from .errors import ChannelAccessError
from .models import Level, RawEvent

logger = logging.getLogger(__name__)

EVENT_NS = {"e": "http://schemas.microsoft.com/win/2004/08/events/event"}
BATCH_SIZE = 64
ERROR_NO_MORE_ITEMS = 259

# Numeric <Level> values used when the publisher cannot format a display name.
_LEVEL_BY_NUMBER = {
    1: Level.CRITICAL.value,
    2: Level.ERROR.value,
    3: Level.WARNING.value,
    4: Level.INFORMATION.value,
    5: Level.VERBOSE.value,
}


class EventSource(Protocol):
    """Reader interface: yield raw events of a channel, newest first."""

    def read(self, channel: str) -> Iterator[RawEvent]:
        """Yield events newest first; raise ChannelAccessError if the channel is unreadable."""
        ...


def parse_event_xml(xml_text: str) -> dict[str, Any]:
    """Extract the <System> fields of a rendered event."""
    root = ET.fromstring(xml_text)
    sysn = root.find("e:System", EVENT_NS)
    out: dict[str, Any] = {
        "time": None,
        "event_id": 0,
        "level": None,
        "provider": None,
        "computer": None,
        "user": None,
    }
    if sysn is None:
        return out

    provider = sysn.find("e:Provider", EVENT_NS)
    if provider is not None:
        out["provider"] = provider.get("Name")

    eventid = sysn.find("e:EventID", EVENT_NS)
    if eventid is not None and (eventid.text or "").strip().isdigit():
        out["event_id"] = int(eventid.text)

    level = sysn.find("e:Level", EVENT_NS)
    if level is not None and (level.text or "").strip().isdigit():
        out["level"] = int(level.text)

    time_created = sysn.find("e:TimeCreated", EVENT_NS)
    if time_created is not None and time_created.get("SystemTime"):
        stamp = time_created.get("SystemTime").replace("Z", "+00:00")
        out["time"] = datetime.fromisoformat(stamp).astimezone()

    computer = sysn.find("e:Computer", EVENT_NS)
    if computer is not None:
        out["computer"] = computer.text

    security = sysn.find("e:Security", EVENT_NS)
    if security is not None:
        out["user"] = security.get("UserID")

    return out


class WindowsEventSource:
    """EventSource backed by the Windows Event Log API (pywin32)."""

    def __init__(self, *, batch_size: int = BATCH_SIZE) -> None:
        self.batch_size = batch_size

    def read(self, channel: str) -> Iterator[RawEvent]:
        try:
            import pywintypes
            import win32evtlog
        except ImportError as e:
            raise ChannelAccessError(
                channel,
                "pywin32 is required to read Windows event logs. Install with: pip install pywin32",
            ) from e

        flags = win32evtlog.EvtQueryChannelPath | win32evtlog.EvtQueryReverseDirection
        try:
            query = win32evtlog.EvtQuery(channel, flags, "*")
        except pywintypes.error as e:
            raise ChannelAccessError(channel, str(e)) from e

        publishers: dict[str, Any] = {}
        while True:
            try:
                events = win32evtlog.EvtNext(query, self.batch_size)
            except pywintypes.error as e:
                if e.winerror == ERROR_NO_MORE_ITEMS:
                    return
                raise ChannelAccessError(channel, str(e)) from e
            if not events:
                return

            for handle in events:
                try:
                    raw = self._render(win32evtlog, handle, publishers)
                except (pywintypes.error, ET.ParseError, ValueError) as e:
                    logger.debug("Skipping unreadable event in %s: %s", channel, e)
                    continue
                yield raw

    def _render(self, win32evtlog: Any, handle: Any, publishers: dict[str, Any]) -> RawEvent:
        fields = parse_event_xml(win32evtlog.EvtRender(handle, win32evtlog.EvtRenderEventXml))
        provider = fields["provider"]

        level_name = None
        description = None
        metadata = self._publisher(win32evtlog, provider, publishers)
        if metadata is not None:
            level_name = self._format(win32evtlog, metadata, handle, win32evtlog.EvtFormatMessageLevel)
            description = self._format(win32evtlog, metadata, handle, win32evtlog.EvtFormatMessageEvent)
        if not level_name and fields["level"] is not None:
            level_name = _LEVEL_BY_NUMBER.get(fields["level"])

        return RawEvent(
            time=fields["time"],
            event_id=fields["event_id"],
            level_name=level_name,
            provider_name=provider,
            description=description,
            host=fields["computer"],
            user=fields["user"],
        )

    @staticmethod
    def _publisher(win32evtlog: Any, provider: str | None, cache: dict[str, Any]) -> Any:
        """Open (once per read) the publisher metadata used to format messages."""
        if not provider:
            return None
        if provider not in cache:
            import pywintypes

            try:
                cache[provider] = win32evtlog.EvtOpenPublisherMetadata(provider)
            except pywintypes.error as e:  # publisher not registered on this host
                logger.debug("No publisher metadata for %s: %s", provider, e)
                cache[provider] = None
        return cache[provider]

    @staticmethod
    def _format(win32evtlog: Any, metadata: Any, handle: Any, flags: int) -> str | None:
        import pywintypes

        try:
            return win32evtlog.EvtFormatMessage(metadata, handle, flags)
        except pywintypes.error as e:  # message resource missing
            logger.debug("EvtFormatMessage failed: %s", e)
            return None
