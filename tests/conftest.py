from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable, Callable, Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from winlog_aggregator.core.config import AggregatorConfig
from winlog_aggregator.core.errors import ChannelAccessError
from winlog_aggregator.core.models import RawEvent
from winlog_aggregator.core.pipeline import AggregationPipeline

BASE_TIME = datetime(2025, 12, 30, 12, 0, 0, tzinfo=timezone.utc)


class FakeEventSource:
    """In-memory EventSource: events per channel (newest first), some channels failing."""

    def __init__(
        self,
        events: dict[str, list[RawEvent]] | None = None,
        *,
        failing: set[str] | None = None,
    ) -> None:
        self.events = events or {}
        self.failing = failing or set()
        self.reads: list[str] = []

    def read(self, channel: str) -> Iterator[RawEvent]:
        self.reads.append(channel)
        if channel in self.failing:
            raise ChannelAccessError(channel, "Access is denied.")
        yield from self.events.get(channel, [])


def make_raw(
    i: int,
    level: str | None = "Information",
    *,
    message: str | None = None,
    provider: str | None = "Service Control Manager",
) -> RawEvent:
    return RawEvent(
        time=BASE_TIME - timedelta(minutes=i),
        event_id=7000 + i,
        level_name=level,
        provider_name=provider,
        description=message if message is not None else f"event {i}",
        host="WS01",
    )


def channel_events(levels: list[str]) -> list[RawEvent]:
    return [make_raw(i, level) for i, level in enumerate(levels)]


class GatedSource:
    """Source whose first read blocks until ``gate`` is set; read N yields event N."""

    def __init__(self) -> None:
        self.gate = threading.Event()
        self.reads: list[str] = []

    def read(self, channel: str) -> Iterator[RawEvent]:
        self.reads.append(channel)
        call = len(self.reads)
        if call == 1:
            self.gate.wait(timeout=5)
        yield make_raw(call)


async def _wait_for_reads(source: GatedSource | FakeEventSource, n: int) -> None:
    for _ in range(500):
        if len(source.reads) >= n:
            return
        await asyncio.sleep(0.01)
    raise AssertionError("source was not read")


@pytest.fixture
def make_source() -> Callable[..., FakeEventSource]:
    return FakeEventSource


@pytest.fixture
def five_channel_source() -> FakeEventSource:
    """Healthy data on four default channels; Security is access-denied."""
    return FakeEventSource(
        {
            "Microsoft-Windows-Windows Firewall With Advanced Security/Firewall": channel_events(
                ["Information", "Warning"]
            ),
            "Microsoft-Windows-DNS-Client/Operational": channel_events(["Information"]),
            "Application": channel_events(["Error", "Warning", "Information"]),
            "System": channel_events(["Critical", "Error", "Information", "Information"]),
        },
        failing={"Security"},
    )


@pytest.fixture
def pipeline(five_channel_source: FakeEventSource, tmp_path: Path) -> AggregationPipeline:
    return AggregationPipeline(
        AggregatorConfig(export_dir=tmp_path),
        source=five_channel_source,
    )


@pytest.fixture
def raw_event() -> Callable[..., RawEvent]:
    return make_raw


@pytest.fixture
def gated_source() -> Iterator[GatedSource]:
    source = GatedSource()
    yield source
    source.gate.set()


@pytest.fixture
def wait_for_reads() -> Callable[..., Awaitable[None]]:
    """Await until a source has been read ``n`` times."""
    return _wait_for_reads
