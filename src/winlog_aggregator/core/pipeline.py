"""Aggregation pipeline: fan out one fetch per channel, join, publish a snapshot.

Collections are never mutated in place. Each refresh builds new per-channel
tuples and swaps a whole snapshot in at once, so readers see either the old
or the new state of a channel, never a mix. Overlapping refreshes are
ordered by generation: a refresh only publishes if nothing started after it
has published already.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from types import MappingProxyType

from .config import AggregatorConfig, ChannelSpec, resolve_config
from .fetcher import ChannelFetcher
from .models import ChannelMetrics, LogRecord, compute_metrics
from .sources import EventSource

logger = logging.getLogger(__name__)

ChannelCollections = Mapping[str, tuple[LogRecord, ...]]


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Immutable view of every channel collection and its metrics."""

    generation: int
    collections: ChannelCollections
    metrics: Mapping[str, ChannelMetrics]


@dataclass(frozen=True, slots=True)
class RefreshResult:
    snapshot: Snapshot
    published: bool  # False when a newer refresh or clear won the race


Listener = Callable[[Snapshot], None]


def _build_snapshot(
    generation: int,
    collections: Mapping[str, tuple[LogRecord, ...]],
    *,
    now: datetime | None = None,
) -> Snapshot:
    now = now or datetime.now().astimezone()
    return Snapshot(
        generation=generation,
        collections=MappingProxyType(dict(collections)),
        metrics=MappingProxyType(
            {label: compute_metrics(label, records, now=now) for label, records in collections.items()}
        ),
    )


class AggregationPipeline:
    """Owns the per-channel collections and refreshes them from the event log."""

    def __init__(
        self,
        config: AggregatorConfig | None = None,
        *,
        fetcher: ChannelFetcher | None = None,
        source: EventSource | None = None,
    ) -> None:
        self.config = config or resolve_config()
        self.fetcher = fetcher or ChannelFetcher(source)
        self._lock = threading.Lock()
        self._started = 0
        self._snapshot = _build_snapshot(0, {c.label: () for c in self.config.channels})
        self._listeners: list[Listener] = []

    @property
    def channels(self) -> tuple[ChannelSpec, ...]:
        return self.config.channels

    def snapshot(self) -> Snapshot:
        return self._snapshot

    def collections(self) -> ChannelCollections:
        return self._snapshot.collections

    def metrics(self) -> Mapping[str, ChannelMetrics]:
        return self._snapshot.metrics

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback run after every publish; returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _next_generation(self) -> int:
        with self._lock:
            self._started += 1
            return self._started

    def _publish(self, snapshot: Snapshot) -> bool:
        with self._lock:
            if snapshot.generation <= self._snapshot.generation:
                return False
            self._snapshot = snapshot
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener %r failed", listener)
        return True

    async def refresh(self, channels: Iterable[ChannelSpec] | None = None) -> RefreshResult:
        """Fetch every channel concurrently and publish the results.

        Channels not named in ``channels`` keep their current collection.
        """
        specs = tuple(channels) if channels is not None else self.config.channels
        generation = self._next_generation()
        logger.info("Refreshing %d channels (generation %d)", len(specs), generation)

        fetched: dict[str, tuple[LogRecord, ...]] = {}
        if specs:
            loop = asyncio.get_running_loop()
            executor = ThreadPoolExecutor(max_workers=min(self.config.worker_count(), len(specs)))
            try:
                results = await asyncio.gather(
                    *(
                        loop.run_in_executor(
                            executor,
                            partial(self.fetcher.fetch, spec.name, spec.max_records),
                        )
                        for spec in specs
                    ),
                    return_exceptions=True,
                )
            finally:
                executor.shutdown(wait=True)

            for spec, result in zip(specs, results):
                if isinstance(result, BaseException):
                    logger.error("Fetch of %s failed: %s", spec.label, result)
                    fetched[spec.label] = ()
                else:
                    fetched[spec.label] = tuple(result)

        merged = dict(self._snapshot.collections)
        merged.update(fetched)
        snapshot = _build_snapshot(generation, merged)
        published = self._publish(snapshot)
        if published:
            logger.info(
                "Loaded %d events across %d channels",
                sum(len(v) for v in fetched.values()),
                len(fetched),
            )
        else:
            logger.info("Discarding refresh generation %d; a newer state was published", generation)
        return RefreshResult(snapshot=snapshot, published=published)

    def clear(self) -> Snapshot:
        """Empty every collection; in-flight refreshes started earlier are discarded."""
        generation = self._next_generation()
        snapshot = _build_snapshot(generation, {label: () for label in self._snapshot.collections})
        self._publish(snapshot)
        logger.info("Cleared all channels")
        return snapshot
