"""Channel configuration and environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path

DEFAULT_MAX_RECORDS = 100

MAX_RECORDS_ENV = "WINLOG_MAX_RECORDS"
MAX_WORKERS_ENV = "WINLOG_MAX_WORKERS"
EXPORT_DIR_ENV = "WINLOG_EXPORT_DIR"
LOG_LEVEL_ENV = "WINLOG_LOG_LEVEL"


@dataclass(frozen=True, slots=True)
class ChannelSpec:
    """One event log channel to aggregate."""

    name: str  # channel path passed to the OS reader
    label: str  # short display name, also the collection key
    max_records: int = DEFAULT_MAX_RECORDS


DEFAULT_CHANNELS: tuple[ChannelSpec, ...] = (
    ChannelSpec("Security", "Security"),
    ChannelSpec("Microsoft-Windows-Windows Firewall With Advanced Security/Firewall", "Firewall"),
    ChannelSpec("Microsoft-Windows-DNS-Client/Operational", "DNS"),
    ChannelSpec("Application", "Application"),
    ChannelSpec("System", "System"),
)


def default_export_dir() -> Path:
    """The user's desktop folder."""
    return Path.home() / "Desktop"


@dataclass(frozen=True, slots=True)
class AggregatorConfig:
    channels: tuple[ChannelSpec, ...] = DEFAULT_CHANNELS
    max_workers: int | None = None  # None: one worker per channel
    export_dir: Path = field(default_factory=default_export_dir)

    def __post_init__(self) -> None:
        labels = [c.label for c in self.channels]
        if len(set(labels)) != len(labels):
            raise ValueError("channel labels must be unique")
        for c in self.channels:
            if c.max_records < 0:
                raise ValueError(f"max_records must be >= 0 (channel {c.label})")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

    def worker_count(self) -> int:
        if self.max_workers is not None:
            return self.max_workers
        return max(1, len(self.channels))

    def channel(self, label: str) -> ChannelSpec:
        for c in self.channels:
            if c.label.lower() == label.lower():
                return c
        valid = ", ".join(c.label for c in self.channels)
        raise ValueError(f"Unknown channel '{label}'. Valid values: {valid}.")


def _env_int(name: str, *, minimum: int) -> int | None:
    env = os.getenv(name)
    if env is None or env == "":
        return None
    try:
        value = int(env)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def resolve_config(cfg: AggregatorConfig | None = None) -> AggregatorConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = AggregatorConfig()

    max_records = _env_int(MAX_RECORDS_ENV, minimum=0)
    if max_records is not None:
        cfg = replace(
            cfg,
            channels=tuple(replace(c, max_records=max_records) for c in cfg.channels),
        )

    max_workers = _env_int(MAX_WORKERS_ENV, minimum=1)
    if max_workers is not None:
        cfg = replace(cfg, max_workers=max_workers)

    export_dir = os.getenv(EXPORT_DIR_ENV)
    if export_dir:
        cfg = replace(cfg, export_dir=Path(export_dir).expanduser())

    return cfg


def configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
