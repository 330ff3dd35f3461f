from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from winlog_aggregator.core.config import configure_logging, resolve_config
from winlog_aggregator.core.dashboard import STATUS_LOADING, Dashboard
from winlog_aggregator.core.errors import ExportError
from winlog_aggregator.core.filtering import SeverityFilter


def _parse_severity(s: str) -> SeverityFilter:
    try:
        return SeverityFilter.parse(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _non_negative(s: str) -> int:
    value = int(s)
    if value < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return value


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Aggregate recent Windows event log entries.")
    p.add_argument(
        "--severity",
        type=_parse_severity,
        default=SeverityFilter.ALL,
        help="All, Error, Warning or Information (default: All)",
    )
    p.add_argument("--channel", default=None, help="Only show one channel (e.g. Security, DNS)")
    p.add_argument("--max", dest="max_records", type=_non_negative, default=None, help="Records per channel (default: 100)")
    p.add_argument("--limit", type=_non_negative, default=None, help="Rows printed per channel (default: all loaded)")
    p.add_argument(
        "--export",
        nargs="?",
        const="",
        default=None,
        metavar="DIR",
        help="Export all loaded events to CSV (default dir: desktop or WINLOG_EXPORT_DIR)",
    )
    return p


async def run(args: argparse.Namespace) -> int:
    cfg = resolve_config()
    if args.max_records is not None:
        cfg = replace(cfg, channels=tuple(replace(c, max_records=args.max_records) for c in cfg.channels))
    dashboard = Dashboard(config=cfg)

    print(STATUS_LOADING, file=sys.stderr)
    await dashboard.refresh()
    dashboard.set_filter(args.severity)
    view = dashboard.view(channel=args.channel, limit=args.limit)

    for ch in view.channels:
        m = ch.metrics
        print(
            f"== {ch.label}: {m.total_count} events loaded "
            f"(errors {m.error_count}, warnings {m.warning_count}, info {m.info_count}; "
            f"showing {ch.visible_count})"
        )
        for r in ch.records:
            ts = r.timestamp.strftime("%Y-%m-%d %H:%M:%S")
            print(f"{ts} {r.event_id:>6} [{r.level}] {r.source}: {r.message}")

    print(f"\n{view.status}")

    if args.export is not None:
        try:
            result = await dashboard.export(Path(args.export) if args.export else None)
        except ExportError:
            print(dashboard.status, file=sys.stderr)
            return 1
        print(result.status)
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entrypoint: refresh once, print, optionally export."""
    args = build_parser().parse_args(argv)
    configure_logging()
    try:
        code = asyncio.run(run(args))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)
    raise SystemExit(code)


if __name__ == "__main__":
    main()
