"""CSV export of the loaded channel collections."""

from __future__ import annotations

import asyncio
import contextlib
import csv
import io
import logging
import os
import tempfile
from collections.abc import Mapping, Sequence
from datetime import datetime
from pathlib import Path

import aiofiles
import aiofiles.os

from .errors import ExportError
from .models import LogRecord

logger = logging.getLogger(__name__)

CSV_HEADER = ("Timestamp", "EventID", "Level", "Source", "Computer", "User", "Message")
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
FILENAME_FORMAT = "logs_%Y%m%d_%H%M%S"
TEXT_ENCODING = "utf-8"
MAX_NAME_ATTEMPTS = 1000


def flatten(
    collections: Mapping[str, Sequence[LogRecord]],
    channel_order: Sequence[str] | None = None,
) -> list[LogRecord]:
    """Concatenate channels in ``channel_order`` (mapping order when omitted)."""
    order = list(channel_order) if channel_order is not None else list(collections)
    # Channels missing from the order still go out, after the ordered ones.
    order += [label for label in collections if label not in order]
    out: list[LogRecord] = []
    for label in order:
        out.extend(collections.get(label, ()))
    return out


def export_csv(
    collections: Mapping[str, Sequence[LogRecord]],
    channel_order: Sequence[str] | None = None,
) -> str:
    """Serialize every record to CSV text.

    Text fields are double-quoted with embedded quotes doubled; EventID is
    written as a bare integer.
    """
    buf = io.StringIO()
    buf.write(",".join(CSV_HEADER) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for r in flatten(collections, channel_order):
        writer.writerow(
            [
                r.timestamp.strftime(TIMESTAMP_FORMAT),
                int(r.event_id),
                r.level,
                r.source,
                r.host,
                r.user,
                r.message,
            ]
        )
    return buf.getvalue()


def export_filename(now: datetime) -> str:
    return now.strftime(FILENAME_FORMAT) + ".csv"


def _candidate(directory: Path, filename: str, n: int) -> Path:
    """``directory/filename`` for n == 0, else the name suffixed with ``_n``."""
    target = directory / filename
    if n == 0:
        return target
    return directory / f"{target.stem}_{n}{target.suffix}"


def _make_temp(directory: Path) -> Path:
    fd, name = tempfile.mkstemp(dir=directory, prefix=".logs_", suffix=".tmp")
    os.close(fd)
    return Path(name)


async def _publish(tmp: Path, directory: Path, filename: str) -> Path:
    """Hard-link ``tmp`` under the first free name; an existing file is never replaced."""
    for n in range(MAX_NAME_ATTEMPTS):
        target = _candidate(directory, filename, n)
        try:
            await asyncio.to_thread(os.link, tmp, target)
        except FileExistsError:
            continue
        return target
    raise FileExistsError(f"No free export name for {filename} in {directory}")


async def write_export(
    payload: str,
    directory: str | Path,
    *,
    now: datetime | None = None,
) -> Path:
    """Write ``payload`` to a new timestamped CSV file under ``directory``.

    The payload goes to a private temporary file first, which is then linked
    into place under a free name, so a failed export leaves nothing behind
    and concurrent exports in the same second get ``_1``, ``_2``... suffixes.
    Raises ExportError with the cause.
    """
    directory = Path(directory).expanduser()
    now = now or datetime.now()
    tmp: Path | None = None
    try:
        await aiofiles.os.makedirs(directory, exist_ok=True)
        tmp = await asyncio.to_thread(_make_temp, directory)
        async with aiofiles.open(tmp, mode="w", encoding=TEXT_ENCODING, newline="") as f:
            await f.write(payload)
        target = await _publish(tmp, directory, export_filename(now))
    except OSError as e:
        raise ExportError(str(e)) from e
    finally:
        if tmp is not None:
            with contextlib.suppress(OSError):
                await aiofiles.os.remove(tmp)

    logger.info("Exported CSV to %s", target)
    return target
