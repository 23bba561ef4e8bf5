"""Module to turn hourly pageview dumps into records.

A dump file contains one line per page, with whitespace-separated fields:

    en Main_Page 242332 4737756101

that is, the project, the page title, the number of views and the number
of bytes transferred. The hour the counts refer to is not part of the
line: it is encoded in the file name as YYYY-MM-DD-HH.
"""

from __future__ import annotations

import codecs
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Final

from .errors import MalformedLineError, MissingDateError

_FILE_DATE_RE: Final = re.compile(r"(\d{4})\D(\d{2})\D(\d{2})\D(\d{2})")

DEFAULT_CHUNK_SIZE: Final[int] = 64 * 1024


@dataclass(frozen=True, kw_only=True)
class Record:
    """Views of a single entity during a single hour."""

    entity_key: str
    timestamp: datetime
    count: int


def parse_line(line: str, timestamp: datetime) -> Record:
    """
    Parse a single dump line into a Record for the given hour.

    Raises:
        MalformedLineError: if the line has fewer than three fields or
            the count is not a non-negative integer.
    """
    fields = line.split()
    if len(fields) < 3:
        raise MalformedLineError(f"expected at least 3 fields, got {len(fields)}: {line!r}")
    project, title, views = fields[0], fields[1], fields[2]
    if not views.isascii() or not views.isdigit():
        raise MalformedLineError(f"invalid count {views!r}: {line!r}")
    return Record(entity_key=f"{project}:{title}", timestamp=timestamp, count=int(views))


def parse_file_date(path: str | Path) -> datetime:
    """
    Return the UTC hour encoded in the file name as YYYY-MM-DD-HH.

    Any single non-digit character may separate the components and the
    date may be surrounded by other text (e.g. `pageviews-2016-07-21-11.csv`).

    Raises:
        MissingDateError: if the file name does not contain a valid date.
    """
    name = Path(path).name
    match = _FILE_DATE_RE.search(name)
    if match is None:
        raise MissingDateError(f"no YYYY-MM-DD-HH date in file name: {name}")
    year, month, day, hour = (int(group) for group in match.groups())
    try:
        return datetime(year, month, day, hour, tzinfo=timezone.utc)
    except ValueError as exc:
        raise MissingDateError(f"invalid date in file name: {name}: {exc}") from exc


def iter_file_chunks(path: str | Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """Lazily read the file at path in chunks of at most chunk_size bytes."""
    with open(path, "rb") as filep:
        while chunk := filep.read(chunk_size):
            yield chunk


def iter_line_batches(
    chunks: Iterable[bytes],
    buffer_size: int,
    *,
    encoding: str = "utf-8",
) -> Iterator[list[str]]:
    """
    Regroup a stream of byte chunks into batches of complete lines.

    Each batch holds at most buffer_size lines; only the last one may be
    shorter. A line split across two chunks is reassembled before being
    emitted, and a final line without a trailing newline is emitted too.

    The generator only pulls the next chunk when the consumer asks for the
    next batch, so at most one batch (plus one chunk) is held in memory
    and reading pauses while the consumer processes a batch.
    """
    if buffer_size < 1:
        raise ValueError(f"buffer_size must be positive, got {buffer_size}")

    decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
    carry = ""
    lines: list[str] = []

    for chunk in chunks:
        pieces = (carry + decoder.decode(chunk)).split("\n")
        carry = pieces.pop()
        for line in pieces:
            lines.append(line)
            if len(lines) >= buffer_size:
                yield lines
                lines = []

    carry += decoder.decode(b"", final=True)
    if carry:
        lines.append(carry)
    if lines:
        yield lines
