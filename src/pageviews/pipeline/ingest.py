"""Module implementing the ingest stage."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..errors import MalformedLineError
from ..parsing import (
    DEFAULT_CHUNK_SIZE,
    Record,
    iter_file_chunks,
    iter_line_batches,
    parse_file_date,
    parse_line,
)
from ..store import DocumentStore, merge_operations

log = logging.getLogger("pipeline/ingest")


@dataclass(kw_only=True)
class IngestStats:
    """Counters describing the ingestion of a single file."""

    batches: int = 0
    applied: int = 0
    skipped: int = 0


def ingest_file(
    path: Path,
    store: DocumentStore,
    *,
    batch_size: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Path:
    """
    Merge every line of the file at path into the store and return path.

    Lines are read in batches of batch_size and each batch is merged with
    a single bulk request. The next batch is not read until the current
    one has been merged. Lines that cannot be parsed are skipped and
    counted, and the count is logged once the whole file is merged.

    Raises:
        MissingDateError: if the file name does not contain the hour.
        StoreError: if merging a batch fails. The remaining batches of
            the file are not attempted.
    """
    timestamp = parse_file_date(path)
    stats = IngestStats()

    log.info("ingesting %s... start", path)
    for lines in iter_line_batches(iter_file_chunks(path, chunk_size), batch_size):
        records = _parse_batch(lines, timestamp, stats)
        if not records:
            continue
        stats.applied += store.bulk_merge(merge_operations(records))
        stats.batches += 1
        log.debug("ingesting %s... batch %d: %d records", path, stats.batches, len(records))

    if stats.skipped:
        log.warning("ingesting %s... skipped %d malformed lines", path, stats.skipped)
    log.info(
        "ingesting %s... ok (%d records in %d batches)",
        path,
        stats.applied,
        stats.batches,
    )
    return path


def _parse_batch(lines: list[str], timestamp: datetime, stats: IngestStats) -> list[Record]:
    records: list[Record] = []
    for line in lines:
        try:
            records.append(parse_line(line, timestamp))
        except MalformedLineError as exc:
            stats.skipped += 1
            log.debug("skipping line: %s", exc)
    return records
