"""Module to build idempotent merge operations from records."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Final

from ..parsing import Record

# Appends the new entry to the series of an existing document.
APPEND_COUNT_SCRIPT: Final[str] = "ctx._source.counts.add(params.count)"

# Number of times the server retries an update hitting a version conflict.
RETRY_ON_CONFLICT: Final[int] = 5


def document_id(entity_key: str) -> str:
    """Return the stable document id for the given entity key."""
    return hashlib.sha1(entity_key.encode("utf-8")).hexdigest()


def format_timestamp(timestamp: datetime) -> str:
    """Format a bucket timestamp as an RFC3339 string in UTC."""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)
    return timestamp.strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True, kw_only=True)
class MergeOperation:
    """Append-or-create directive for a single record."""

    document_id: str
    record: Record

    def count_entry(self) -> dict[str, object]:
        """Return the series entry contributed by the record."""
        return {
            "date": format_timestamp(self.record.timestamp),
            "count": self.record.count,
        }

    def upsert_document(self) -> dict[str, object]:
        """Return the document to create when it does not exist yet."""
        return {
            "article": self.record.entity_key,
            "exact_article": self.record.entity_key,
            "counts": [self.count_entry()],
        }


def merge_operations(records: Iterable[Record]) -> list[MergeOperation]:
    """Build one MergeOperation per record, preserving order."""
    return [
        MergeOperation(document_id=document_id(record.entity_key), record=record)
        for record in records
    ]


def bulk_body(
    operations: Sequence[MergeOperation],
    *,
    index: str,
    doc_type: str | None = None,
) -> str:
    """
    Serialize operations as the newline-delimited JSON of a bulk request.

    Each operation becomes an `update` action line followed by a scripted
    upsert body line. The body always ends with a newline.
    """
    lines: list[str] = []
    for operation in operations:
        action: dict[str, object] = {
            "_index": index,
            "_id": operation.document_id,
            "retry_on_conflict": RETRY_ON_CONFLICT,
        }
        if doc_type:
            action["_type"] = doc_type
        body = {
            "script": {
                "source": APPEND_COUNT_SCRIPT,
                "lang": "painless",
                "params": {"count": operation.count_entry()},
            },
            "upsert": operation.upsert_document(),
        }
        lines.append(json.dumps({"update": action}, ensure_ascii=False))
        lines.append(json.dumps(body, ensure_ascii=False))
    return "\n".join(lines) + "\n"
