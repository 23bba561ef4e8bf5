"""Package for merging records into the document store.

Every entity (e.g. `en:Main_Page`) maps to exactly one document whose id
is the SHA-1 of the entity key. The document holds the entity key and an
append-only series of `{date, count}` entries:

    {
      "article": "en:Main_Page",
      "exact_article": "en:Main_Page",
      "counts": [
        {"date": "2016-07-21T11:00:00Z", "count": 242332}
      ]
    }

Records are merged in bulk: for each record, either append its entry to
the series of the existing document, or create the document with a single
entry series. Since the id only depends on the entity key, repeated runs
(and runs from different processes) always target the same document.
Note that merging the same record twice appends a duplicate entry.

The `DocumentStore` protocol describes what the ingest stage needs from a
store, and `ElasticsearchStore` implements it using the bulk API of an
Elasticsearch-compatible server.
"""

from .client import DocumentStore, ElasticsearchStore
from .documents import MergeOperation, document_id, merge_operations

__all__ = [
    "DocumentStore",
    "ElasticsearchStore",
    "MergeOperation",
    "document_id",
    "merge_operations",
]
