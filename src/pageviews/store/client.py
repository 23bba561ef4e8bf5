"""Module containing the Elasticsearch-compatible DocumentStore."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

import requests
from requests.adapters import HTTPAdapter

from ..errors import StoreError
from .documents import MergeOperation, bulk_body

log = logging.getLogger("store/client")


class DocumentStore(Protocol):
    """
    Represent a store into which records can be merged.

    Methods:
        bulk_merge: apply all the operations with a single round-trip and
            return the number of applied operations. Implementations must
            be safe to call from several threads at once.
    """

    def bulk_merge(self, operations: Sequence[MergeOperation]) -> int: ...


class ElasticsearchStore:
    """
    DocumentStore using the bulk API of an Elasticsearch-compatible server.

    The underlying requests.Session keeps a pool of pool_size connections,
    which should be at least the number of concurrent ingestions.
    """

    def __init__(
        self,
        *,
        address: str = "localhost",
        port: int = 9200,
        index: str,
        doc_type: str | None = None,
        pool_size: int = 10,
        timeout: float = 120.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = _base_url(address, port)
        self.index = index
        self.doc_type = doc_type
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=1, pool_maxsize=pool_size)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

    def __repr__(self) -> str:
        return f"ElasticsearchStore({self.base_url}/{self.index})"

    def bulk_merge(self, operations: Sequence[MergeOperation]) -> int:
        """
        Merge the operations using a single bulk request.

        Raises:
            StoreError: if the request fails or the server reports
                that any of the operations failed.
        """
        if not operations:
            return 0
        body = bulk_body(operations, index=self.index, doc_type=self.doc_type)
        result = self._request(
            "POST",
            "/_bulk",
            data=body.encode("utf-8"),
            headers={"Content-Type": "application/x-ndjson"},
        )
        items = result.get("items", [])
        failures = [item for item in items if _item_error(item) is not None]
        if result.get("errors") or failures:
            first = _item_error(failures[0]) if failures else "unknown error"
            raise StoreError(
                f"bulk merge into {self.index}: {len(failures)}/{len(operations)} "
                f"operations failed (first error: {first})"
            )
        log.debug("bulk merge into %s: %d operations applied", self.index, len(items))
        return len(items)

    def setup_index(self, *, shards: int = 10, replicas: int = 0) -> dict[str, Any]:
        """
        Create the index with the mapping of the time-series documents.

        Raises:
            StoreError: if the index cannot be created (e.g. it exists).
        """
        log.info("creating index %s... start", self.index)
        result = self._request("PUT", f"/{self.index}", json=index_definition(shards, replicas))
        log.info("creating index %s... ok", self.index)
        return result

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = self.base_url + path
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except requests.HTTPError as exc:
            detail = exc.response.text if exc.response is not None else ""
            raise StoreError(f"{method} {url} failed: {exc}: {detail}") from exc
        except (requests.RequestException, ValueError) as exc:
            raise StoreError(f"{method} {url} failed: {exc}") from exc


def index_definition(shards: int, replicas: int) -> dict[str, Any]:
    """Return the settings and mapping used to create the index."""
    return {
        "settings": {
            "number_of_shards": shards,
            "number_of_replicas": replicas,
        },
        "mappings": {
            "properties": {
                "article": {"type": "text"},
                "exact_article": {"type": "keyword"},
                "counts": {
                    "type": "nested",
                    "properties": {
                        "date": {"type": "date", "format": "strict_date_optional_time"},
                        "count": {"type": "long"},
                    },
                },
            }
        },
    }


def _base_url(address: str, port: int) -> str:
    if "://" not in address:
        address = f"http://{address}"
    return f"{address.rstrip('/')}:{port}"


def _item_error(item: dict[str, Any]) -> object | None:
    for action in item.values():
        if isinstance(action, dict) and action.get("error"):
            return action["error"]
    return None
