"""Shared pytest fixtures for pageviews tests."""

import gzip
from collections.abc import Sequence
from pathlib import Path

import pytest

from pageviews.errors import StoreError
from pageviews.store import MergeOperation


class FakeStore:
    """DocumentStore recording every bulk merge it receives."""

    def __init__(self, fail_on_call: int | None = None):
        self.calls: list[list[MergeOperation]] = []
        self.fail_on_call = fail_on_call

    def bulk_merge(self, operations: Sequence[MergeOperation]) -> int:
        self.calls.append(list(operations))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise StoreError("bulk merge rejected")
        return len(operations)


@pytest.fixture
def fake_store() -> FakeStore:
    """Return a FakeStore accepting every merge."""
    return FakeStore()


@pytest.fixture
def dump_lines() -> list[str]:
    """Return the lines of a small hourly pageviews dump."""
    return [
        "en Main_Page 242332 4737756101",
        "en Special:Search 3417 0",
        "de Hauptseite 100123 0",
        "fr Wikipédia:Accueil_principal 51000 0",
        "commons.m File:Example.jpg 7 0",
    ]


@pytest.fixture
def dump_file(tmp_path: Path, dump_lines: list[str]) -> Path:
    """Write the dump lines into an hourly file and return its path."""
    path = tmp_path / "2016-07-21-11.csv"
    path.write_text("\n".join(dump_lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def gzipped_dump(dump_lines: list[str]) -> bytes:
    """Return the dump lines as a gzip compressed payload."""
    return gzip.compress(("\n".join(dump_lines) + "\n").encode("utf-8"))
