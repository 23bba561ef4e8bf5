"""Module containing the pageviews settings.

Settings are assembled from layers of plain mappings (e.g. the content of
a YAML or JSON file, followed by the command line options). Later layers
override earlier ones, `None` values are ignored, and the fields missing
from every layer take their default value:

    settings = resolve_settings(load_config_file(path), {"store": {"batch": 500}})

The resulting Settings are immutable.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

import dacite
import yaml

from .errors import ConfigError
from .pattern import Rule, parse_rule

DEFAULT_SOURCE: Final[str] = (
    "https://dumps.wikimedia.org/other/pageviews/bbbb/bbbb-ff/pageviews-bbbbffjj-ll0000.gz"
)
DEFAULT_OUTPUT: Final[str] = "bbbb-ff-jj-ll.csv"

# Compression tokens of the remote files, None meaning uncompressed.
COMPRESSIONS: Final[frozenset[str | None]] = frozenset({"gz", "zip", None})


@dataclass(frozen=True, kw_only=True)
class TasksSettings:
    """Which stages of the pipeline to run."""

    download: bool = True
    ingest: bool = True


@dataclass(frozen=True, kw_only=True)
class DownloadSettings:
    """
    Settings of the download stage.

    Attributes:
        source: URL template of the remote files.
        output: file name template of the local files.
        destination: directory containing the local files.
        years, months, days, hours: expansion rules, in this order.
        concurrent: maximum number of concurrent downloads.
        compression: compression of the remote files (`gz`, `zip` or None).
        overwrite: download again files that already exist.
    """

    source: str = DEFAULT_SOURCE
    output: str = DEFAULT_OUTPUT
    destination: str = "./data"
    years: Rule = parse_rule("b:2016-2016")
    months: Rule = parse_rule("f:1-1")
    days: Rule = parse_rule("j:1-31")
    hours: Rule = parse_rule("l:0-23")
    concurrent: int = 3
    compression: str | None = "gz"
    overwrite: bool = False

    def rules(self) -> list[Rule]:
        """Return the expansion rules, the years varying slowest."""
        return [self.years, self.months, self.days, self.hours]


@dataclass(frozen=True, kw_only=True)
class StoreSettings:
    """
    Settings of the document store and of the ingest stage.

    Attributes:
        address, port: location of the store.
        index: index (or collection) receiving the documents.
        doc_type: optional mapping type, for servers that still need it.
        concurrent: maximum number of concurrent ingestions (None: all).
        batch: number of lines merged with a single bulk request.
    """

    address: str = "localhost"
    port: int = 9200
    index: str = "wikiviews"
    doc_type: str | None = None
    concurrent: int | None = 2
    batch: int = 10000


@dataclass(frozen=True, kw_only=True)
class Settings:
    """The whole pageviews settings."""

    tasks: TasksSettings = field(default_factory=TasksSettings)
    download: DownloadSettings = field(default_factory=DownloadSettings)
    store: StoreSettings = field(default_factory=StoreSettings)


def resolve_settings(*layers: Mapping[str, Any]) -> Settings:
    """
    Merge the layers on top of the defaults and return the Settings.

    Raises:
        RuleParseError: if a range specification is invalid.
        ConfigError: if any other value is invalid.
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        merged = _merge(merged, layer)

    store = merged.get("store")
    if isinstance(store, dict) and store.get("concurrent") == "all":
        merged["store"] = {**store, "concurrent": None}
    download = merged.get("download")
    if isinstance(download, dict) and download.get("compression") in ("none", ""):
        merged["download"] = {**download, "compression": None}

    try:
        settings = dacite.from_dict(
            Settings,
            merged,
            config=dacite.Config(type_hooks={Rule: _coerce_rule}, strict=True),
        )
    except dacite.DaciteError as exc:
        raise ConfigError(f"invalid settings: {exc}") from exc

    _validate(settings)
    return settings


def load_config_file(path: str | Path) -> dict[str, Any]:
    """
    Load a settings layer from a YAML (or JSON) file.

    Raises:
        ConfigError: if the file cannot be read or is not a mapping.
    """
    path = Path(path)
    try:
        content = path.read_text()
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return data


def _coerce_rule(value: object) -> object:
    if isinstance(value, str):
        return parse_rule(value)
    return value


def _merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new dict with override recursively merged into base."""
    result = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = result.get(key)
        if isinstance(value, Mapping):
            result[key] = _merge(current if isinstance(current, Mapping) else {}, value)
        else:
            result[key] = value
    return result


def _validate(settings: Settings) -> None:
    if settings.download.compression not in COMPRESSIONS:
        valid = ", ".join(sorted(token for token in COMPRESSIONS if token))
        raise ConfigError(
            f"download.compression must be one of {valid} or none, "
            f"got {settings.download.compression!r}"
        )
    if settings.download.concurrent < 1:
        raise ConfigError(
            f"download.concurrent must be positive, got {settings.download.concurrent}"
        )
    if settings.store.concurrent is not None and settings.store.concurrent < 1:
        raise ConfigError(
            f"store.concurrent must be positive or 'all', got {settings.store.concurrent}"
        )
    if settings.store.batch < 1:
        raise ConfigError(f"store.batch must be positive, got {settings.store.batch}")
