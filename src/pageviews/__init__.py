"""Wikipedia pageviews library.

This library downloads hourly pageview dumps, whose names follow a regular
pattern, and merges them into a document store as one time series per
article.
"""

from importlib.metadata import PackageNotFoundError, version

from .config import Settings, load_config_file, resolve_settings
from .pattern import Rule, expand, parse_rule
from .pipeline import BoundedScheduler, PageviewsPipeline, PipelineResult, WorkItem
from .store import ElasticsearchStore

try:
    __version__ = version("pageviews")
except PackageNotFoundError:  # pragma: no cover - running from a source tree
    __version__ = "0.0.0"

__all__ = [
    "BoundedScheduler",
    "ElasticsearchStore",
    "PageviewsPipeline",
    "PipelineResult",
    "Rule",
    "Settings",
    "WorkItem",
    "expand",
    "load_config_file",
    "parse_rule",
    "resolve_settings",
    "__version__",
]
