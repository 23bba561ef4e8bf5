"""Options and helpers shared by the pageviews commands."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import click

from ..config import Settings, load_config_file, resolve_settings
from ..errors import PageviewsError
from ..pipeline import PipelineResult
from ..store import ElasticsearchStore

# Connection pool size when every ingestion runs at once.
_UNBOUNDED_POOL_SIZE = 64


def _parse_concurrency(ctx: click.Context, param: click.Parameter, value: str | None):
    if value is None or value == "all":
        return value
    try:
        return int(value)
    except ValueError as exc:
        raise click.BadParameter(f"expected a number or 'all', got {value!r}") from exc


def config_option(func: Callable) -> Callable:
    """Add the -c/--config option."""
    return click.option(
        "-c",
        "--config",
        "config_file",
        default=None,
        metavar="FILE",
        help="YAML or JSON settings file overridden by the command line.",
    )(func)


def store_options(func: Callable) -> Callable:
    """Add the options selecting and configuring the document store."""
    decorators = [
        click.option("--es-address", default=None, help="Store address [default: localhost]."),
        click.option("--es-port", type=int, default=None, help="Store port [default: 9200]."),
        click.option("--es-index", default=None, help="Store index [default: wikiviews]."),
        click.option("--es-type", default=None, help="Optional mapping type of the documents."),
        click.option(
            "--concurrent-insertions",
            default=None,
            callback=_parse_concurrency,
            metavar="N|all",
            help="Number of files ingested at once [default: 2].",
        ),
        click.option(
            "--batch",
            type=int,
            default=None,
            help="Number of lines merged with a single request [default: 10000].",
        ),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def store_layer(options: dict[str, Any]) -> dict[str, Any]:
    """Return the settings layer built from the store_options values."""
    return {
        "store": {
            "address": options.get("es_address"),
            "port": options.get("es_port"),
            "index": options.get("es_index"),
            "doc_type": options.get("es_type"),
            "concurrent": options.get("concurrent_insertions"),
            "batch": options.get("batch"),
        }
    }


def load_settings(config_file: str | None, *layers: dict[str, Any]) -> Settings:
    """Resolve the settings, turning any error into a click usage failure."""
    try:
        base = load_config_file(config_file) if config_file else {}
        return resolve_settings(base, *layers)
    except PageviewsError as exc:
        raise click.ClickException(str(exc)) from exc


def create_store(settings: Settings) -> ElasticsearchStore:
    """Create the store described by the settings."""
    store = settings.store
    return ElasticsearchStore(
        address=store.address,
        port=store.port,
        index=store.index,
        doc_type=store.doc_type,
        pool_size=store.concurrent or _UNBOUNDED_POOL_SIZE,
    )


def report(results: list[PipelineResult], done: str) -> None:
    """Print a summary of the results and exit with 1 if any failed."""
    failed = [result for result in results if not result.ok]
    click.echo(f"{done} {len(results) - len(failed)}/{len(results)} file(s).")

    if failed:
        click.echo(f"{len(failed)} file(s) failed:", err=True)
        for result in failed:
            click.echo(f"  {result.source}: {result.error}", err=True)
        raise SystemExit(1)
