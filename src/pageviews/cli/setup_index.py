"""Setup-index command."""

import click

from ..errors import StoreError
from . import cli
from .logger import configure_logging
from .options import config_option, create_store, load_settings, store_layer, store_options


@cli.command("setup-index")
@config_option
@store_options
@click.option("--shards", default=10, show_default=True, help="Number of primary shards.")
@click.option("--replicas", default=0, show_default=True, help="Number of replicas.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose mode.")
def setup_index(
    config_file: str | None,
    shards: int,
    replicas: int,
    verbose: bool,
    **options,
) -> None:
    """Create the store index with the time-series mapping."""
    configure_logging(verbose)
    settings = load_settings(config_file, store_layer(options))
    store = create_store(settings)
    try:
        store.setup_index(shards=shards, replicas=replicas)
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Created index {settings.store.index}.")
