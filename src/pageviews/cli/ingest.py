"""Ingest command."""

import click

from ..pipeline import PageviewsPipeline
from . import cli
from .logger import configure_logging
from .options import config_option, create_store, load_settings, report, store_layer, store_options


@cli.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@config_option
@store_options
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose mode.")
def ingest(directory: str, config_file: str | None, verbose: bool, **options) -> None:
    """Merge every file in DIRECTORY into the store.

    The name of each file must contain its hour as YYYY-MM-DD-HH.
    """
    configure_logging(verbose)
    settings = load_settings(config_file, store_layer(options))
    pipe = PageviewsPipeline(settings, store=create_store(settings))
    report(pipe.ingest_directory(directory), "Ingested")
