"""Run command."""

from contextlib import nullcontext

import click
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TransferSpeedColumn,
)

from ..errors import PageviewsError
from ..pipeline import PageviewsPipeline
from . import cli
from .logger import configure_logging
from .options import config_option, create_store, load_settings, report, store_layer, store_options


@cli.command()
@config_option
@click.option("--download/--no-download", default=None, help="Download the files [default: yes].")
@click.option(
    "--ingest/--no-ingest", default=None, help="Merge the files into the store [default: yes]."
)
@click.option("--source", default=None, metavar="TEMPLATE", help="URL template of remote files.")
@click.option(
    "--output", default=None, metavar="TEMPLATE", help="File name template of the local files."
)
@click.option(
    "-d", "--destination", default=None, metavar="DIR", help="Data directory [default: ./data]."
)
@click.option("--years", default=None, metavar="RANGE", help="Years rule [default: b:2016-2016].")
@click.option("--months", default=None, metavar="RANGE", help="Months rule [default: f:1-1].")
@click.option("--days", default=None, metavar="RANGE", help="Days rule [default: j:1-31].")
@click.option("--hours", default=None, metavar="RANGE", help="Hours rule [default: l:0-23].")
@click.option(
    "--concurrent-downloads",
    type=int,
    default=None,
    help="Number of parallel downloads [default: 3].",
)
@click.option(
    "--compression",
    type=click.Choice(["gz", "zip", "none"]),
    default=None,
    help="Compression of the remote files [default: gz].",
)
@click.option("--overwrite/--no-overwrite", default=None, help="Download existing files again.")
@store_options
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose mode.")
def run(config_file: str | None, verbose: bool, **options) -> None:
    """Download the pageview dumps and merge them into the store.

    The source and output templates are expanded using the years, months,
    days and hours rules. A rule such as `b:2016-2017` replaces every run
    of `b` characters with the zero-padded years 2016 and 2017.
    """
    console = configure_logging(verbose)
    settings = load_settings(
        config_file,
        {
            "tasks": {
                "download": options["download"],
                "ingest": options["ingest"],
            },
            "download": {
                "source": options["source"],
                "output": options["output"],
                "destination": options["destination"],
                "years": options["years"],
                "months": options["months"],
                "days": options["days"],
                "hours": options["hours"],
                "concurrent": options["concurrent_downloads"],
                "compression": options["compression"],
                "overwrite": options["overwrite"],
            },
        },
        store_layer(options),
    )

    store = create_store(settings) if settings.tasks.ingest else None
    progress = (
        Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=console,
        )
        if settings.tasks.download
        else None
    )
    with progress if progress is not None else nullcontext():
        pipe = PageviewsPipeline(settings, store=store, progress=progress)
        try:
            results = pipe.run()
        except PageviewsError as exc:
            raise click.ClickException(str(exc)) from exc

    report(results, "Ingested" if settings.tasks.ingest else "Downloaded")
