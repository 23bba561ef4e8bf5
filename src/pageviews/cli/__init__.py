"""Command-line interface of pageviews.

The `pageviews` group gathers the commands operating on the hourly dumps:

    run           download the dumps and merge them into the store
    ingest        merge the dumps already present in a directory
    setup-index   create the store index before the first ingestion
    expand        print the names a template expands to

Each command lives in its own module and registers itself on the group
when imported.
"""

from importlib.metadata import version

import click

_DISTRIBUTION = "pageviews"


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(message="%(version)s", package_name=_DISTRIBUTION)
def cli() -> None:
    """Download hourly pageview dumps and merge them into a document store.

    Start with `pageviews setup-index`, then `pageviews run` with the
    years, months, days and hours to fetch.
    """


@cli.command(hidden=True)
def help() -> None:
    """Point to the --help options."""
    click.echo('Run "pageviews --help" to list the commands.')
    click.echo('Run "pageviews COMMAND --help" for the options of a command.')


@cli.command("version")
def version_cmd() -> None:
    """Print the installed pageviews version."""
    click.echo(version(_DISTRIBUTION))


from . import expand as _expand  # noqa: E402, F401
from . import ingest as _ingest  # noqa: E402, F401
from . import run as _run  # noqa: E402, F401
from . import setup_index as _setup_index  # noqa: E402, F401
