"""Expand command."""

import click

from ..errors import PageviewsError
from ..pattern import expand as expand_template
from ..pattern import parse_rule
from . import cli


@cli.command()
@click.argument("template")
@click.argument("ranges", nargs=-1, metavar="RANGE...")
@click.option("--pad-char", default="0", show_default=True, help="Character used for padding.")
def expand(template: str, ranges: tuple[str, ...], pad_char: str) -> None:
    """Print the expansion of TEMPLATE, one name per line.

    Each RANGE has the form TOKEN:LOW-HIGH, for example:

    \b
        pageviews expand pageviews-bbbbff.gz b:2016-2016 f:1-12
    """
    try:
        rules = [parse_rule(spec, pad_char=pad_char) for spec in ranges]
        names = expand_template(template, rules)
    except PageviewsError as exc:
        raise click.ClickException(str(exc)) from exc
    for name in names:
        click.echo(name)
