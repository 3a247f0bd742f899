"""total command: print the aggregate coverage of one trace file."""

from __future__ import annotations

import click

from covlens_core.errors import LcovError
from covlens_core.lcov import total_coverage
from covlens_core.report import format_number


@click.command("total")
@click.argument("trace_file", type=click.Path(exists=True, dir_okay=False))
def total_cmd(trace_file: str):
    """Print the aggregate line coverage of TRACE_FILE as a percentage."""
    try:
        click.echo(format_number(total_coverage(trace_file)))
    except LcovError as e:
        raise click.ClickException(str(e))
