"""CLI module for jpegsweep commands.

Running ``jpegsweep`` without a command starts the full sweep, exactly as
``jpegsweep run`` does.
"""

import click

from .. import __version__
from .deps_cmd import deps
from .run_cmd import run
from .trial_cmd import trial
from .utils import setup_logging


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="jpegsweep")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """🧪 jpegsweep: exhaustive nvJPEG encode conformance sweep."""
    setup_logging(verbose)
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


main.add_command(run)
main.add_command(trial)
main.add_command(deps)

__all__ = [
    "deps",
    "main",
    "run",
    "trial",
]
