"""Re-run a single configuration, e.g. one that failed during a sweep."""

import sys

import click

from .utils import (
    FORMAT_CHOICES,
    SUBSAMPLING_CHOICES,
    handle_generic_error,
    parse_format,
    parse_subsampling,
    resolve_start_method,
)


@click.command()
@click.argument("width", type=click.IntRange(min=1))
@click.argument("height", type=click.IntRange(min=1))
@click.option(
    "--fmt",
    type=click.Choice(FORMAT_CHOICES, case_sensitive=False),
    default="YUV",
    help="Input pixel format (default: YUV)",
)
@click.option(
    "--css",
    type=click.Choice(SUBSAMPLING_CHOICES),
    default="4:4:4",
    help="Chroma subsampling, only used with YUV (default: 4:4:4)",
)
@click.option("--opt-huffman", is_flag=True, help="Enable optimized Huffman tables")
@click.option(
    "--start-method",
    type=click.Choice(["fork", "spawn", "forkserver"]),
    default=None,
    help="multiprocessing start method for the trial process (default: fork)",
)
def trial(
    width: int,
    height: int,
    fmt: str,
    css: str,
    opt_huffman: bool,
    start_method: str | None,
) -> None:
    """Encode one WIDTH x HEIGHT configuration in an isolated process.

    Prints the same line the sweep would and exits with 0 on success, 1 if
    the trial failed.
    """
    from ..formats import ChromaSubsampling, OutputFormat
    from ..isolation import run_isolated
    from ..trial import TrialConfig

    output_format = parse_format(fmt)
    subsampling = (
        parse_subsampling(css) if output_format is OutputFormat.YUV else ChromaSubsampling.CSS_444
    )
    config = TrialConfig(width, height, opt_huffman, subsampling, output_format)
    start_method = resolve_start_method(start_method)

    try:
        outcome = run_isolated(config, start_method=start_method)
    except Exception as e:
        handle_generic_error("Trial", e)

    if not outcome.succeeded:
        sys.exit(1)
