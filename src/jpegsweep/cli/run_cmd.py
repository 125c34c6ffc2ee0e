"""Exhaustive encode sweep command."""

import click

from .utils import handle_generic_error, handle_keyboard_interrupt, resolve_start_method


@click.command()
@click.option(
    "--min-size",
    type=click.IntRange(min=1),
    default=None,
    help="Smallest width/height to test (default: 1)",
)
@click.option(
    "--max-size",
    type=click.IntRange(min=1),
    default=None,
    help="Largest width/height to test (default: 32)",
)
@click.option(
    "--start-method",
    type=click.Choice(["fork", "spawn", "forkserver"]),
    default=None,
    help="multiprocessing start method for trial processes (default: fork)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print the number of trials and exit without running them",
)
def run(
    min_size: int | None,
    max_size: int | None,
    start_method: str | None,
    dry_run: bool,
) -> None:
    """Encode every size/format/subsampling/huffman combination.

    Each trial runs in its own process and prints one line to stdout ending
    in "success" or an error description. Grep for lines not ending in
    "success" to find failing configurations.
    """
    from ..config import DEFAULT_SWEEP_CONFIG, SweepConfig
    from ..sweep import count_trials, run_sweep

    try:
        sweep_config = SweepConfig(
            MIN_SIZE=min_size if min_size is not None else DEFAULT_SWEEP_CONFIG.MIN_SIZE,
            MAX_SIZE=max_size if max_size is not None else DEFAULT_SWEEP_CONFIG.MAX_SIZE,
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    if dry_run:
        click.echo(f"Trials: {count_trials(sweep_config)}")
        return

    start_method = resolve_start_method(start_method)

    try:
        run_sweep(sweep_config, start_method=start_method)
    except KeyboardInterrupt:
        handle_keyboard_interrupt("Sweep")
    except Exception as e:
        handle_generic_error("Sweep", e)
