"""Process isolation for encode trials.

Each trial runs in its own child process so that a driver fault, an abort
inside the codec or any other process-killing failure ends only that trial.
The parent never initializes CUDA; it only starts the child, waits for it and
makes sure the trial's stdout line gets completed.
"""

from __future__ import annotations

import logging
import multiprocessing as mp
import signal
import sys
from collections.abc import Callable

import click

from .codec import CodecBackend
from .config import EncoderConfig, IsolationConfig
from .error_handling import IsolationError, error_context
from .trial import TrialConfig, TrialOutcome, execute_trial

logger = logging.getLogger(__name__)


def describe_exit(exitcode: int | None) -> str:
    """Describe how a child process ended, as printed on its trial line."""
    if exitcode is None:
        return "did not exit"
    if exitcode < 0:
        try:
            name = signal.Signals(-exitcode).name
        except ValueError:
            name = str(-exitcode)
        return f"terminated by signal {name}"
    return f"exited with status {exitcode}"


def run_isolated(
    config: TrialConfig,
    backend_factory: Callable[[], CodecBackend] | None = None,
    encoder_config: EncoderConfig | None = None,
    start_method: str | None = None,
) -> TrialOutcome:
    """Run one trial in a fresh child process and wait for it to end.

    The child writes the trial's stdout line. If it ends without completing
    that line, because it was killed or died on an unexpected error, the
    parent completes it with a description of how the child exited.

    Args:
        config: Configuration to encode
        backend_factory: Zero-argument callable building the codec backend in
            the child (defaults to the nvJPEG backend)
        encoder_config: Encoder constants (defaults to DEFAULT_ENCODER_CONFIG)
        start_method: multiprocessing start method (defaults to IsolationConfig)

    Returns:
        Outcome derived from the child's exit status

    Raises:
        IsolationError: The child process could not be started.
    """
    ctx = mp.get_context(start_method or IsolationConfig().START_METHOD)
    reported = ctx.Value("b", 0)

    # Anything buffered here would otherwise be duplicated into a forked child
    sys.stdout.flush()
    sys.stderr.flush()

    process = ctx.Process(
        target=execute_trial,
        args=(config, backend_factory, encoder_config, reported),
        name=f"trial[{config.label}]",
    )
    with error_context(
        "start trial process", IsolationError, context={"trial": config.label}, logger=logger
    ):
        process.start()

    process.join()
    exitcode = process.exitcode
    process.close()

    diagnostic = "success" if exitcode == 0 else describe_exit(exitcode)
    if not reported.value:
        click.echo(describe_exit(exitcode))
        logger.warning(f"Trial process for {config.label} {describe_exit(exitcode)}")
    else:
        logger.debug(f"Trial process for {config.label} {describe_exit(exitcode)}")

    return TrialOutcome(
        config=config,
        succeeded=exitcode == 0,
        diagnostic=diagnostic,
        exitcode=exitcode,
    )
