from __future__ import annotations

"""Sweep driver.

Enumerates every (size, huffman, format, subsampling) combination in a fixed
nested order and hands each one to the isolation wrapper, strictly one at a
time, so device-allocator behaviour stays deterministic and output stays
ordered.
"""

import itertools
import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from .config import DEFAULT_SWEEP_CONFIG, SweepConfig
from .formats import ChromaSubsampling, OutputFormat
from .isolation import run_isolated
from .trial import TrialConfig, TrialOutcome

logger = logging.getLogger(__name__)


@dataclass
class SweepSummary:
    total: int = 0
    succeeded: int = 0
    failed: int = 0

    def record(self, outcome: TrialOutcome) -> None:
        self.total += 1
        if outcome.succeeded:
            self.succeeded += 1
        else:
            self.failed += 1


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------


def iter_trial_configs(sweep_config: SweepConfig | None = None) -> Iterator[TrialConfig]:
    """Yield every configuration of the sweep in its fixed order.

    Order: width, height, huffman flag, then planar YUV with each subsampling,
    then each packed/interleaved format at 4:4:4.
    """
    sweep_config = sweep_config or DEFAULT_SWEEP_CONFIG
    sizes = range(sweep_config.MIN_SIZE, sweep_config.MAX_SIZE + 1)

    for width, height, opt_huffman in itertools.product(
        sizes, sizes, sweep_config.HUFFMAN_OPTIONS
    ):
        for css in sweep_config.SUBSAMPLINGS:
            yield TrialConfig(width, height, opt_huffman, css, OutputFormat.YUV)
        for fmt in sweep_config.PACKED_FORMATS:
            yield TrialConfig(width, height, opt_huffman, ChromaSubsampling.CSS_444, fmt)


def count_trials(sweep_config: SweepConfig | None = None) -> int:
    """Return how many trials :func:`iter_trial_configs` yields."""
    sweep_config = sweep_config or DEFAULT_SWEEP_CONFIG
    num_sizes = sweep_config.MAX_SIZE - sweep_config.MIN_SIZE + 1
    per_size = len(sweep_config.SUBSAMPLINGS) + len(sweep_config.PACKED_FORMATS)
    return num_sizes * num_sizes * len(sweep_config.HUFFMAN_OPTIONS) * per_size


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def run_sweep(
    sweep_config: SweepConfig | None = None,
    runner: Callable[..., TrialOutcome] = run_isolated,
    **runner_kwargs,
) -> SweepSummary:
    """Run every configuration through *runner*, one after another.

    The sweep never stops early: failed and crashed trials are counted and
    the next configuration runs regardless.

    Args:
        sweep_config: Sweep bounds (defaults to DEFAULT_SWEEP_CONFIG)
        runner: Called as ``runner(config, **runner_kwargs)`` per trial
        **runner_kwargs: Forwarded to *runner*

    Returns:
        Trial counters for the whole sweep
    """
    total = count_trials(sweep_config)
    summary = SweepSummary()
    start_time = time.time()

    logger.info(f"Starting sweep: {total} trials")

    for config in iter_trial_configs(sweep_config):
        outcome = runner(config, **runner_kwargs)
        summary.record(outcome)

        if summary.total % 1000 == 0:
            logger.info(f"Progress: {summary.total}/{total} trials, {summary.failed} failed")

    elapsed_time = time.time() - start_time
    logger.info(
        f"Sweep completed: {summary.succeeded} succeeded, {summary.failed} failed "
        f"of {summary.total} trials in {elapsed_time:.1f}s"
    )
    return summary
