"""Single encode trial: the codec lifecycle for one configuration.

``run_trial`` drives the encoder through session creation, buffer allocation,
parameter setup, encoding, bitstream retrieval and teardown. ``execute_trial``
is what runs inside the isolated child process: it writes the trial's stdout
line and turns any error into a non-zero exit status.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Any

import click
import numpy as np

from .codec import CodecBackend, DevicePlane, NvjpegBackend
from .config import DEFAULT_ENCODER_CONFIG, EncoderConfig
from .error_handling import SweepError, clean_error_message
from .formats import ChromaSubsampling, OutputFormat, plane_geometry

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "success"


@dataclass(frozen=True, slots=True)
class TrialConfig:
    """One fully-resolved point of the sweep."""

    width: int
    height: int
    opt_huffman: bool
    subsampling: ChromaSubsampling
    output_format: OutputFormat

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"image size must be positive, got {self.width}x{self.height}")

    @property
    def label(self) -> str:
        """Configuration summary used as the stdout line prefix."""
        label = (
            f"size:{self.width}x{self.height},"
            f"opt_huffman:{'true' if self.opt_huffman else 'false'},"
            f"fmt:{self.output_format.label}"
        )
        if self.output_format is OutputFormat.YUV:
            label += f",css:{self.subsampling.label}"
        return label


@dataclass(frozen=True)
class TrialOutcome:
    """Result of one trial as seen by the process that reports it."""

    config: TrialConfig
    succeeded: bool
    diagnostic: str
    bitstream_size: int | None = None
    exitcode: int | None = None


def run_trial(
    config: TrialConfig,
    backend: CodecBackend,
    encoder_config: EncoderConfig | None = None,
) -> TrialOutcome:
    """Encode one uninitialized image of the configured geometry.

    Every acquired resource is released in reverse order once the bitstream
    has been retrieved and the device synchronized.

    Raises:
        HarnessError: The configuration has no known plane layout.
        CodecError, DeviceError: Any codec or CUDA call failed. Resources
            acquired so far are left to the operating system, since the trial
            process exits right after reporting the error.
    """
    encoder_config = encoder_config or DEFAULT_ENCODER_CONFIG

    with ExitStack() as stack:
        try:
            session = backend.create_session(encoder_config.BACKEND)
            stack.callback(backend.destroy_session, session)

            geometry = plane_geometry(
                config.width, config.height, config.output_format, config.subsampling
            )

            planes = []
            for descriptor in geometry:
                pointer = backend.device_alloc(descriptor.byte_size)
                stack.callback(backend.device_free, pointer)
                planes.append(DevicePlane(pointer, descriptor.pitch, descriptor.byte_size))
            logger.debug(
                f"{config.label}: allocated planes "
                + ", ".join(f"{d.pitch}x{d.height}" for d in geometry)
            )

            state = backend.create_encoder_state(session)
            stack.callback(backend.destroy_encoder_state, state)
            params = backend.create_encoder_params(session)
            stack.callback(backend.destroy_encoder_params, params)

            backend.set_sampling_factors(params, config.subsampling)
            backend.set_optimized_huffman(params, config.opt_huffman)
            backend.set_encoding(params, encoder_config.ENCODING)
            backend.set_quality(params, encoder_config.QUALITY)

            if config.output_format is OutputFormat.YUV:
                backend.encode_yuv(
                    session, state, params, planes, config.subsampling,
                    config.width, config.height,
                )
            else:
                backend.encode_image(
                    session, state, params, planes, config.output_format,
                    config.width, config.height,
                )

            size = backend.bitstream_size(session, state)
            bitstream = np.empty(size, dtype=np.uint8)
            written = backend.retrieve_bitstream(session, state, bitstream)
            backend.synchronize()
        except SweepError:
            stack.pop_all()
            raise

    logger.debug(f"{config.label}: {written} byte bitstream")
    return TrialOutcome(
        config=config, succeeded=True, diagnostic=SUCCESS_MESSAGE, bitstream_size=written
    )


def execute_trial(
    config: TrialConfig,
    backend_factory: Callable[[], CodecBackend] | None = None,
    encoder_config: EncoderConfig | None = None,
    reported: Any = None,
) -> None:
    """Run one trial and write its stdout line; exit with status 1 on failure.

    The configuration prefix is written before the codec is touched so a
    trial that kills its process still shows which configuration it was.
    *reported* is a shared flag set once the line has been completed.
    """
    click.echo(f"{config.label}: ", nl=False)

    try:
        backend = (backend_factory or NvjpegBackend)()
        outcome = run_trial(config, backend, encoder_config)
    except SweepError as e:
        _complete_line(clean_error_message(str(e)), reported)
        sys.exit(1)

    _complete_line(outcome.diagnostic, reported)


def _complete_line(message: str, reported: Any) -> None:
    click.echo(message)
    if reported is not None:
        reported.value = 1
