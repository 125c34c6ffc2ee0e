from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from ..formats import ChromaSubsampling, OutputFormat

__all__ = [
    "CodecBackend",
    "DevicePlane",
]


@dataclass(frozen=True, slots=True)
class DevicePlane:
    """A device allocation handed to the encoder as one image channel."""

    pointer: int
    pitch: int
    nbytes: int


class CodecBackend(ABC):
    """Call contract of a hardware JPEG encoder.

    Handles returned by the ``create_*`` methods are opaque to callers and
    only valid inside the process that created them. Every method raises a
    :class:`~jpegsweep.error_handling.SweepError` subclass on a non-success
    status; nothing is retried.
    """

    NAME: str = "codec"

    # -- session lifecycle ---------------------------------------------------

    @abstractmethod
    def create_session(self, backend: str) -> Any:
        """Create a codec handle with pass-through device and pinned allocators."""

    @abstractmethod
    def destroy_session(self, session: Any) -> None: ...

    @abstractmethod
    def create_encoder_state(self, session: Any) -> Any: ...

    @abstractmethod
    def destroy_encoder_state(self, state: Any) -> None: ...

    @abstractmethod
    def create_encoder_params(self, session: Any) -> Any: ...

    @abstractmethod
    def destroy_encoder_params(self, params: Any) -> None: ...

    # -- encoder params ------------------------------------------------------

    @abstractmethod
    def set_sampling_factors(self, params: Any, css: ChromaSubsampling) -> None: ...

    @abstractmethod
    def set_optimized_huffman(self, params: Any, enabled: bool) -> None: ...

    @abstractmethod
    def set_encoding(self, params: Any, encoding: str) -> None: ...

    @abstractmethod
    def set_quality(self, params: Any, quality: int) -> None: ...

    # -- device memory -------------------------------------------------------

    @abstractmethod
    def device_alloc(self, nbytes: int) -> int:
        """Allocate *nbytes* of device memory and return the pointer."""

    @abstractmethod
    def device_free(self, pointer: int) -> None: ...

    # -- encoding ------------------------------------------------------------

    @abstractmethod
    def encode_yuv(
        self,
        session: Any,
        state: Any,
        params: Any,
        planes: Sequence[DevicePlane],
        css: ChromaSubsampling,
        width: int,
        height: int,
    ) -> None:
        """Encode planar YUV input."""

    @abstractmethod
    def encode_image(
        self,
        session: Any,
        state: Any,
        params: Any,
        planes: Sequence[DevicePlane],
        fmt: OutputFormat,
        width: int,
        height: int,
    ) -> None:
        """Encode RGB/BGR (planar) or RGBI/BGRI (interleaved) input."""

    @abstractmethod
    def bitstream_size(self, session: Any, state: Any) -> int:
        """Return the byte length of the pending bitstream."""

    @abstractmethod
    def retrieve_bitstream(self, session: Any, state: Any, buffer: np.ndarray) -> int:
        """Copy the pending bitstream into *buffer* and return the bytes written."""

    @abstractmethod
    def synchronize(self) -> None:
        """Block until the device has finished all queued work."""
