from __future__ import annotations

"""Format and plane geometry rules for encoder input buffers.

Maps an output format to its channel layout, a chroma subsampling to its
per-axis multipliers, and both to the pitch/height of every device plane the
encoder reads. The encoder rejects subsampled planes whose dimensions are not
4-aligned, so every extent handed out here is a multiple of ``PLANE_ALIGNMENT``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from .error_handling import UnsupportedFormatError, UnsupportedSubsamplingError

PLANE_ALIGNMENT = 4


class OutputFormat(Enum):
    """Pixel layouts known to the codec; only five are encodable here."""

    UNCHANGED = "UNCHANGED"
    YUV = "YUV"
    Y = "Y"
    RGB = "RGB"
    BGR = "BGR"
    RGBI = "RGBI"
    BGRI = "BGRI"

    @property
    def label(self) -> str:
        return self.value


class ChromaSubsampling(Enum):
    """Chroma subsampling ratios known to the codec."""

    CSS_444 = "4:4:4"
    CSS_422 = "4:2:2"
    CSS_420 = "4:2:0"
    CSS_440 = "4:4:0"
    CSS_411 = "4:1:1"
    CSS_410 = "4:1:0"
    GRAY = "GRAY"
    CSS_410V = "4:1:0V"

    @property
    def label(self) -> str:
        return self.value


class ChannelLayout(NamedTuple):
    num_channels: int
    multiplicity: int  # bytes per pixel within one channel buffer


@dataclass(frozen=True, slots=True)
class PlaneDescriptor:
    """Allocated geometry of one device plane."""

    pitch: int
    height: int

    @property
    def byte_size(self) -> int:
        return self.pitch * self.height


_CHANNEL_LAYOUTS: dict[OutputFormat, ChannelLayout] = {
    OutputFormat.YUV: ChannelLayout(3, 1),
    OutputFormat.RGB: ChannelLayout(3, 1),
    OutputFormat.BGR: ChannelLayout(3, 1),
    OutputFormat.RGBI: ChannelLayout(1, 3),
    OutputFormat.BGRI: ChannelLayout(1, 3),
}

_SUBSAMPLING_FACTORS: dict[ChromaSubsampling, tuple[int, int]] = {
    ChromaSubsampling.CSS_444: (1, 1),
    ChromaSubsampling.CSS_422: (2, 1),
    ChromaSubsampling.CSS_420: (2, 2),
    ChromaSubsampling.CSS_440: (1, 2),
    ChromaSubsampling.CSS_411: (4, 1),
    ChromaSubsampling.CSS_410: (4, 2),
}


def channel_layout(fmt: OutputFormat) -> ChannelLayout:
    """Return the channel count and multiplicity for *fmt*.

    Raises:
        UnsupportedFormatError: *fmt* has no known layout.
    """
    try:
        return _CHANNEL_LAYOUTS[fmt]
    except (KeyError, TypeError):
        raise UnsupportedFormatError(fmt) from None


def subsampling_factors(css: ChromaSubsampling) -> tuple[int, int]:
    """Return ``(mult_x, mult_y)`` for *css*.

    Raises:
        UnsupportedSubsamplingError: *css* has no known multipliers.
    """
    try:
        return _SUBSAMPLING_FACTORS[css]
    except (KeyError, TypeError):
        raise UnsupportedSubsamplingError(css) from None


def ceil_to_multiple(value: int, multiple: int) -> int:
    """Round *value* up to the next multiple of *multiple*."""
    return (value + multiple - 1) // multiple * multiple


def aligned_extent(value: int, factor: int = 1, alignment: int = PLANE_ALIGNMENT) -> int:
    """Round *value* up to *factor*, then up to *alignment*."""
    return ceil_to_multiple(ceil_to_multiple(value, factor), alignment)


def plane_geometry(
    width: int,
    height: int,
    fmt: OutputFormat,
    css: ChromaSubsampling = ChromaSubsampling.CSS_444,
) -> list[PlaneDescriptor]:
    """Return one descriptor per channel of a *width* x *height* image.

    Channel 0 is aligned directly; later channels are first rounded to their
    subsampling multiple. *css* is only consulted for planar YUV. Every plane
    is sized at one byte per sample; the channel multiplicity of interleaved
    formats does not widen the pitch.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"image size must be positive, got {width}x{height}")

    layout = channel_layout(fmt)
    mult_x, mult_y = subsampling_factors(css) if fmt is OutputFormat.YUV else (1, 1)

    planes = []
    for index in range(layout.num_channels):
        factor_x, factor_y = (1, 1) if index == 0 else (mult_x, mult_y)
        aligned_width = aligned_extent(width, factor_x)
        aligned_height = aligned_extent(height, factor_y)
        planes.append(PlaneDescriptor(pitch=aligned_width, height=aligned_height))
    return planes
