"""Configuration settings for jpegsweep."""

import os
from dataclasses import dataclass

from .formats import ChromaSubsampling, OutputFormat


@dataclass
class SweepConfig:
    """Bounds and axes of the exhaustive encode sweep."""

    # Image sizes to test, inclusive on both ends
    MIN_SIZE: int = 1
    MAX_SIZE: int = 32

    # Optimized Huffman flag values to test
    HUFFMAN_OPTIONS: tuple[bool, ...] = (False, True)

    # Subsamplings tried with planar YUV input
    SUBSAMPLINGS: tuple[ChromaSubsampling, ...] | None = None

    # Packed/interleaved formats, always encoded as 4:4:4
    PACKED_FORMATS: tuple[OutputFormat, ...] | None = None

    def __post_init__(self) -> None:
        if self.SUBSAMPLINGS is None:
            self.SUBSAMPLINGS = (
                ChromaSubsampling.CSS_444,
                ChromaSubsampling.CSS_422,
                ChromaSubsampling.CSS_420,
                ChromaSubsampling.CSS_440,
                ChromaSubsampling.CSS_411,
                ChromaSubsampling.CSS_410,
            )

        if self.PACKED_FORMATS is None:
            self.PACKED_FORMATS = (
                OutputFormat.RGB,
                OutputFormat.BGR,
                OutputFormat.RGBI,
                OutputFormat.BGRI,
            )

        if self.MIN_SIZE < 1:
            raise ValueError(f"MIN_SIZE must be at least 1, got {self.MIN_SIZE}")
        if self.MAX_SIZE < self.MIN_SIZE:
            raise ValueError(
                f"MAX_SIZE must be >= MIN_SIZE, got MAX_SIZE={self.MAX_SIZE}, MIN_SIZE={self.MIN_SIZE}"
            )
        if not self.HUFFMAN_OPTIONS:
            raise ValueError("HUFFMAN_OPTIONS must not be empty")
        if OutputFormat.YUV in self.PACKED_FORMATS:
            raise ValueError("PACKED_FORMATS must not contain YUV")


@dataclass
class EncoderConfig:
    """Encoder settings held constant across the sweep."""

    # JPEG quality passed to the encoder params (1-100)
    QUALITY: int = 90

    # Encoding mode: baseline sequential DCT
    ENCODING: str = "baseline"

    # nvJPEG backend the session is created on
    BACKEND: str = "gpu_hybrid"

    def __post_init__(self) -> None:
        if not 1 <= self.QUALITY <= 100:
            raise ValueError(f"QUALITY must be between 1 and 100, got {self.QUALITY}")

        valid_encodings = {"baseline", "extended", "progressive"}
        if self.ENCODING not in valid_encodings:
            raise ValueError(f"Invalid encoding mode: {self.ENCODING}")

        valid_backends = {"default", "hybrid", "gpu_hybrid", "hardware"}
        if self.BACKEND not in valid_backends:
            raise ValueError(f"Invalid backend: {self.BACKEND}")


@dataclass
class IsolationConfig:
    """Settings for the per-trial child process."""

    # multiprocessing start method. The parent never initializes CUDA, so
    # forking is safe and much cheaper than spawning a fresh interpreter.
    # Override with: JPEGSWEEP_START_METHOD (read each time an
    # IsolationConfig is built, not at import)
    START_METHOD: str = "fork"

    def __post_init__(self) -> None:
        env_value = os.getenv("JPEGSWEEP_START_METHOD")
        if env_value:
            self.START_METHOD = env_value

        valid_methods = {"fork", "spawn", "forkserver"}
        if self.START_METHOD not in valid_methods:
            raise ValueError(f"Invalid start method: {self.START_METHOD}")


@dataclass
class LibraryConfig:
    """Shared libraries backing the codec, with environment variable overrides."""

    # nvJPEG shared library, a bare soname or a full path.
    # Override with: JPEGSWEEP_NVJPEG_LIBRARY
    NVJPEG_LIBRARY: str = "libnvjpeg.so"

    # CUDA runtime shared library.
    # Override with: JPEGSWEEP_CUDART_LIBRARY
    CUDART_LIBRARY: str = "libcudart.so"

    def __post_init__(self) -> None:
        """Apply environment variable overrides after initialization."""
        env_overrides = {
            "NVJPEG_LIBRARY": "JPEGSWEEP_NVJPEG_LIBRARY",
            "CUDART_LIBRARY": "JPEGSWEEP_CUDART_LIBRARY",
        }

        for attr_name, env_var_name in env_overrides.items():
            env_value = os.getenv(env_var_name)
            if env_value:
                setattr(self, attr_name, env_value)


# Default configuration instances
DEFAULT_SWEEP_CONFIG = SweepConfig()
DEFAULT_ENCODER_CONFIG = EncoderConfig()
DEFAULT_LIBRARY_CONFIG = LibraryConfig()
