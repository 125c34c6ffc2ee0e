from __future__ import annotations

"""Utility helpers for locating the codec's shared libraries.

These lightweight checks make sure libnvjpeg and the CUDA runtime can be loaded
*before* a sweep spends hours printing the same load failure twenty thousand
times. Loading a library does not initialize a CUDA context, so the checks are
safe to run in the parent process.
"""

import ctypes
import ctypes.util
import logging
from collections.abc import Callable
from dataclasses import dataclass

from .error_handling import LibraryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LibraryInfo:
    """Metadata for a shared library discovered on the system."""

    name: str
    available: bool
    version: str | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Low-level helpers
# ---------------------------------------------------------------------------


def _find_library(stem: str) -> str | None:
    """Return the soname the dynamic linker resolves for *stem*, else *None*."""
    return ctypes.util.find_library(stem)


def _query_nvjpeg_version(lib: ctypes.CDLL) -> str | None:
    parts = []
    for prop in (0, 1, 2):  # MAJOR_VERSION, MINOR_VERSION, PATCH_LEVEL
        value = ctypes.c_int()
        if lib.nvjpegGetProperty(prop, ctypes.byref(value)) != 0:
            return None
        parts.append(str(value.value))
    return ".".join(parts)


def _query_cudart_version(lib: ctypes.CDLL) -> str | None:
    value = ctypes.c_int()
    if lib.cudaRuntimeGetVersion(ctypes.byref(value)) != 0:
        return None
    # Encoded as 1000 * major + 10 * minor
    return f"{value.value // 1000}.{value.value % 1000 // 10}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

# Linker stems tried when the configured name does not load
_FALLBACK_STEMS: dict[str, str] = {
    "nvjpeg": "nvjpeg",
    "cudart": "cudart",
}

_VERSION_QUERIES: dict[str, Callable[[ctypes.CDLL], str | None]] = {
    "nvjpeg": _query_nvjpeg_version,
    "cudart": _query_cudart_version,
}

# Map library keys to configuration attributes
_CONFIG_MAPPING: dict[str, str] = {
    "nvjpeg": "NVJPEG_LIBRARY",
    "cudart": "CUDART_LIBRARY",
}


def load_library(library_key: str, library_config=None) -> ctypes.CDLL:
    """Load the shared library for *library_key*.

    The configured name is tried first, then whatever soname the dynamic
    linker reports for the library stem.

    Args:
        library_key: Library identifier (nvjpeg, cudart)
        library_config: LibraryConfig instance (uses DEFAULT_LIBRARY_CONFIG if None)

    Raises:
        LibraryError: Neither candidate could be loaded.
    """
    if library_key not in _CONFIG_MAPPING:
        raise ValueError(f"Unknown library: {library_key}")

    if library_config is None:
        from .config import DEFAULT_LIBRARY_CONFIG

        library_config = DEFAULT_LIBRARY_CONFIG

    configured_name = getattr(library_config, _CONFIG_MAPPING[library_key])
    candidates = [configured_name]
    fallback = _find_library(_FALLBACK_STEMS[library_key])
    if fallback and fallback != configured_name:
        candidates.append(fallback)

    errors = []
    for candidate in candidates:
        try:
            lib = ctypes.CDLL(candidate)
        except OSError as e:
            errors.append(f"{candidate}: {e}")
            continue
        logger.debug(f"Loaded {library_key} from {candidate}")
        return lib

    raise LibraryError(f"cannot load {library_key} ({'; '.join(errors)})")


def discover_library(library_key: str, library_config=None) -> LibraryInfo:
    """Return *LibraryInfo* for *library_key* without raising on failure."""
    if library_config is None:
        from .config import DEFAULT_LIBRARY_CONFIG

        library_config = DEFAULT_LIBRARY_CONFIG

    name = getattr(library_config, _CONFIG_MAPPING.get(library_key, ""), library_key)
    try:
        lib = load_library(library_key, library_config)
    except LibraryError as e:
        return LibraryInfo(name=name, available=False, error=str(e))

    version = _VERSION_QUERIES[library_key](lib)
    return LibraryInfo(name=name, available=True, version=version)


def get_available_libraries(library_config=None) -> dict[str, LibraryInfo]:
    """Get availability status for all codec libraries without requiring them."""
    return {key: discover_library(key, library_config) for key in _CONFIG_MAPPING}
