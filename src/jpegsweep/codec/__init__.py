"""Codec backends driven by the trial executor."""

from .base import CodecBackend, DevicePlane
from .nvjpeg import NvjpegBackend

__all__ = [
    "CodecBackend",
    "DevicePlane",
    "NvjpegBackend",
]
