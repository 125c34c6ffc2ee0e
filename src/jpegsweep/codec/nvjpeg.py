"""ctypes binding of the nvJPEG encoder and the CUDA runtime calls it needs.

Only the encode path is bound. All calls run on the default stream. The device
and pinned-host allocators handed to nvJPEG forward straight to cudaMalloc /
cudaFree / cudaMallocHost / cudaFreeHost with no caching, so every allocation
the encoder makes is visible to the CUDA runtime as it happens.
"""

from __future__ import annotations

import ctypes
import logging
from collections.abc import Sequence
from ctypes import POINTER, byref, c_char_p, c_int, c_size_t, c_uint, c_void_p

import numpy as np

from ..error_handling import CodecError, DeviceError, UnsupportedFormatError
from ..formats import ChromaSubsampling, OutputFormat
from ..system_tools import load_library
from .base import CodecBackend, DevicePlane

__all__ = [
    "NvjpegBackend",
    "NvjpegImage",
]

logger = logging.getLogger(__name__)

NVJPEG_MAX_COMPONENT = 4

NVJPEG_STATUS_NAMES: dict[int, str] = {
    0: "NVJPEG_STATUS_SUCCESS",
    1: "NVJPEG_STATUS_NOT_INITIALIZED",
    2: "NVJPEG_STATUS_INVALID_PARAMETER",
    3: "NVJPEG_STATUS_BAD_JPEG",
    4: "NVJPEG_STATUS_JPEG_NOT_SUPPORTED",
    5: "NVJPEG_STATUS_ALLOCATOR_FAILURE",
    6: "NVJPEG_STATUS_EXECUTION_FAILED",
    7: "NVJPEG_STATUS_ARCH_MISMATCH",
    8: "NVJPEG_STATUS_INTERNAL_ERROR",
    9: "NVJPEG_STATUS_IMPLEMENTATION_NOT_SUPPORTED",
    10: "NVJPEG_STATUS_INCOMPLETE_BITSTREAM",
}

_BACKENDS: dict[str, int] = {
    "default": 0,
    "hybrid": 1,
    "gpu_hybrid": 2,
    "hardware": 3,
}

_ENCODINGS: dict[str, int] = {
    "baseline": 0xC0,
    "extended": 0xC1,
    "progressive": 0xC2,
}

_SUBSAMPLINGS: dict[ChromaSubsampling, int] = {
    ChromaSubsampling.CSS_444: 0,
    ChromaSubsampling.CSS_422: 1,
    ChromaSubsampling.CSS_420: 2,
    ChromaSubsampling.CSS_440: 3,
    ChromaSubsampling.CSS_411: 4,
    ChromaSubsampling.CSS_410: 5,
    ChromaSubsampling.GRAY: 6,
    ChromaSubsampling.CSS_410V: 7,
}

# nvjpegInputFormat_t shares its values with nvjpegOutputFormat_t
_INPUT_FORMATS: dict[OutputFormat, int] = {
    OutputFormat.RGB: 3,
    OutputFormat.BGR: 4,
    OutputFormat.RGBI: 5,
    OutputFormat.BGRI: 6,
}

# int (*)(void *ctx, void **ptr, size_t size, cudaStream_t stream)
_MallocV2 = ctypes.CFUNCTYPE(c_int, c_void_p, POINTER(c_void_p), c_size_t, c_void_p)
# int (*)(void *ctx, void *ptr, size_t size, cudaStream_t stream)
_FreeV2 = ctypes.CFUNCTYPE(c_int, c_void_p, c_void_p, c_size_t, c_void_p)


class _DevAllocatorV2(ctypes.Structure):
    _fields_ = [
        ("dev_malloc", _MallocV2),
        ("dev_free", _FreeV2),
        ("dev_ctx", c_void_p),
    ]


class _PinnedAllocatorV2(ctypes.Structure):
    _fields_ = [
        ("pinned_malloc", _MallocV2),
        ("pinned_free", _FreeV2),
        ("pinned_ctx", c_void_p),
    ]


class NvjpegImage(ctypes.Structure):
    _fields_ = [
        ("channel", c_void_p * NVJPEG_MAX_COMPONENT),
        ("pitch", c_uint * NVJPEG_MAX_COMPONENT),
    ]

    @classmethod
    def from_planes(cls, planes: Sequence[DevicePlane]) -> NvjpegImage:
        if len(planes) > NVJPEG_MAX_COMPONENT:
            raise ValueError(f"at most {NVJPEG_MAX_COMPONENT} planes, got {len(planes)}")
        image = cls()
        for index, plane in enumerate(planes):
            image.channel[index] = plane.pointer
            image.pitch[index] = plane.pitch
        return image


_NVJPEG_SIGNATURES: dict[str, list] = {
    "nvjpegCreateExV2": [
        c_int,
        POINTER(_DevAllocatorV2),
        POINTER(_PinnedAllocatorV2),
        c_int,
        POINTER(c_void_p),
    ],
    "nvjpegDestroy": [c_void_p],
    "nvjpegEncoderStateCreate": [c_void_p, POINTER(c_void_p), c_void_p],
    "nvjpegEncoderStateDestroy": [c_void_p],
    "nvjpegEncoderParamsCreate": [c_void_p, POINTER(c_void_p), c_void_p],
    "nvjpegEncoderParamsDestroy": [c_void_p],
    "nvjpegEncoderParamsSetSamplingFactors": [c_void_p, c_int, c_void_p],
    "nvjpegEncoderParamsSetOptimizedHuffman": [c_void_p, c_int, c_void_p],
    "nvjpegEncoderParamsSetEncoding": [c_void_p, c_int, c_void_p],
    "nvjpegEncoderParamsSetQuality": [c_void_p, c_int, c_void_p],
    "nvjpegEncodeYUV": [
        c_void_p, c_void_p, c_void_p, POINTER(NvjpegImage), c_int, c_int, c_int, c_void_p
    ],
    "nvjpegEncodeImage": [
        c_void_p, c_void_p, c_void_p, POINTER(NvjpegImage), c_int, c_int, c_int, c_void_p
    ],
    "nvjpegEncodeRetrieveBitstream": [
        c_void_p, c_void_p, c_void_p, POINTER(c_size_t), c_void_p
    ],
}

_CUDART_SIGNATURES: dict[str, list] = {
    "cudaMalloc": [POINTER(c_void_p), c_size_t],
    "cudaFree": [c_void_p],
    "cudaMallocHost": [POINTER(c_void_p), c_size_t],
    "cudaFreeHost": [c_void_p],
    "cudaDeviceSynchronize": [],
    "cudaGetErrorString": [c_int],
}


def _bind(lib: ctypes.CDLL, signatures: dict[str, list]) -> None:
    for name, argtypes in signatures.items():
        func = getattr(lib, name)
        func.argtypes = argtypes
        func.restype = c_int
    if "cudaGetErrorString" in signatures:
        lib.cudaGetErrorString.restype = c_char_p


class NvjpegBackend(CodecBackend):
    """:class:`CodecBackend` over libnvjpeg and libcudart.

    Constructing the backend loads both libraries but does not touch the
    device; the CUDA context is created lazily by the first runtime call.
    """

    NAME = "nvjpeg"

    def __init__(self, library_config=None):
        self._cudart = load_library("cudart", library_config)
        self._nvjpeg = load_library("nvjpeg", library_config)
        _bind(self._cudart, _CUDART_SIGNATURES)
        _bind(self._nvjpeg, _NVJPEG_SIGNATURES)

        # nvJPEG keeps raw pointers to these; they must outlive every session
        self._dev_allocator = _DevAllocatorV2(
            _MallocV2(self._dev_malloc), _FreeV2(self._dev_free), None
        )
        self._pinned_allocator = _PinnedAllocatorV2(
            _MallocV2(self._host_malloc), _FreeV2(self._host_free), None
        )

    # -- status checks -------------------------------------------------------

    def _check(self, call: str, status: int) -> None:
        if status != 0:
            raise CodecError(call, status, NVJPEG_STATUS_NAMES.get(status))

    def _check_cuda(self, call: str, status: int) -> None:
        if status != 0:
            description = self._cudart.cudaGetErrorString(status)
            raise DeviceError(
                call, status, description.decode(errors="replace") if description else None
            )

    # -- allocator callbacks -------------------------------------------------

    def _dev_malloc(self, ctx, ptr, size, stream) -> int:
        return self._cudart.cudaMalloc(ptr, size)

    def _dev_free(self, ctx, ptr, size, stream) -> int:
        return self._cudart.cudaFree(ptr)

    def _host_malloc(self, ctx, ptr, size, stream) -> int:
        return self._cudart.cudaMallocHost(ptr, size)

    def _host_free(self, ctx, ptr, size, stream) -> int:
        return self._cudart.cudaFreeHost(ptr)

    # -- session lifecycle ---------------------------------------------------

    def create_session(self, backend: str) -> c_void_p:
        try:
            backend_value = _BACKENDS[backend]
        except KeyError:
            raise ValueError(f"Unknown nvJPEG backend: {backend}") from None

        handle = c_void_p()
        flags = 0
        self._check(
            "nvjpegCreateExV2",
            self._nvjpeg.nvjpegCreateExV2(
                backend_value,
                byref(self._dev_allocator),
                byref(self._pinned_allocator),
                flags,
                byref(handle),
            ),
        )
        return handle

    def destroy_session(self, session: c_void_p) -> None:
        self._check("nvjpegDestroy", self._nvjpeg.nvjpegDestroy(session))

    def create_encoder_state(self, session: c_void_p) -> c_void_p:
        state = c_void_p()
        self._check(
            "nvjpegEncoderStateCreate",
            self._nvjpeg.nvjpegEncoderStateCreate(session, byref(state), None),
        )
        return state

    def destroy_encoder_state(self, state: c_void_p) -> None:
        self._check("nvjpegEncoderStateDestroy", self._nvjpeg.nvjpegEncoderStateDestroy(state))

    def create_encoder_params(self, session: c_void_p) -> c_void_p:
        params = c_void_p()
        self._check(
            "nvjpegEncoderParamsCreate",
            self._nvjpeg.nvjpegEncoderParamsCreate(session, byref(params), None),
        )
        return params

    def destroy_encoder_params(self, params: c_void_p) -> None:
        self._check(
            "nvjpegEncoderParamsDestroy", self._nvjpeg.nvjpegEncoderParamsDestroy(params)
        )

    # -- encoder params ------------------------------------------------------

    def set_sampling_factors(self, params: c_void_p, css: ChromaSubsampling) -> None:
        self._check(
            "nvjpegEncoderParamsSetSamplingFactors",
            self._nvjpeg.nvjpegEncoderParamsSetSamplingFactors(params, _SUBSAMPLINGS[css], None),
        )

    def set_optimized_huffman(self, params: c_void_p, enabled: bool) -> None:
        self._check(
            "nvjpegEncoderParamsSetOptimizedHuffman",
            self._nvjpeg.nvjpegEncoderParamsSetOptimizedHuffman(params, 1 if enabled else 0, None),
        )

    def set_encoding(self, params: c_void_p, encoding: str) -> None:
        try:
            encoding_value = _ENCODINGS[encoding]
        except KeyError:
            raise ValueError(f"Unknown encoding mode: {encoding}") from None
        self._check(
            "nvjpegEncoderParamsSetEncoding",
            self._nvjpeg.nvjpegEncoderParamsSetEncoding(params, encoding_value, None),
        )

    def set_quality(self, params: c_void_p, quality: int) -> None:
        self._check(
            "nvjpegEncoderParamsSetQuality",
            self._nvjpeg.nvjpegEncoderParamsSetQuality(params, quality, None),
        )

    # -- device memory -------------------------------------------------------

    def device_alloc(self, nbytes: int) -> int:
        pointer = c_void_p()
        self._check_cuda("cudaMalloc", self._cudart.cudaMalloc(byref(pointer), nbytes))
        return pointer.value

    def device_free(self, pointer: int) -> None:
        self._check_cuda("cudaFree", self._cudart.cudaFree(pointer))

    # -- encoding ------------------------------------------------------------

    def encode_yuv(self, session, state, params, planes, css, width, height) -> None:
        image = NvjpegImage.from_planes(planes)
        self._check(
            "nvjpegEncodeYUV",
            self._nvjpeg.nvjpegEncodeYUV(
                session, state, params, byref(image), _SUBSAMPLINGS[css], width, height, None
            ),
        )

    def encode_image(self, session, state, params, planes, fmt, width, height) -> None:
        if fmt not in _INPUT_FORMATS:
            raise UnsupportedFormatError(fmt)
        image = NvjpegImage.from_planes(planes)
        self._check(
            "nvjpegEncodeImage",
            self._nvjpeg.nvjpegEncodeImage(
                session, state, params, byref(image), _INPUT_FORMATS[fmt], width, height, None
            ),
        )

    def bitstream_size(self, session: c_void_p, state: c_void_p) -> int:
        length = c_size_t(0)
        self._check(
            "nvjpegEncodeRetrieveBitstream",
            self._nvjpeg.nvjpegEncodeRetrieveBitstream(session, state, None, byref(length), None),
        )
        return length.value

    def retrieve_bitstream(self, session: c_void_p, state: c_void_p, buffer: np.ndarray) -> int:
        length = c_size_t(buffer.nbytes)
        self._check(
            "nvjpegEncodeRetrieveBitstream",
            self._nvjpeg.nvjpegEncodeRetrieveBitstream(
                session, state, buffer.ctypes.data, byref(length), None
            ),
        )
        return length.value

    def synchronize(self) -> None:
        self._check_cuda("cudaDeviceSynchronize", self._cudart.cudaDeviceSynchronize())
