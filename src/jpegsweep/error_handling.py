"""Standardized Error Handling Utilities

Exception hierarchy for the sweep plus helpers for consistent logging and
for turning diagnostics into single stdout lines.
"""

from __future__ import annotations

import logging
import re
import traceback
from contextlib import contextmanager
from enum import Enum
from typing import Any


class ErrorLevel(Enum):
    """Error severity levels for consistent logging."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class SweepError(Exception):
    """Base exception class for all jpegsweep errors."""

    def __init__(
        self, message: str, cause: Exception | None = None, context: dict | None = None
    ):
        super().__init__(message)
        self.cause = cause
        self.context = context or {}

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.cause:
            return f"{base_msg} (caused by: {self.cause})"
        return base_msg


class HarnessError(SweepError):
    """Raised when the harness itself produced an impossible configuration."""

    pass


class UnsupportedFormatError(HarnessError):
    """Raised for output formats the geometry rules cannot lay out."""

    def __init__(self, fmt: Any):
        super().__init__(f"unsupported format {fmt}", context={"format": fmt})
        self.format = fmt


class UnsupportedSubsamplingError(HarnessError):
    """Raised for chroma subsamplings without known multipliers."""

    def __init__(self, css: Any):
        super().__init__(f"unsupported subsampling {css}", context={"subsampling": css})
        self.subsampling = css


class CodecError(SweepError):
    """Raised when an nvJPEG call returns a non-success status."""

    def __init__(self, call: str, status: int, status_name: str | None = None):
        label = f" ({status_name})" if status_name else ""
        super().__init__(
            f"nvJPEG error in {call} code={status}{label}",
            context={"call": call, "status": status},
        )
        self.call = call
        self.status = status


class DeviceError(SweepError):
    """Raised when a CUDA runtime call returns a non-success status."""

    def __init__(self, call: str, status: int, description: str | None = None):
        label = f" ({description})" if description else ""
        super().__init__(
            f"CUDA error in {call} code={status}{label}",
            context={"call": call, "status": status},
        )
        self.call = call
        self.status = status


class LibraryError(SweepError):
    """Raised when a required shared library cannot be loaded."""

    pass


class IsolationError(SweepError):
    """Raised when a trial process cannot be started."""

    pass


def handle_error(
    error: Exception,
    operation: str,
    error_type: type[SweepError] = IsolationError,
    level: ErrorLevel = ErrorLevel.ERROR,
    context: dict | None = None,
    logger: logging.Logger | None = None,
    reraise: bool = True,
) -> SweepError | None:
    """Standardized error handling with consistent logging and error transformation.

    Args:
        error: Original exception that occurred
        operation: Description of operation that failed
        error_type: Type of SweepError to raise
        level: Logging level for the error
        context: Additional context information
        logger: Logger to use (defaults to module logger)
        reraise: Whether to reraise the transformed exception

    Returns:
        The transformed error if reraise=False, otherwise None

    Raises:
        SweepError: Transformed error if reraise=True
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    message = f"Failed to {operation}: {error}"

    error_context = dict(context or {})
    error_context.update(
        {
            "operation": operation,
            "original_error_type": type(error).__name__,
        }
    )

    transformed_error = error_type(message, cause=error, context=error_context)

    log_message = f"{operation.capitalize()} failed: {error}"
    context_str = ", ".join(f"{k}={v}" for k, v in error_context.items())
    if context_str:
        log_message += f" (context: {context_str})"

    log_func = getattr(logger, level.value)
    log_func(log_message)

    if level in [ErrorLevel.ERROR, ErrorLevel.CRITICAL]:
        logger.debug(f"Traceback for {operation}: {traceback.format_exc()}")

    if reraise:
        raise transformed_error from error
    return transformed_error


@contextmanager
def error_context(
    operation: str,
    error_type: type[SweepError] = IsolationError,
    level: ErrorLevel = ErrorLevel.ERROR,
    context: dict | None = None,
    logger: logging.Logger | None = None,
) -> Any:
    """Context manager for standardized error handling.

    Usage:
        with error_context("start trial process", IsolationError, context={'trial': label}):
            process.start()

    Args:
        operation: Description of operation being performed
        error_type: Type of SweepError to raise on failure
        level: Logging level for errors
        context: Additional context information
        logger: Logger to use
    """
    try:
        yield
    except SweepError:
        raise
    except Exception as e:
        handle_error(e, operation, error_type, level, context, logger, reraise=True)


def clean_error_message(error_msg: str, max_length: int = 500) -> str:
    """Collapse a diagnostic into one printable line.

    Line breaks and tabs become spaces, control characters are dropped,
    whitespace runs collapse and the result is truncated to *max_length*.

    Args:
        error_msg: Raw error message string
        max_length: Longest message returned, including the ellipsis

    Returns:
        Cleaned single-line message
    """
    cleaned = str(error_msg)

    cleaned = cleaned.replace("\n", " ").replace("\r", " ").replace("\t", " ")

    cleaned = re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]", "", cleaned)

    cleaned = re.sub(r"\s+", " ", cleaned).strip()

    if len(cleaned) > max_length:
        cleaned = cleaned[: max_length - 3] + "..."

    return cleaned
