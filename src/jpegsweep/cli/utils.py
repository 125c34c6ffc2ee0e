"""Shared utilities for CLI commands."""

import logging
import sys

import click

from ..formats import ChromaSubsampling, OutputFormat


def setup_logging(verbose: bool) -> None:
    """Send log records to stderr; stdout is reserved for trial lines."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def handle_generic_error(command_name: str, error: Exception) -> None:
    """Handle generic command errors with consistent formatting."""
    click.echo(f"❌ {command_name} failed: {error}", err=True)
    sys.exit(1)


def handle_keyboard_interrupt(command_name: str) -> None:
    """Handle keyboard interrupt with consistent formatting."""
    click.echo(f"\n⏹️  {command_name} interrupted by user", err=True)
    sys.exit(1)


# Formats and subsamplings the sweep knows how to lay out
FORMAT_CHOICES = ["YUV", "RGB", "BGR", "RGBI", "BGRI"]
SUBSAMPLING_CHOICES = ["4:4:4", "4:2:2", "4:2:0", "4:4:0", "4:1:1", "4:1:0"]


def parse_format(value: str) -> OutputFormat:
    return OutputFormat(value.upper())


def parse_subsampling(value: str) -> ChromaSubsampling:
    return ChromaSubsampling(value)


def resolve_start_method(value: str | None) -> str:
    """Return *value*, or the configured default start method.

    A bad ``JPEGSWEEP_START_METHOD`` is reported as a usage error.
    """
    if value is not None:
        return value

    from ..config import IsolationConfig

    try:
        return IsolationConfig().START_METHOD
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="JPEGSWEEP_START_METHOD") from e
