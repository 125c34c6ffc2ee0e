"""Codec library checks.

    jpegsweep deps check         - Rich table of libnvjpeg / libcudart availability
    jpegsweep deps check --json  - Same information for scripts and CI

Loading the libraries does not create a CUDA context, so the check is safe to
run on machines without a GPU; it simply reports the libraries as missing.
"""

import json
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..system_tools import get_available_libraries

_DISPLAY_NAMES = {
    "nvjpeg": "nvJPEG",
    "cudart": "CUDA runtime",
}


@click.group("deps")
def deps() -> None:
    """Check codec libraries."""
    pass


@deps.command("check")
@click.option(
    "--json", "output_json",
    is_flag=True,
    help="Output results in JSON format"
)
def deps_check(output_json: bool) -> None:
    """Check that the codec libraries can be loaded."""
    libraries = get_available_libraries()
    all_available = all(info.available for info in libraries.values())

    if output_json:
        result = {
            key: {
                "library": info.name,
                "available": info.available,
                "version": info.version,
                "error": info.error,
            }
            for key, info in libraries.items()
        }
        click.echo(json.dumps(result, indent=2))
        if not all_available:
            sys.exit(1)
        return

    console = Console()
    table = Table(title="📦 Codec Libraries", show_header=True, header_style="bold magenta")
    table.add_column("Library", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center")
    table.add_column("Version")
    table.add_column("Details", style="dim")

    for key, info in libraries.items():
        if info.available:
            status = "[green]✅ Available[/green]"
            details = info.name
        else:
            status = "[red]❌ Missing[/red]"
            details = info.error or ""
        table.add_row(_DISPLAY_NAMES.get(key, key), status, info.version or "-", details)

    console.print(table)

    if all_available:
        console.print(Panel(
            "✅ [green]All codec libraries are available.[/green]",
            title="System Status",
            border_style="green"
        ))
    else:
        console.print(Panel(
            "⚠️  [yellow]Some codec libraries are missing.[/yellow]\n"
            "Every trial will fail until they load. Set "
            "[bold]JPEGSWEEP_NVJPEG_LIBRARY[/bold] / [bold]JPEGSWEEP_CUDART_LIBRARY[/bold] "
            "to their paths if they are installed outside the linker search path.",
            title="System Status",
            border_style="yellow"
        ))
        sys.exit(1)
