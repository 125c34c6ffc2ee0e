"""Entry point for the jpegsweep CLI.

``python -m jpegsweep.cli_entry`` behaves like the ``jpegsweep`` script.
"""

from .cli import main

__all__ = ["main"]

if __name__ == "__main__":
    main()
