"""CLI application setup using Typer.

Provides the cbox command-line interface.
"""

from cbox.cli.main import app

__all__ = ["app"]
