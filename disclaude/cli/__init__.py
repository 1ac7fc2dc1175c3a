"""CLI application setup using Typer.

Provides a command-line interface for running Claude through the bridge.
"""

from disclaude.cli.main import app

__all__ = ["app"]
