"""CLI package for pkgvault.

This package contains the Typer application and all subcommands.
"""

from pkgvault.cli.main import app

__all__ = ["app"]
