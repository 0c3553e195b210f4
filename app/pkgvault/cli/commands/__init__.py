"""CLI commands for pkgvault.

This package contains all subcommand implementations.
"""

from pkgvault.cli.commands import deps, history, init, install, listing, pack, register, remove

__all__ = ["deps", "history", "init", "install", "listing", "pack", "register", "remove"]
