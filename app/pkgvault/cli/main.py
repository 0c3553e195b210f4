"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer

from pkgvault import __version__
from pkgvault.cli.commands import deps, history, init, install, listing, pack, register, remove

# Create main Typer app
app = typer.Typer(
    name="pkgvault",
    help="Versioned content package registry and installer.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"pkgvault version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """pkgvault - Versioned content package registry and installer.

    Register package archives, resolve their dependencies and install them
    into a target store in dependency order.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands (positional-argument commands are plain commands)
app.command(name="pack")(pack.pack)
app.command(name="register")(register.register)
app.command(name="list")(listing.list_packages)
app.command(name="remove")(remove.remove)
app.command(name="deps")(deps.deps)
app.command(name="usage")(deps.usage)
app.command(name="install")(install.install)
app.command(name="uninstall")(install.uninstall)
app.add_typer(init.app, name="init")
app.add_typer(history.app, name="history")


if __name__ == "__main__":
    app()
