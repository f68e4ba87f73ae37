"""Version command for npm-scripts CLI.

This module provides the `npm-scripts version` command that displays version
information.
"""

import sys
from typing import Annotated

import typer


def get_version(distribution: str = "npm-scripts") -> str:
    """Get the installed version of a distribution.

    Returns:
        Version string or 'unknown' if not found.
    """
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version(distribution)
    except PackageNotFoundError:
        return "unknown"


def version_command(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show detailed version information",
        ),
    ] = False,
) -> None:
    """Show npm-scripts version information."""
    npm_scripts_version = get_version()

    if not verbose:
        typer.echo(f"npm-scripts {npm_scripts_version}")
        return

    typer.echo(f"npm-scripts version: {npm_scripts_version}")
    typer.echo(f"Python version: {sys.version}")
    typer.echo(f"Python executable: {sys.executable}")

    typer.echo("\nDependencies:")
    for dep in ("pydantic", "pyyaml", "structlog", "typer"):
        typer.echo(f"  {dep}: {get_version(dep)}")
