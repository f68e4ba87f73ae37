"""npm-scripts CLI entry point.

This module provides the main Typer application and entry point for the
`npm-scripts` CLI.

Usage:
    npm-scripts root [options]           - Run a script from ./package.json
    npm-scripts workspace [options]      - Run a workspace script
    npm-scripts buffer PATH [options]    - Run a script closest to PATH
    npm-scripts all [options]            - Run any script under the cwd
    npm-scripts version [options]        - Show version information
"""

import logging
import sys
from typing import Annotated

import structlog
import typer

from npm_scripts.cli.commands import scripts, version

app = typer.Typer(
    name="npm-scripts",
    help="Pick and run package.json scripts, including monorepo workspaces",
    no_args_is_help=True,
)


def configure_logging(verbose: bool) -> None:
    """Send structured logs to stderr, debug level when verbose."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.WARNING
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logs",
        ),
    ] = False,
) -> None:
    """Pick and run package.json scripts."""
    configure_logging(verbose)


# Register commands
app.command(name="root")(scripts.root_command)
app.command(name="workspace")(scripts.workspace_command)
app.command(name="buffer")(scripts.buffer_command)
app.command(name="all")(scripts.all_command)
app.command(name="version")(version.version_command)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
