"""Script commands for npm-scripts CLI.

This module provides the commands that pick and run a package.json script:

    npm-scripts root              - Script from ./package.json
    npm-scripts workspace         - Script from one of the root's workspaces
    npm-scripts buffer <path>     - Script from the package.json closest to <path>
    npm-scripts all               - Script from any package.json under the cwd

Exit codes:
    0: Success, cancelled, or nothing to run
    2: Invalid options or settings file
    other: Exit code of the script that was run
"""

from pathlib import Path
from typing import Annotated

import typer
import yaml
from pydantic import ValidationError

from npm_scripts.api import NpmScripts
from npm_scripts.config import ScriptsOverride, find_settings_path, load_settings
from npm_scripts.runner import DryRunRunner, ProcessRunner

SCAN_STRATEGIES = ("auto", "walk", "fd")

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to a settings YAML file",
    ),
]
PackageManagerOption = Annotated[
    str | None,
    typer.Option(
        "--package-manager",
        "-m",
        help="npm, yarn, pnpm, bun, or auto (detect from lock files)",
    ),
]
DryRunOption = Annotated[
    bool,
    typer.Option(
        "--dry-run",
        help="Show the command without executing it",
    ),
]


def _load_scripts(config: Path | None) -> NpmScripts:
    """Create the entry point, applying the settings file if there is one."""
    scripts = NpmScripts()

    settings_path = config if config is not None else find_settings_path()
    if settings_path is None:
        return scripts

    try:
        scripts.setup(load_settings(settings_path))
    except yaml.YAMLError as e:
        typer.echo(f"Error: Invalid YAML in {settings_path}: {e}", err=True)
        raise typer.Exit(2) from e
    except (OSError, ValueError) as e:
        typer.echo(f"Error: Failed to load settings: {e}", err=True)
        raise typer.Exit(2) from e

    return scripts


def _build_override(
    package_manager: str | None,
    dry_run: bool,
    **extra: object,
) -> tuple[ScriptsOverride, ProcessRunner | None]:
    """Build the per-call override from command-line options.

    Returns:
        The override and, unless this is a dry run, the process runner whose
        children the command waits for.
    """
    process_runner = None if dry_run else ProcessRunner()
    runner = DryRunRunner() if process_runner is None else process_runner

    try:
        override = ScriptsOverride(
            package_manager=package_manager,
            run_script=runner,
            **extra,
        )
    except ValidationError as e:
        typer.echo(f"Error: Invalid option: {e.errors()[0]['msg']}", err=True)
        raise typer.Exit(2) from e

    return override, process_runner


def _wait(process_runner: ProcessRunner | None) -> None:
    """Wait for the started script and forward a failing exit code."""
    if process_runner is None:
        return
    exit_code = process_runner.wait()
    if exit_code != 0:
        raise typer.Exit(exit_code)


def root_command(
    config: ConfigOption = None,
    package_manager: PackageManagerOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Run a script from the package.json in the current directory."""
    scripts = _load_scripts(config)
    override, process_runner = _build_override(package_manager, dry_run)
    scripts.run_root_script(override)
    _wait(process_runner)


def workspace_command(
    config: ConfigOption = None,
    package_manager: PackageManagerOption = None,
    dry_run: DryRunOption = False,
    solo: Annotated[
        bool | None,
        typer.Option(
            "--solo/--no-solo",
            help="Pick workspace and script in one prompt, or in two",
        ),
    ] = None,
) -> None:
    """Run a script from one of the workspaces of the root package.json."""
    scripts = _load_scripts(config)
    override, process_runner = _build_override(
        package_manager,
        dry_run,
        workspace_script_solo_picker=solo,
    )
    scripts.run_workspace_script(override)
    _wait(process_runner)


def buffer_command(
    path: Annotated[
        Path,
        typer.Argument(help="File or directory whose closest package.json is used"),
    ],
    config: ConfigOption = None,
    package_manager: PackageManagerOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Run a script from the package.json closest to PATH."""
    scripts = _load_scripts(config)
    override, process_runner = _build_override(package_manager, dry_run)
    scripts.run_buffer_script(path, override)
    _wait(process_runner)


def all_command(
    config: ConfigOption = None,
    package_manager: PackageManagerOption = None,
    dry_run: DryRunOption = False,
    strategy: Annotated[
        str,
        typer.Option(
            "--strategy",
            help="How to find manifests: auto, walk, or fd",
        ),
    ] = "auto",
) -> None:
    """Run a script from any package.json under the current directory.

    node_modules directories are skipped.
    """
    if strategy not in SCAN_STRATEGIES:
        typer.echo(f"Error: Unknown strategy '{strategy}'", err=True)
        typer.echo(f"Supported strategies: {', '.join(SCAN_STRATEGIES)}", err=True)
        raise typer.Exit(2)

    scripts = _load_scripts(config)
    override, process_runner = _build_override(package_manager, dry_run)
    scripts.run_all_script(override, strategy=strategy)  # type: ignore[arg-type]
    _wait(process_runner)
