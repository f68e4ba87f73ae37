"""Run requests and the runners that execute them.

A runner is any callable taking a RunRequest. It must not block waiting for
the script to finish: the default ProcessRunner starts the package manager in
a child process and returns straight away.

SECURITY WARNING:
    Package.json scripts can execute arbitrary shell commands with full access
    to the environment and filesystem. Only run scripts from projects you trust.
"""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import structlog
import typer

from npm_scripts.errors import ScriptsError, ScriptsErrorCode

logger = structlog.get_logger()


@dataclass(frozen=True)
class RunRequest:
    """A fully resolved script invocation.

    Attributes:
        script_name: The script to run.
        working_directory: Directory to run it in.
        package_manager: The binary that runs it, e.g. "npm" or "pnpm".
    """

    script_name: str
    working_directory: Path
    package_manager: str

    @property
    def command(self) -> list[str]:
        """The argv executed for this request."""
        return [self.package_manager, "run", self.script_name]

    def describe(self) -> str:
        """Shell-style rendering, for display."""
        return (
            f"cd {shlex.quote(str(self.working_directory))} && "
            f"{shlex.join(self.command)}"
        )


RunScript = Callable[[RunRequest], object]


class ProcessRunner:
    """Starts each request as a child process without waiting for it.

    The spawned processes are kept so a command-line caller can wait for them
    once the selection flow has finished.
    """

    def __init__(self) -> None:
        self.processes: list[subprocess.Popen[bytes]] = []

    def __call__(self, request: RunRequest) -> subprocess.Popen[bytes]:
        """Spawn ``<package_manager> run <script_name>``.

        Args:
            request: The request to execute.

        Returns:
            The started process.

        Raises:
            ScriptsError: NOT_FOUND if the package manager binary is missing
                or the working directory does not exist, NOT_READABLE for
                any other failure to start it (not executable, cwd is a file).
        """
        logger.info(
            "script_started",
            script=request.script_name,
            directory=str(request.working_directory),
            package_manager=request.package_manager,
        )
        try:
            process = subprocess.Popen(request.command, cwd=request.working_directory)
        except FileNotFoundError as e:
            raise ScriptsError(
                code=ScriptsErrorCode.NOT_FOUND,
                message=(
                    f"Cannot run {request.describe()}: "
                    f"{e.filename or request.package_manager} not found"
                ),
                path=request.working_directory,
                cause=e,
            ) from e
        except OSError as e:
            raise ScriptsError(
                code=ScriptsErrorCode.NOT_READABLE,
                message=f"Cannot run {request.describe()}: {e.strerror or e}",
                path=request.working_directory,
                cause=e,
            ) from e

        self.processes.append(process)
        return process

    def wait(self) -> int:
        """Wait for every spawned process.

        Returns:
            The first non-zero exit code, or 0 if all succeeded.
        """
        exit_code = 0
        for process in self.processes:
            returncode = process.wait()
            logger.debug("script_finished", pid=process.pid, exit_code=returncode)
            if returncode != 0 and exit_code == 0:
                exit_code = returncode
        return exit_code


@dataclass
class DryRunRunner:
    """Prints the command a request would run instead of running it."""

    echo: Callable[[str], object] = typer.echo
    requests: list[RunRequest] = field(default_factory=list)

    def __call__(self, request: RunRequest) -> None:
        self.requests.append(request)
        self.echo(f"Would execute: {request.describe()}")
