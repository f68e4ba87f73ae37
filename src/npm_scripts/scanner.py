"""Bulk scanning for every manifest under a directory.

Discovery skips dependency install directories (``node_modules``) at any
depth and matches files named exactly ``package.json``. Two traversal
strategies are supported:

    - walk: a recursive ``os.walk`` that prunes excluded directories
    - fd: the external ``fd`` finder, used automatically when installed

Discovered files are read concurrently. Parse failures do not abort the scan;
they are collected next to the manifests that did parse so the caller can
report them in one go.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import structlog

from npm_scripts.errors import ScriptsError
from npm_scripts.manifest import (
    MANIFEST_FILENAME,
    UNKNOWN_NAME,
    Manifest,
    read_manifest,
)

logger = structlog.get_logger()

EXCLUDED_DIRS: frozenset[str] = frozenset({"node_modules"})

# Debian and Ubuntu ship fd as "fdfind"
FD_EXECUTABLES: tuple[str, ...] = ("fd", "fdfind")

ScanStrategy = Literal["auto", "walk", "fd"]


@dataclass(frozen=True)
class ScanFailure:
    """A discovered manifest that could not be parsed.

    Attributes:
        path: Path to the manifest.
        error: Why it could not be used.
    """

    path: Path
    error: ScriptsError


@dataclass
class ScanResult:
    """Outcome of a bulk scan.

    Every discovered path ends up in exactly one of the two lists.

    Attributes:
        manifests: Successfully parsed manifests.
        failures: Manifests that could not be read or parsed.
    """

    manifests: list[Manifest] = field(default_factory=list)
    failures: list[ScanFailure] = field(default_factory=list)

    @property
    def failed_paths(self) -> list[Path]:
        return [failure.path for failure in self.failures]


def walk_manifests(root: Path) -> list[Path]:
    """Find manifests with a recursive directory walk.

    Args:
        root: Directory to scan.

    Returns:
        Paths of all package.json files outside excluded directories, sorted.
    """
    found: list[Path] = []

    for dirpath, dirnames, filenames in os.walk(root):
        # Prune in place so os.walk never descends into excluded trees
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS)
        if MANIFEST_FILENAME in filenames:
            found.append(Path(dirpath) / MANIFEST_FILENAME)

    return sorted(found)


def find_fd_executable() -> str | None:
    """Return the path of an installed fd binary, if any."""
    for name in FD_EXECUTABLES:
        path = shutil.which(name)
        if path is not None:
            return path
    return None


async def fd_manifests(root: Path, executable: str) -> list[Path]:
    """Find manifests using the fd finder.

    Ignore files are disabled, hidden directories included and symlinked
    manifests listed so the result matches ``walk_manifests``.

    Args:
        root: Directory to scan.
        executable: Path to the fd binary.

    Returns:
        Paths of all package.json files outside excluded directories, sorted.

    Raises:
        OSError: If fd cannot be started or exits with an error.
    """
    cmd = [
        executable,
        "--type",
        "f",
        "--type",
        "l",
        "--glob",
        "--hidden",
        "--no-ignore",
        "--absolute-path",
        *(arg for excluded in sorted(EXCLUDED_DIRS) for arg in ("--exclude", excluded)),
        MANIFEST_FILENAME,
        str(root),
    ]

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()

    if process.returncode != 0:
        raise OSError(
            f"fd exited with code {process.returncode}: "
            f"{stderr.decode('utf-8', errors='replace').strip()}"
        )

    lines = stdout.decode("utf-8", errors="replace").splitlines()
    return sorted(Path(line) for line in lines if line)


async def find_manifests(root: str | Path, strategy: ScanStrategy = "auto") -> list[Path]:
    """Discover manifest paths under ``root``.

    Args:
        root: Directory to scan.
        strategy: ``walk``, ``fd``, or ``auto`` (fd when installed, else walk).

    Returns:
        Sorted manifest paths.
    """
    root = Path(root).absolute()

    if strategy != "walk":
        executable = find_fd_executable()
        if executable is not None:
            try:
                return await fd_manifests(root, executable)
            except OSError as e:
                logger.warning("fd_scan_failed", error=str(e), root=str(root))
        elif strategy == "fd":
            logger.warning("fd_not_found", root=str(root))

    return await asyncio.to_thread(walk_manifests, root)


async def _read_one(path: Path) -> Manifest | ScriptsError:
    try:
        return await asyncio.to_thread(read_manifest, path)
    except ScriptsError as e:
        return e


async def scan_manifests(root: str | Path, strategy: ScanStrategy = "auto") -> ScanResult:
    """Discover and parse every manifest under ``root``.

    All reads run concurrently; the result is only assembled once every read
    has finished.

    Args:
        root: Directory to scan.
        strategy: Traversal strategy, see ``find_manifests``.

    Returns:
        ScanResult with parsed manifests and failures. Manifests without a
        name are given the name "unknown".
    """
    paths = await find_manifests(root, strategy)

    async with asyncio.TaskGroup() as tg:
        tasks = [(path, tg.create_task(_read_one(path))) for path in paths]

    result = ScanResult()
    for path, task in tasks:
        outcome = task.result()
        if isinstance(outcome, ScriptsError):
            result.failures.append(ScanFailure(path=path, error=outcome))
        elif outcome.name is None:
            result.manifests.append(outcome.model_copy(update={"name": UNKNOWN_NAME}))
        else:
            result.manifests.append(outcome)

    logger.info(
        "scan_complete",
        root=str(root),
        discovered=len(paths),
        parsed=len(result.manifests),
        failed=len(result.failures),
    )
    return result
