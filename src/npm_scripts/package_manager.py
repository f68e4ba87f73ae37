"""Package manager detection.

Infers which command-line tool should run scripts by looking for lock files
in the start directory and its ancestors.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Literal

import structlog

logger = structlog.get_logger()

PackageManager = Literal["npm", "yarn", "pnpm", "bun"]

PACKAGE_MANAGERS: tuple[str, ...] = ("npm", "yarn", "pnpm", "bun")

DEFAULT_PACKAGE_MANAGER: PackageManager = "npm"


def iter_ancestors(start: Path, boundary: Path | None = None) -> Iterator[Path]:
    """Yield ``start`` and its parents, nearest first.

    The walk stops after yielding ``boundary`` (when ``start`` is inside it)
    or the filesystem root, whichever comes first.

    Args:
        start: Directory to start from.
        boundary: Last directory to yield. Defaults to the home directory.

    Yields:
        Each directory on the way up.
    """
    boundary = (boundary if boundary is not None else Path.home()).resolve()
    current = start.resolve()

    while True:
        yield current
        if current == boundary or current.parent == current:
            return
        current = current.parent


class PackageManagerDetector:
    """Detects the package manager to use based on lock files."""

    # Checked in this order within a single directory
    LOCK_FILE_MAPPING: dict[str, PackageManager] = {
        "pnpm-lock.yaml": "pnpm",
        "yarn.lock": "yarn",
        "bun.lock": "bun",
        "package-lock.json": "npm",
    }

    def detect_in(self, directory: Path) -> PackageManager | None:
        """Check a single directory for lock files.

        Args:
            directory: Directory to check.

        Returns:
            The package manager owning the first lock file found, or None.
        """
        for lock_file, manager in self.LOCK_FILE_MAPPING.items():
            if (directory / lock_file).is_file():
                return manager
        return None

    def detect(
        self,
        start: str | Path,
        boundary: Path | None = None,
        default: PackageManager = DEFAULT_PACKAGE_MANAGER,
    ) -> PackageManager:
        """Auto-detect the package manager from lock files.

        Searches upward from ``start``; the nearest directory holding any lock
        file wins. Lock file precedence within a directory:
        pnpm-lock.yaml > yarn.lock > bun.lock > package-lock.json

        Args:
            start: Directory (or file) to start searching from.
            boundary: Highest directory to check. Defaults to the home directory.
            default: Package manager to use if no lock file is found.

        Returns:
            The detected or default package manager.
        """
        start = Path(start)
        if not start.is_dir():
            start = start.parent

        for directory in iter_ancestors(start, boundary):
            manager = self.detect_in(directory)
            if manager is not None:
                logger.debug(
                    "package_manager_detected",
                    manager=manager,
                    directory=str(directory),
                )
                return manager

        logger.debug("package_manager_defaulted", manager=default, start=str(start))
        return default
