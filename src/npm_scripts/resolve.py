"""Locating the manifest that applies to a directory or file."""

from __future__ import annotations

from pathlib import Path

import structlog

from npm_scripts.manifest import MANIFEST_FILENAME, Manifest, read_manifest
from npm_scripts.package_manager import iter_ancestors

logger = structlog.get_logger()


def closest_directory(path: str | Path) -> Path:
    """Return ``path`` if it is a directory, else the directory containing it."""
    path = Path(path)
    if path.is_dir():
        return path
    return path.parent


def resolve_root(cwd: str | Path | None = None) -> Manifest | None:
    """Load the project's root manifest.

    Only ``<cwd>/package.json`` is considered; there is no upward search.

    Args:
        cwd: Directory to look in. Defaults to the process working directory.

    Returns:
        The root manifest, or None if there is none.

    Raises:
        ScriptsError: If the file exists but cannot be read or parsed.
    """
    directory = Path(cwd) if cwd is not None else Path.cwd()
    filepath = directory / MANIFEST_FILENAME

    if not filepath.is_file():
        logger.debug("root_manifest_not_found", directory=str(directory))
        return None

    return read_manifest(filepath)


def resolve_from(file_path: str | Path, boundary: Path | None = None) -> Manifest | None:
    """Find the nearest manifest at or above ``file_path``.

    Args:
        file_path: A file or directory to start from.
        boundary: Highest directory to check. Defaults to the home directory.

    Returns:
        The closest manifest, or None if no ancestor within the boundary has one.

    Raises:
        ScriptsError: If the closest manifest cannot be read or parsed.
    """
    start = closest_directory(Path(file_path).absolute())

    for directory in iter_ancestors(start, boundary):
        filepath = directory / MANIFEST_FILENAME
        if filepath.is_file():
            return read_manifest(filepath)

    logger.debug("closest_manifest_not_found", start=str(start))
    return None
