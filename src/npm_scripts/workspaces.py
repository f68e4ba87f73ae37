"""Workspace expansion for monorepo root manifests.

A root manifest may declare ``workspaces``: glob patterns naming sub-project
directories, each with its own package.json. Patterns are expanded relative to
the root manifest's directory with shell glob semantics (``*`` stays inside one
path segment, ``**`` crosses segments).
"""

from __future__ import annotations

import glob
from dataclasses import dataclass
from pathlib import Path

import structlog

from npm_scripts.errors import ScriptsError, ScriptsErrorCode
from npm_scripts.manifest import MANIFEST_FILENAME, Manifest, read_manifest

logger = structlog.get_logger()


@dataclass(frozen=True)
class WorkspaceEntry:
    """A workspace directory paired with its manifest.

    Attributes:
        filepath: The workspace directory as matched by the glob, relative to
            the root manifest's directory.
        manifest: The workspace's parsed package.json.
        directory: Absolute workspace directory, used as the working directory
            when running its scripts.
    """

    filepath: Path
    manifest: Manifest
    directory: Path


def expand_pattern(pattern: str, root_dir: Path) -> list[Path]:
    """Expand one workspace glob into matching directories.

    Args:
        pattern: Glob pattern relative to ``root_dir``.
        root_dir: Directory the pattern is anchored at.

    Returns:
        Matching directories relative to ``root_dir``, sorted.
    """
    matches = glob.glob(pattern, root_dir=root_dir, recursive=True)
    return [Path(match) for match in sorted(matches) if (root_dir / match).is_dir()]


def expand_workspaces(root: Manifest) -> dict[str, WorkspaceEntry]:
    """Load every workspace declared by a root manifest.

    Workspaces are keyed by their manifest ``name``. When two workspaces share
    a name the later one replaces the earlier one; each replacement is logged.
    A workspace without a name is keyed by its relative directory.

    Args:
        root: The root manifest.

    Returns:
        Mapping of workspace name to entry, in discovery order.

    Raises:
        ScriptsError: NO_WORKSPACES if the root declares no workspaces.
    """
    if root.workspaces is None:
        raise ScriptsError(
            code=ScriptsErrorCode.NO_WORKSPACES,
            message=f'No "workspaces" in {root.filepath}',
            path=root.filepath,
        )

    root_dir = root.directory.absolute()
    workspaces: dict[str, WorkspaceEntry] = {}

    for pattern in root.workspaces:
        for candidate in expand_pattern(pattern, root_dir):
            manifest_path = root_dir / candidate / MANIFEST_FILENAME
            if not manifest_path.is_file():
                continue

            try:
                manifest = read_manifest(manifest_path)
            except ScriptsError as e:
                if e.code == ScriptsErrorCode.NOT_READABLE:
                    continue
                logger.warning(
                    "workspace_manifest_invalid",
                    path=str(manifest_path),
                    error=e.message,
                )
                continue

            name = manifest.name or candidate.as_posix()
            previous = workspaces.get(name)
            if previous is not None:
                logger.warning(
                    "workspace_name_shadowed",
                    name=name,
                    previous=str(previous.filepath),
                    current=str(candidate),
                )

            workspaces[name] = WorkspaceEntry(
                filepath=candidate,
                manifest=manifest,
                directory=root_dir / candidate,
            )

    logger.debug(
        "workspaces_expanded",
        root=str(root.filepath),
        count=len(workspaces),
    )
    return workspaces
