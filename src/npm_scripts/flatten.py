"""Flattening manifests into selectable script items."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from npm_scripts.manifest import UNKNOWN_NAME, Manifest
from npm_scripts.workspaces import WorkspaceEntry

# Separator used by the single workspace+script picker
WORKSPACE_SEPARATOR = "  "


@dataclass(frozen=True)
class ScriptItem:
    """One runnable script, ready to be shown in a selection prompt.

    Attributes:
        label: Display label.
        script_name: The script's key in its manifest.
        directory: Directory the script runs in.
        command: The raw script command, for display only.
        workspace: Name of the manifest the script came from.
    """

    label: str
    script_name: str
    directory: Path
    command: str = ""
    workspace: str = UNKNOWN_NAME

    def __str__(self) -> str:
        return self.label


def flatten_scripts(manifests: Iterable[Manifest]) -> list[ScriptItem]:
    """Turn manifests into one item per script, labelled ``"<name>: <script>"``.

    Manifests without scripts contribute nothing.

    Args:
        manifests: Manifests to flatten.

    Returns:
        One ScriptItem per (manifest, script) pair.
    """
    items: list[ScriptItem] = []
    for manifest in manifests:
        name = manifest.name or UNKNOWN_NAME
        for script_name, command in manifest.scripts.items():
            items.append(
                ScriptItem(
                    label=f"{name}: {script_name}",
                    script_name=script_name,
                    directory=manifest.directory,
                    command=command,
                    workspace=name,
                )
            )
    return items


def flatten_workspaces(workspaces: Mapping[str, WorkspaceEntry]) -> list[ScriptItem]:
    """Turn expanded workspaces into items labelled ``"<workspace>  <script>"``.

    Args:
        workspaces: Mapping produced by ``expand_workspaces``.

    Returns:
        One ScriptItem per (workspace, script) pair.
    """
    return [
        ScriptItem(
            label=f"{workspace_name}{WORKSPACE_SEPARATOR}{script_name}",
            script_name=script_name,
            directory=entry.directory,
            command=command,
            workspace=workspace_name,
        )
        for workspace_name, entry in workspaces.items()
        for script_name, command in entry.manifest.scripts.items()
    ]
