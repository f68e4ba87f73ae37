"""Manifest reading and decoding.

A manifest is one parsed ``package.json``. Only the fields this package needs
are decoded (``name``, ``scripts`` and ``workspaces``); anything missing or of
the wrong type is treated as absent instead of failing the whole decode.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from npm_scripts.errors import ScriptsError, ScriptsErrorCode

logger = structlog.get_logger()

MANIFEST_FILENAME = "package.json"

# Name given to manifests that do not declare one
UNKNOWN_NAME = "unknown"


class Manifest(BaseModel):
    """A parsed package.json.

    Attributes:
        filepath: Path to the file on disk.
        name: Declared package name, or None when absent.
        scripts: Mapping of script name to its (opaque) shell command.
        workspaces: Workspace glob patterns, or None when not declared.
    """

    model_config = ConfigDict(frozen=True)

    filepath: Path
    name: str | None = None
    scripts: dict[str, str] = Field(default_factory=dict)
    workspaces: list[str] | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, v: Any) -> str | None:
        return v if isinstance(v, str) else None

    @field_validator("scripts", mode="before")
    @classmethod
    def _coerce_scripts(cls, v: Any) -> dict[str, str]:
        """Keep only string-to-string entries; anything else means no scripts."""
        if not isinstance(v, dict):
            return {}
        return {
            name: command
            for name, command in v.items()
            if isinstance(name, str) and isinstance(command, str)
        }

    @field_validator("workspaces", mode="before")
    @classmethod
    def _coerce_workspaces(cls, v: Any) -> list[str] | None:
        """Accept a list of globs or yarn's ``{"packages": [...]}`` form."""
        if isinstance(v, dict):
            v = v.get("packages")
        if not isinstance(v, list):
            return None
        return [pattern for pattern in v if isinstance(pattern, str)]

    @classmethod
    def from_data(cls, filepath: Path, data: dict[str, Any]) -> Manifest:
        """Build a manifest from already-decoded JSON.

        Args:
            filepath: Where the data was read from.
            data: The decoded JSON object.

        Returns:
            A new Manifest instance.
        """
        return cls(
            filepath=filepath,
            name=data.get("name"),
            scripts=data.get("scripts"),
            workspaces=data.get("workspaces"),
        )

    @property
    def directory(self) -> Path:
        """Directory containing the manifest."""
        return self.filepath.parent

    @property
    def has_scripts(self) -> bool:
        return bool(self.scripts)


def parse_manifest(filepath: Path, content: str) -> Manifest:
    """Decode manifest content read from ``filepath``.

    Args:
        filepath: Path the content was read from (used for errors).
        content: Raw file content.

    Returns:
        The decoded manifest.

    Raises:
        ScriptsError: PARSE_ERROR if the content is not a JSON object or
            cannot be decoded.
    """
    # Valid JSON can still fail to decode: oversized integers raise ValueError
    # and deep nesting raises RecursionError.
    try:
        data = json.loads(content)
    except (ValueError, RecursionError) as e:
        raise ScriptsError(
            code=ScriptsErrorCode.PARSE_ERROR,
            message=f"Invalid JSON in {filepath}: {e}",
            path=filepath,
            cause=e,
        ) from e

    if not isinstance(data, dict):
        raise ScriptsError(
            code=ScriptsErrorCode.PARSE_ERROR,
            message=f"Expected a JSON object in {filepath}",
            path=filepath,
        )

    return Manifest.from_data(filepath, data)


def read_manifest(path: str | Path) -> Manifest:
    """Read and parse a single manifest file.

    Every call reads the file again and returns a fresh instance.

    Args:
        path: Path to the package.json file.

    Returns:
        The parsed manifest.

    Raises:
        ScriptsError: NOT_READABLE if the file does not exist or cannot be
            opened, PARSE_ERROR if its content is not a JSON object.
    """
    filepath = Path(path)

    try:
        content = filepath.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ScriptsError(
            code=ScriptsErrorCode.PARSE_ERROR,
            message=f"{filepath} is not valid UTF-8",
            path=filepath,
            cause=e,
        ) from e
    except OSError as e:
        raise ScriptsError(
            code=ScriptsErrorCode.NOT_READABLE,
            message=f"Cannot read {filepath}: {e.strerror or e}",
            path=filepath,
            cause=e,
        ) from e

    manifest = parse_manifest(filepath, content)
    logger.debug(
        "manifest_read",
        path=str(filepath),
        name=manifest.name,
        script_count=len(manifest.scripts),
    )
    return manifest
