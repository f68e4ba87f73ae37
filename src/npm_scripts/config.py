"""Option models and settings loading.

Options are layered: built-in defaults, then a process-wide override set once
through ``NpmScripts.setup()``, then a per-call override. Later layers win
key by key; only fields that were explicitly set on an override count.

Models:
    - ScriptsOptions: Fully resolved options with built-in defaults
    - ScriptsOverride: Partial options, every field optional
    - SettingsFile: The subset of options that can live in a YAML file

Functions:
    - merge_options: Apply overrides on top of resolved options
    - expand_env_vars: Expand ${VAR} patterns in strings
    - load_settings: Load a settings YAML file into an override
    - find_settings_path: Locate the settings file in standard locations
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal

import structlog
import typer
import yaml
from pydantic import BaseModel, ConfigDict, Field

from npm_scripts.runner import ProcessRunner, RunRequest
from npm_scripts.select import terminal_select

logger = structlog.get_logger()

PackageManagerOption = Literal["auto", "npm", "yarn", "pnpm", "bun"]

NoticeLevel = Literal["info", "warning"]

SETTINGS_ENV_VAR = "NPM_SCRIPTS_SETTINGS"


def echo_notice(message: str, level: NoticeLevel = "info") -> None:
    """Default notification channel: print to stderr."""
    if level == "warning":
        message = f"Warning: {message}"
    typer.echo(message, err=True)


class ScriptsOptions(BaseModel):
    """Resolved options for the public operations.

    Attributes:
        select: Selection prompt, see ``npm_scripts.select``.
        select_script_prompt: Prompt shown when picking a script.
        select_script_format_item: Renders a script item for display.
        select_workspace_prompt: Prompt shown when picking a workspace.
        select_workspace_format_item: Renders a workspace name for display.
        package_manager: Binary used to run scripts; "auto" infers it from
            lock files.
        workspace_script_solo_picker: Pick workspace and script in a single
            prompt (True) or in two consecutive prompts (False).
        run_script: Runner receiving the final RunRequest.
        notify: Receives user-facing notices as (message, level).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    select: Callable[..., object] = terminal_select
    select_script_prompt: str = "Select a script to run:"
    select_script_format_item: Callable[[Any], str] = str
    select_workspace_prompt: str = "Select a workspace to run a script:"
    select_workspace_format_item: Callable[[Any], str] = str
    package_manager: PackageManagerOption = "auto"
    workspace_script_solo_picker: bool = True
    run_script: Callable[[RunRequest], object] = Field(default_factory=ProcessRunner)
    notify: Callable[[str, NoticeLevel], object] = echo_notice


class ScriptsOverride(BaseModel):
    """A partial set of options. Unset (or None) fields leave lower layers alone."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    select: Callable[..., object] | None = None
    select_script_prompt: str | None = None
    select_script_format_item: Callable[[Any], str] | None = None
    select_workspace_prompt: str | None = None
    select_workspace_format_item: Callable[[Any], str] | None = None
    package_manager: PackageManagerOption | None = None
    workspace_script_solo_picker: bool | None = None
    run_script: Callable[[RunRequest], object] | None = None
    notify: Callable[[str, NoticeLevel], object] | None = None

    def combine(self, other: ScriptsOverride) -> ScriptsOverride:
        """Return a new override with ``other``'s set fields replacing ours."""
        values = {key: getattr(self, key) for key in self.model_fields_set}
        values.update({key: getattr(other, key) for key in other.model_fields_set})
        return ScriptsOverride(**values)


def merge_options(
    base: ScriptsOptions,
    *overrides: ScriptsOverride | None,
) -> ScriptsOptions:
    """Apply overrides to resolved options, later overrides winning.

    Args:
        base: The options to start from. Not modified.
        overrides: Override layers in increasing precedence.

    Returns:
        A new ScriptsOptions instance.
    """
    update: dict[str, Any] = {}
    for override in overrides:
        if override is None:
            continue
        for key in override.model_fields_set:
            value = getattr(override, key)
            if value is not None:
                update[key] = value
    return base.model_copy(update=update)


class SettingsFile(BaseModel):
    """Options that can be set from a YAML settings file.

    Example settings file:
        package_manager: pnpm
        workspace_script_solo_picker: false
        select_script_prompt: "Script:"
    """

    model_config = ConfigDict(extra="forbid")

    package_manager: PackageManagerOption | None = None
    select_script_prompt: str | None = None
    select_workspace_prompt: str | None = None
    workspace_script_solo_picker: bool | None = None

    def to_override(self) -> ScriptsOverride:
        return ScriptsOverride(**self.model_dump(exclude_none=True))


# Environment variable expansion pattern: ${VAR_NAME}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: str) -> str:
    """Expand ${VAR} patterns with environment variables.

    Args:
        value: String potentially containing ${VAR} patterns.

    Returns:
        String with all ${VAR} patterns replaced with environment variable values.

    Raises:
        ValueError: If a referenced environment variable is not set.

    Example:
        >>> os.environ["PM"] = "pnpm"
        >>> expand_env_vars("${PM}")
        "pnpm"
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise ValueError(f"Environment variable '{var_name}' not set")
        return env_value

    return _ENV_VAR_PATTERN.sub(replacer, value)


def load_settings(path: str | Path) -> ScriptsOverride:
    """Load settings from a YAML file.

    Args:
        path: Path to the settings file.

    Returns:
        An override holding the values set in the file.

    Raises:
        FileNotFoundError: If the settings file does not exist.
        yaml.YAMLError: If the file contains invalid YAML.
        pydantic.ValidationError: If the settings are invalid.
        ValueError: If environment variable expansion fails.
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with path.open() as f:
        data = yaml.safe_load(f)

    # Handle empty file
    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")

    data = {
        key: expand_env_vars(value) if isinstance(value, str) else value
        for key, value in data.items()
    }

    return SettingsFile.model_validate(data).to_override()


def find_settings_path() -> Path | None:
    """Find the settings file in standard locations.

    Searches for settings in:
        1. NPM_SCRIPTS_SETTINGS environment variable (if set)
        2. .npm-scripts.yml in the current working directory
        3. ~/.config/npm-scripts/settings.yml

    Returns:
        Path to the settings file if found, None otherwise.
    """
    env_path = os.environ.get(SETTINGS_ENV_VAR)
    if env_path:
        path = Path(env_path)
        if path.exists():
            logger.debug("settings_found_via_env", path=str(path))
            return path
        logger.warning(
            "settings_env_path_not_found",
            path=env_path,
            message=f"{SETTINGS_ENV_VAR} path does not exist, falling back to search",
        )

    search_paths = [
        Path.cwd() / ".npm-scripts.yml",
        Path.home() / ".config" / "npm-scripts" / "settings.yml",
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None
