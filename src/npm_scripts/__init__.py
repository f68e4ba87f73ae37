"""npm-scripts: pick and run package.json scripts.

Discovers package.json manifests in a project (including monorepo
workspaces), presents their scripts through a pluggable selection prompt and
runs the chosen one with the inferred or configured package manager.
"""

from npm_scripts.api import NpmScripts
from npm_scripts.config import ScriptsOptions, ScriptsOverride
from npm_scripts.errors import ScriptsError, ScriptsErrorCode
from npm_scripts.manifest import Manifest, read_manifest
from npm_scripts.runner import RunRequest

__all__ = [
    "Manifest",
    "NpmScripts",
    "RunRequest",
    "ScriptsError",
    "ScriptsErrorCode",
    "ScriptsOptions",
    "ScriptsOverride",
    "read_manifest",
]
