"""Public operations.

Each operation resolves options, discovers manifests, asks the user to pick a
script through the configured select function and hands the resulting
RunRequest to the configured runner. Nothing is returned: every outcome,
including "nothing to run", is reported through the ``notify`` option.

Example:
    scripts = NpmScripts()
    scripts.setup(ScriptsOverride(package_manager="pnpm"))
    scripts.run_root_script()
    scripts.run_workspace_script(ScriptsOverride(workspace_script_solo_picker=False))
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

import structlog

from npm_scripts.config import NoticeLevel, ScriptsOptions, ScriptsOverride, merge_options
from npm_scripts.errors import ScriptsError, ScriptsErrorCode
from npm_scripts.flatten import ScriptItem, flatten_scripts, flatten_workspaces
from npm_scripts.manifest import Manifest
from npm_scripts.package_manager import PackageManagerDetector
from npm_scripts.resolve import resolve_from, resolve_root
from npm_scripts.runner import RunRequest
from npm_scripts.scanner import ScanResult, ScanStrategy, scan_manifests
from npm_scripts.workspaces import expand_workspaces

logger = structlog.get_logger()

# Errors that describe a malformed project rather than a missing piece
_WARNING_CODES = {ScriptsErrorCode.PARSE_ERROR, ScriptsErrorCode.NOT_READABLE}


def format_script_with_command(scripts: dict[str, str]) -> Callable[[str], str]:
    """Build a formatter rendering ``name\t"command"`` for a manifest's scripts."""

    def format_item(script_name: str) -> str:
        return f'{script_name}\t"{scripts[script_name]}"'

    return format_item


class NpmScripts:
    """Entry point holding the option layers and running the operations.

    Attributes:
        cwd: Project directory. Defaults to the process working directory at
            the time of each call.
        boundary: Highest directory searched when walking upward. Defaults to
            the home directory.
    """

    def __init__(
        self,
        defaults: ScriptsOptions | None = None,
        cwd: str | Path | None = None,
        boundary: Path | None = None,
        detector: PackageManagerDetector | None = None,
    ) -> None:
        """Initialize with built-in defaults.

        Args:
            defaults: Replaces the built-in default options.
            cwd: Project directory.
            boundary: Upper limit for upward searches.
            detector: Package manager detector for dependency injection.
        """
        self._defaults = defaults if defaults is not None else ScriptsOptions()
        self._setup = ScriptsOverride()
        self.cwd = Path(cwd) if cwd is not None else None
        self.boundary = boundary
        self._detector = detector if detector is not None else PackageManagerDetector()

    # =========================================================================
    # Options
    # =========================================================================

    def setup(self, override: ScriptsOverride) -> None:
        """Set process-wide option overrides.

        Keys set here replace the ones from earlier ``setup`` calls; keys not
        mentioned keep their previous value.
        """
        self._setup = self._setup.combine(override)
        logger.debug("options_setup", keys=sorted(override.model_fields_set))

    def options(self, override: ScriptsOverride | None = None) -> ScriptsOptions:
        """Resolve defaults, setup overrides and a per-call override."""
        return merge_options(self._defaults, self._setup, override)

    def _is_set(self, key: str, override: ScriptsOverride | None = None) -> bool:
        """Whether ``key`` was given explicitly in any option layer."""
        if key in self._defaults.model_fields_set:
            return True
        for layer in (self._setup, override):
            if layer is not None and getattr(layer, key) is not None:
                return True
        return False

    def _project_dir(self) -> Path:
        return self.cwd if self.cwd is not None else Path.cwd()

    def _package_manager(self, options: ScriptsOptions, directory: Path) -> str:
        if options.package_manager != "auto":
            return options.package_manager
        return self._detector.detect(directory, boundary=self.boundary)

    # =========================================================================
    # Shared helpers
    # =========================================================================

    def _report(self, options: ScriptsOptions, error: ScriptsError) -> None:
        level: NoticeLevel = "warning" if error.code in _WARNING_CODES else "info"
        logger.info(
            "operation_stopped",
            code=error.code.value,
            path=str(error.path) if error.path is not None else None,
        )
        options.notify(error.message, level)

    def _guard(
        self,
        options: ScriptsOptions,
        func: Callable[..., None],
        *args: Any,
    ) -> None:
        """Run ``func`` and turn any ScriptsError into a notice."""
        try:
            func(*args)
        except ScriptsError as e:
            self._report(options, e)

    def _run(self, options: ScriptsOptions, script_name: str, directory: Path) -> None:
        request = RunRequest(
            script_name=script_name,
            working_directory=directory,
            package_manager=self._package_manager(options, directory),
        )
        logger.info(
            "run_requested",
            script=request.script_name,
            directory=str(request.working_directory),
            package_manager=request.package_manager,
        )
        options.run_script(request)

    def _on_script(
        self, options: ScriptsOptions, directory: Path
    ) -> Callable[[str | None], None]:
        def on_choice(script_name: str | None) -> None:
            if script_name is None:
                logger.debug("selection_cancelled")
                return
            self._guard(options, self._run, options, script_name, directory)

        return on_choice

    def _on_item(self, options: ScriptsOptions) -> Callable[[ScriptItem | None], None]:
        def on_choice(item: ScriptItem | None) -> None:
            if item is None:
                logger.debug("selection_cancelled")
                return
            self._guard(options, self._run, options, item.script_name, item.directory)

        return on_choice

    @staticmethod
    def _require_scripts(manifest: Manifest) -> None:
        if not manifest.scripts:
            raise ScriptsError(
                code=ScriptsErrorCode.EMPTY_SCRIPTS,
                message=f'No "scripts" in {manifest.filepath}',
                path=manifest.filepath,
            )

    def _require_root(self) -> Manifest:
        root = resolve_root(self._project_dir())
        if root is None:
            raise ScriptsError(
                code=ScriptsErrorCode.NOT_FOUND,
                message=f"package.json not found in {self._project_dir()}",
                path=self._project_dir(),
            )
        return root

    # =========================================================================
    # Operations
    # =========================================================================

    def run_root_script(self, opts: ScriptsOverride | None = None) -> None:
        """Pick and run a script from the project's root package.json."""
        options = self.options(opts)
        self._guard(options, self._root_script, options)

    def _root_script(self, options: ScriptsOptions) -> None:
        root = self._require_root()
        self._require_scripts(root)

        options.select(
            list(root.scripts),
            prompt=options.select_script_prompt,
            format_item=options.select_script_format_item,
            on_choice=self._on_script(options, root.directory.absolute()),
        )

    def run_workspace_script(self, opts: ScriptsOverride | None = None) -> None:
        """Pick and run a script from one of the root's workspaces.

        With ``workspace_script_solo_picker`` a single prompt lists every
        ``"<workspace>  <script>"`` pair; otherwise the workspace is picked
        first, then one of its scripts.
        """
        options = self.options(opts)
        self._guard(options, self._workspace_script, options)

    def _workspace_script(self, options: ScriptsOptions) -> None:
        root = self._require_root()
        workspaces = expand_workspaces(root)

        if not workspaces:
            raise ScriptsError(
                code=ScriptsErrorCode.NOT_FOUND,
                message=f"No workspace package.json matches {root.workspaces}",
                path=root.filepath,
            )

        if options.workspace_script_solo_picker:
            items = flatten_workspaces(workspaces)
            if not items:
                raise ScriptsError(
                    code=ScriptsErrorCode.EMPTY_SCRIPTS,
                    message='No "scripts" in any workspace package.json',
                    path=root.filepath,
                )
            options.select(
                items,
                prompt=options.select_script_prompt,
                format_item=options.select_script_format_item,
                on_choice=self._on_item(options),
            )
            return

        def on_workspace(workspace_name: str | None) -> None:
            if workspace_name is None:
                logger.debug("selection_cancelled")
                return
            self._guard(options, pick_script, workspace_name)

        def pick_script(workspace_name: str) -> None:
            entry = workspaces[workspace_name]
            self._require_scripts(entry.manifest)
            options.select(
                list(entry.manifest.scripts),
                prompt=options.select_script_prompt,
                format_item=options.select_script_format_item,
                on_choice=self._on_script(options, entry.directory),
            )

        options.select(
            list(workspaces),
            prompt=options.select_workspace_prompt,
            format_item=options.select_workspace_format_item,
            on_choice=on_workspace,
        )

    def run_buffer_script(
        self,
        file_path: str | Path,
        opts: ScriptsOverride | None = None,
    ) -> None:
        """Pick and run a script from the package.json closest to ``file_path``.

        Unless a script formatter is configured, items show the script command
        next to its name.
        """
        options = self.options(opts)
        custom_format = self._is_set("select_script_format_item", opts)
        self._guard(
            options, self._buffer_script, options, Path(file_path), custom_format
        )

    def _buffer_script(
        self, options: ScriptsOptions, file_path: Path, custom_format: bool
    ) -> None:
        if not file_path.is_absolute():
            file_path = self._project_dir() / file_path

        manifest = resolve_from(file_path, boundary=self.boundary)
        if manifest is None:
            raise ScriptsError(
                code=ScriptsErrorCode.NOT_FOUND,
                message=f"Could not locate package.json for {file_path}",
                path=file_path,
            )
        self._require_scripts(manifest)

        format_item = options.select_script_format_item
        if not custom_format:
            format_item = format_script_with_command(manifest.scripts)

        options.select(
            list(manifest.scripts),
            prompt=options.select_script_prompt,
            format_item=format_item,
            on_choice=self._on_script(options, manifest.directory),
        )

    def run_all_script(
        self,
        opts: ScriptsOverride | None = None,
        strategy: ScanStrategy = "auto",
    ) -> None:
        """Pick and run a script from any package.json under the project.

        Manifests that fail to parse are reported in one warning; the rest are
        still offered. Safe to call from inside a running event loop, where
        the scan runs on a worker thread; async callers should prefer
        ``arun_all_script``.
        """
        options = self.options(opts)
        project_dir = self._project_dir()
        result = self._scan_blocking(project_dir, strategy)
        self._guard(options, self._offer_scanned, options, project_dir, result)

    async def arun_all_script(
        self,
        opts: ScriptsOverride | None = None,
        strategy: ScanStrategy = "auto",
    ) -> None:
        """Awaitable form of ``run_all_script``."""
        options = self.options(opts)
        project_dir = self._project_dir()
        result = await scan_manifests(project_dir, strategy)
        self._guard(options, self._offer_scanned, options, project_dir, result)

    @staticmethod
    def _scan_blocking(project_dir: Path, strategy: ScanStrategy) -> ScanResult:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(scan_manifests(project_dir, strategy))

        # asyncio.run refuses to nest, so give the scan its own loop
        with ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(
                asyncio.run, scan_manifests(project_dir, strategy)
            ).result()

    def _offer_scanned(
        self, options: ScriptsOptions, project_dir: Path, result: ScanResult
    ) -> None:
        if result.failures:
            lines = "\n".join(f"  {path}" for path in result.failed_paths)
            options.notify(
                f"Failed to parse {len(result.failures)} package.json file(s):\n{lines}",
                "warning",
            )

        items = flatten_scripts(result.manifests)
        if not items:
            raise ScriptsError(
                code=ScriptsErrorCode.EMPTY_SCRIPTS,
                message=f"No scripts found in any package.json under {project_dir}",
                path=project_dir,
            )

        options.select(
            items,
            prompt=options.select_script_prompt,
            format_item=options.select_script_format_item,
            on_choice=self._on_item(options),
        )
