"""Tests for workspace expansion.

Tests cover:
    - Glob expansion and loading (TestExpandWorkspaces)
    - Skipped and failing candidates (TestExpandWorkspacesSkipping)
    - Duplicate workspace names (TestDuplicateNames)
"""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import write_json
from npm_scripts.errors import ScriptsError, ScriptsErrorCode
from npm_scripts.manifest import read_manifest
from npm_scripts.workspaces import expand_pattern, expand_workspaces


def make_root(tmp_path: Path, workspaces: object) -> Path:
    return write_json(tmp_path / "package.json", {"name": "root", "workspaces": workspaces})


# =============================================================================
# TestExpandWorkspaces
# =============================================================================


class TestExpandWorkspaces:
    """Tests for expand_workspaces."""

    def test_single_workspace(self, tmp_path: Path) -> None:
        """Verify a packages/* glob yields the workspace keyed by name."""
        root = read_manifest(make_root(tmp_path, ["packages/*"]))
        write_json(
            tmp_path / "packages" / "a" / "package.json",
            {"name": "a", "scripts": {"test": "jest"}},
        )

        workspaces = expand_workspaces(root)

        assert list(workspaces) == ["a"]
        entry = workspaces["a"]
        assert entry.filepath == Path("packages/a")
        assert entry.directory == tmp_path / "packages" / "a"
        assert entry.manifest.scripts == {"test": "jest"}

    def test_multiple_patterns(self, tmp_path: Path) -> None:
        """Verify every pattern is expanded."""
        root = read_manifest(make_root(tmp_path, ["packages/*", "apps/*"]))
        write_json(tmp_path / "packages" / "lib" / "package.json", {"name": "lib"})
        write_json(tmp_path / "apps" / "web" / "package.json", {"name": "web"})

        workspaces = expand_workspaces(root)

        assert set(workspaces) == {"lib", "web"}

    def test_star_matches_a_single_segment(self, tmp_path: Path) -> None:
        """Verify * does not descend into nested directories."""
        root = read_manifest(make_root(tmp_path, ["packages/*"]))
        write_json(tmp_path / "packages" / "a" / "package.json", {"name": "a"})
        write_json(
            tmp_path / "packages" / "group" / "b" / "package.json", {"name": "b"}
        )

        assert set(expand_workspaces(root)) == {"a"}

    def test_double_star_matches_nested(self, tmp_path: Path) -> None:
        """Verify ** crosses directory levels."""
        root = read_manifest(make_root(tmp_path, ["packages/**"]))
        write_json(tmp_path / "packages" / "a" / "package.json", {"name": "a"})
        write_json(
            tmp_path / "packages" / "group" / "b" / "package.json", {"name": "b"}
        )

        assert set(expand_workspaces(root)) == {"a", "b"}

    def test_literal_directory_pattern(self, tmp_path: Path) -> None:
        """Verify a pattern without wildcards names one directory."""
        root = read_manifest(make_root(tmp_path, ["tools/cli"]))
        write_json(tmp_path / "tools" / "cli" / "package.json", {"name": "cli"})

        assert list(expand_workspaces(root)) == ["cli"]

    def test_object_form(self, tmp_path: Path) -> None:
        """Verify yarn's {"packages": [...]} form is expanded."""
        root = read_manifest(make_root(tmp_path, {"packages": ["packages/*"]}))
        write_json(tmp_path / "packages" / "a" / "package.json", {"name": "a"})

        assert list(expand_workspaces(root)) == ["a"]

    def test_independent_of_process_cwd(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Verify globs are anchored at the root manifest's directory."""
        root = read_manifest(make_root(tmp_path, ["packages/*"]))
        write_json(tmp_path / "packages" / "a" / "package.json", {"name": "a"})
        elsewhere = tmp_path / "packages"
        monkeypatch.chdir(elsewhere)

        assert list(expand_workspaces(root)) == ["a"]

    def test_no_matches_returns_empty(self, tmp_path: Path) -> None:
        """Verify patterns matching nothing produce an empty map."""
        root = read_manifest(make_root(tmp_path, ["packages/*"]))

        assert expand_workspaces(root) == {}

    def test_missing_workspaces_raises(self, tmp_path: Path) -> None:
        """Verify a root without workspaces raises NO_WORKSPACES."""
        root = read_manifest(write_json(tmp_path / "package.json", {"name": "root"}))

        with pytest.raises(ScriptsError) as exc_info:
            expand_workspaces(root)

        assert exc_info.value.code == ScriptsErrorCode.NO_WORKSPACES


# =============================================================================
# TestExpandWorkspacesSkipping
# =============================================================================


class TestExpandWorkspacesSkipping:
    """Tests for candidates that are skipped."""

    def test_directory_without_manifest_is_skipped(self, tmp_path: Path) -> None:
        """Verify directories lacking package.json are silently ignored."""
        root = read_manifest(make_root(tmp_path, ["packages/*"]))
        write_json(tmp_path / "packages" / "a" / "package.json", {"name": "a"})
        (tmp_path / "packages" / "empty").mkdir()

        assert list(expand_workspaces(root)) == ["a"]

    def test_files_matching_glob_are_skipped(self, tmp_path: Path) -> None:
        """Verify only directories are candidates."""
        root = read_manifest(make_root(tmp_path, ["packages/*"]))
        (tmp_path / "packages").mkdir()
        (tmp_path / "packages" / "README.md").touch()

        assert expand_workspaces(root) == {}

    def test_invalid_manifest_is_skipped(self, tmp_path: Path) -> None:
        """Verify a workspace with malformed JSON does not abort expansion."""
        root = read_manifest(make_root(tmp_path, ["packages/*"]))
        write_json(tmp_path / "packages" / "a" / "package.json", {"name": "a"})
        broken = tmp_path / "packages" / "broken" / "package.json"
        broken.parent.mkdir(parents=True)
        broken.write_text("{")

        assert list(expand_workspaces(root)) == ["a"]

    def test_unnamed_workspace_keyed_by_directory(self, tmp_path: Path) -> None:
        """Verify a workspace without a name is keyed by its relative path."""
        root = read_manifest(make_root(tmp_path, ["packages/*"]))
        write_json(tmp_path / "packages" / "anon" / "package.json", {"scripts": {}})

        assert list(expand_workspaces(root)) == ["packages/anon"]


# =============================================================================
# TestDuplicateNames
# =============================================================================


class TestDuplicateNames:
    """Tests for workspaces that declare the same name."""

    def test_last_write_wins(self, tmp_path: Path) -> None:
        """Verify the later workspace replaces the earlier one."""
        root = read_manifest(make_root(tmp_path, ["packages/*"]))
        write_json(
            tmp_path / "packages" / "first" / "package.json",
            {"name": "dup", "scripts": {"one": "1"}},
        )
        write_json(
            tmp_path / "packages" / "second" / "package.json",
            {"name": "dup", "scripts": {"two": "2"}},
        )

        workspaces = expand_workspaces(root)

        assert list(workspaces) == ["dup"]
        assert workspaces["dup"].filepath == Path("packages/second")
        assert workspaces["dup"].manifest.scripts == {"two": "2"}


# =============================================================================
# TestExpandPattern
# =============================================================================


class TestExpandPattern:
    """Tests for expand_pattern."""

    def test_sorted_relative_directories(self, tmp_path: Path) -> None:
        for name in ("c", "a", "b"):
            (tmp_path / "pkgs" / name).mkdir(parents=True)

        assert expand_pattern("pkgs/*", tmp_path) == [
            Path("pkgs/a"),
            Path("pkgs/b"),
            Path("pkgs/c"),
        ]
