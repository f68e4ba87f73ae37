"""Tests for package manager detection.

Tests cover:
    - Lock file mapping (TestDetectIn)
    - Upward search and boundary handling (TestDetect)
    - Ancestor iteration (TestIterAncestors)
"""

from __future__ import annotations

from pathlib import Path

import pytest

from npm_scripts.package_manager import PackageManagerDetector, iter_ancestors

# =============================================================================
# TestDetectIn
# =============================================================================


class TestDetectIn:
    """Tests for single-directory lock file checks."""

    @pytest.mark.parametrize(
        ("lock_file", "expected"),
        [
            ("package-lock.json", "npm"),
            ("yarn.lock", "yarn"),
            ("pnpm-lock.yaml", "pnpm"),
            ("bun.lock", "bun"),
        ],
    )
    def test_lock_file_mapping(
        self, tmp_path: Path, lock_file: str, expected: str
    ) -> None:
        """Verify each lock file maps to its package manager."""
        (tmp_path / lock_file).touch()

        assert PackageManagerDetector().detect_in(tmp_path) == expected

    def test_no_lock_file(self, tmp_path: Path) -> None:
        """Verify None is returned without lock files."""
        assert PackageManagerDetector().detect_in(tmp_path) is None

    def test_exact_filename_only(self, tmp_path: Path) -> None:
        """Verify near-miss names are not treated as lock files."""
        (tmp_path / "yarn.lock.bak").touch()
        (tmp_path / "bun.lockb").touch()
        (tmp_path / "pnpm-lock.yml").touch()

        assert PackageManagerDetector().detect_in(tmp_path) is None

    def test_precedence_within_directory(self, tmp_path: Path) -> None:
        """Verify pnpm > yarn > bun > npm when several lock files exist."""
        detector = PackageManagerDetector()
        (tmp_path / "package-lock.json").touch()
        assert detector.detect_in(tmp_path) == "npm"

        (tmp_path / "bun.lock").touch()
        assert detector.detect_in(tmp_path) == "bun"

        (tmp_path / "yarn.lock").touch()
        assert detector.detect_in(tmp_path) == "yarn"

        (tmp_path / "pnpm-lock.yaml").touch()
        assert detector.detect_in(tmp_path) == "pnpm"

    def test_directory_named_like_lock_file_is_ignored(self, tmp_path: Path) -> None:
        """Verify only files count as lock files."""
        (tmp_path / "yarn.lock").mkdir()

        assert PackageManagerDetector().detect_in(tmp_path) is None


# =============================================================================
# TestDetect
# =============================================================================


class TestDetect:
    """Tests for the upward lock file search."""

    def test_pnpm_lock_at_root_applies_to_nested_files(self, tmp_path: Path) -> None:
        """Verify a root pnpm-lock.yaml is found from any file below it."""
        (tmp_path / "pnpm-lock.yaml").touch()
        nested = tmp_path / "packages" / "a" / "src"
        nested.mkdir(parents=True)
        source = nested / "index.ts"
        source.touch()

        detector = PackageManagerDetector()

        assert detector.detect(source, boundary=tmp_path) == "pnpm"
        assert detector.detect(nested, boundary=tmp_path) == "pnpm"
        assert detector.detect(tmp_path, boundary=tmp_path) == "pnpm"

    def test_nearest_ancestor_wins(self, tmp_path: Path) -> None:
        """Verify the closest directory with a lock file decides."""
        (tmp_path / "pnpm-lock.yaml").touch()
        nested = tmp_path / "legacy"
        nested.mkdir()
        (nested / "yarn.lock").touch()

        assert PackageManagerDetector().detect(nested, boundary=tmp_path) == "yarn"

    def test_defaults_to_npm(self, tmp_path: Path) -> None:
        """Verify npm is returned when no lock file exists."""
        assert PackageManagerDetector().detect(tmp_path, boundary=tmp_path) == "npm"

    def test_custom_default(self, tmp_path: Path) -> None:
        """Verify the default can be overridden."""
        detector = PackageManagerDetector()

        assert detector.detect(tmp_path, boundary=tmp_path, default="bun") == "bun"

    def test_does_not_search_above_boundary(self, tmp_path: Path) -> None:
        """Verify lock files above the boundary are ignored."""
        (tmp_path / "yarn.lock").touch()
        home = tmp_path / "home"
        project = home / "project"
        project.mkdir(parents=True)

        assert PackageManagerDetector().detect(project, boundary=home) == "npm"

    def test_boundary_itself_is_checked(self, tmp_path: Path) -> None:
        """Verify the boundary directory is part of the search."""
        home = tmp_path / "home"
        project = home / "project"
        project.mkdir(parents=True)
        (home / "bun.lock").touch()

        assert PackageManagerDetector().detect(project, boundary=home) == "bun"

    def test_home_is_the_default_boundary(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Verify the search stops at the home directory by default."""
        (tmp_path / "pnpm-lock.yaml").touch()
        home = tmp_path / "home"
        project = home / "project"
        project.mkdir(parents=True)
        monkeypatch.setenv("HOME", str(home))

        assert PackageManagerDetector().detect(project) == "npm"

    def test_idempotent(self, tmp_path: Path) -> None:
        """Verify repeated detection on an unchanged tree agrees."""
        (tmp_path / "yarn.lock").touch()
        detector = PackageManagerDetector()

        first = detector.detect(tmp_path, boundary=tmp_path)
        second = detector.detect(tmp_path, boundary=tmp_path)

        assert first == second == "yarn"


# =============================================================================
# TestIterAncestors
# =============================================================================


class TestIterAncestors:
    """Tests for iter_ancestors."""

    def test_stops_at_boundary(self, tmp_path: Path) -> None:
        """Verify iteration ends with the boundary."""
        start = tmp_path / "a" / "b"
        start.mkdir(parents=True)

        ancestors = list(iter_ancestors(start, tmp_path))

        assert ancestors == [
            start.resolve(),
            (tmp_path / "a").resolve(),
            tmp_path.resolve(),
        ]

    def test_outside_boundary_reaches_filesystem_root(self, tmp_path: Path) -> None:
        """Verify a start outside the boundary walks up to the root."""
        boundary = tmp_path / "elsewhere"
        boundary.mkdir()
        start = tmp_path / "project"
        start.mkdir()

        ancestors = list(iter_ancestors(start, boundary))

        assert ancestors[0] == start.resolve()
        assert ancestors[-1] == Path(ancestors[-1].anchor)
        assert boundary.resolve() not in ancestors
