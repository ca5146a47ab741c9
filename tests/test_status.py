"""Tests for changeset.status."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from changeset.config import Config
from changeset.discovery import discover_modules
from changeset.graph import Graph
from changeset.models import Bump, Changeset
from changeset.status import (
    covered_modules,
    find_module_for_file,
    map_files_to_modules,
    missing_changesets,
    should_ignore_path,
)


class TestShouldIgnorePath:
    def test_base_name_pattern(self) -> None:
        assert should_ignore_path("lib-a/docs/guide.md", ["*.md"])

    def test_directory_pattern(self) -> None:
        assert should_ignore_path("docs/index.rst", ["docs/*"])
        assert not should_ignore_path("lib-a/x.py", ["docs/*"])

    def test_no_patterns(self) -> None:
        assert not should_ignore_path("README.md", [])


class TestFindModuleForFile:
    def test_file_in_submodule(self, graph: Graph) -> None:
        assert find_module_for_file("lib-a/src/acme_lib_a/core.py", graph).short_name == "lib-a"

    def test_module_manifest(self, graph: Graph) -> None:
        assert find_module_for_file("lib-b/pyproject.toml", graph).short_name == "lib-b"

    def test_file_outside_submodules(self, graph: Graph) -> None:
        assert find_module_for_file("README.md", graph) is graph.root

    def test_prefix_is_not_a_parent(self, graph: Graph) -> None:
        assert find_module_for_file("lib-ab/x.py", graph) is graph.root

    def test_deepest_module_wins(
        self, repo: Path, write_module: Callable[..., Path]
    ) -> None:
        write_module(repo / "lib-a" / "plugins", "acme-lib-a-plugins")
        graph = discover_modules(repo)
        assert find_module_for_file("lib-a/plugins/x.py", graph).short_name == (
            "lib-a-plugins"
        )
        assert find_module_for_file("lib-a/x.py", graph).short_name == "lib-a"


class TestMapFilesToModules:
    def test_maps_and_dedupes(self, graph: Graph) -> None:
        files = ["lib-a/x.py", "lib-a/y.py", "lib-c/z.py", "setup.cfg"]
        assert map_files_to_modules(files, graph, Config()) == {"lib-a", "lib-c", ""}

    def test_ignore_paths(self, graph: Graph) -> None:
        files = ["lib-a/README.md", "lib-b/x.py"]
        config = Config(ignore_paths=["*.md"])
        assert map_files_to_modules(files, graph, config) == {"lib-b"}

    def test_ignored_modules(self, graph: Graph) -> None:
        files = ["lib-a/x.py", "lib-b/x.py"]
        config = Config(ignore=["lib-b"])
        assert map_files_to_modules(files, graph, config) == {"lib-a"}


class TestMissingChangesets:
    def test_reports_uncovered_modules(self) -> None:
        changesets = [
            Changeset(modules={"lib-a": Bump.MINOR}),
            Changeset(modules={"": Bump.PATCH}),
        ]
        assert covered_modules(changesets) == {"lib-a", ""}
        assert missing_changesets({"lib-c", "lib-a", "lib-b", ""}, changesets) == [
            "lib-b",
            "lib-c",
        ]

    def test_all_covered(self) -> None:
        changesets = [Changeset(modules={"lib-a": Bump.PATCH})]
        assert missing_changesets({"lib-a"}, changesets) == []
