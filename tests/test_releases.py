"""Tests for changeset.releases."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from changeset.config import Config
from changeset.errors import CycleError, InvalidVersionError
from changeset.graph import Graph
from changeset.models import DEPENDENCY_REASON, Bump, Changeset, Module, Release
from changeset.releases import (
    aggregate_bumps,
    cascade_bumps,
    compute_releases,
    filter_ignored,
    snapshot_releases,
)


def _module(short_name: str, *deps: str) -> Module:
    return Module(
        name=f"acme-{short_name}" if short_name else "acme",
        short_name=short_name,
        path=Path("/repo") / short_name,
        dependencies=frozenset(deps),
    )


def _chain_graph() -> Graph:
    """a ← b ← c ← d, each depending only on the previous one."""
    modules = [_module("a"), _module("b", "a"), _module("c", "b"), _module("d", "c")]
    return Graph(_module(""), {m.short_name: m for m in modules})


def _summary(releases: list[Release]) -> list[tuple[str, str, str, str, str]]:
    return [
        (r.module, r.previous_version, r.version, r.bump.value, r.reason)
        for r in releases
    ]


class TestAggregateBumps:
    def test_highest_bump_wins(self) -> None:
        changesets = [
            Changeset(modules={"lib-a": Bump.PATCH, "lib-b": Bump.MAJOR}),
            Changeset(modules={"lib-a": Bump.MINOR}),
            Changeset(modules={"lib-a": Bump.PATCH}),
        ]
        assert aggregate_bumps(changesets) == {"lib-a": Bump.MINOR, "lib-b": Bump.MAJOR}

    def test_empty_changesets(self) -> None:
        assert aggregate_bumps([Changeset(summary="Docs")]) == {}


class TestCascadeBumps:
    def test_dependents_get_dependent_bump(self, graph: Graph) -> None:
        bumps = {"lib-a": Bump.MAJOR}
        reasons = cascade_bumps(bumps, graph, Bump.PATCH)
        assert bumps == {"lib-a": Bump.MAJOR, "lib-b": Bump.PATCH, "lib-c": Bump.PATCH}
        assert reasons == {"lib-b": DEPENDENCY_REASON, "lib-c": DEPENDENCY_REASON}

    def test_explicit_bump_kept_even_if_lower(self, graph: Graph) -> None:
        bumps = {"lib-a": Bump.MAJOR, "lib-c": Bump.PATCH}
        reasons = cascade_bumps(bumps, graph, Bump.MINOR)
        assert bumps["lib-c"] is Bump.PATCH
        assert bumps["lib-b"] is Bump.MINOR
        assert reasons == {"lib-b": DEPENDENCY_REASON}

    def test_transitive(self) -> None:
        bumps = {"b": Bump.MINOR}
        reasons = cascade_bumps(bumps, _chain_graph(), Bump.PATCH)
        assert bumps == {"b": Bump.MINOR, "c": Bump.PATCH, "d": Bump.PATCH}
        assert set(reasons) == {"c", "d"}

    def test_no_dependents(self, graph: Graph) -> None:
        bumps = {"lib-c": Bump.MINOR}
        assert cascade_bumps(bumps, graph, Bump.PATCH) == {}
        assert bumps == {"lib-c": Bump.MINOR}


class TestComputeReleases:
    def test_end_to_end_scenario(self, graph: Graph) -> None:
        changesets = [Changeset(modules={"lib-a": Bump.MINOR}, summary="Add retry")]
        tags = {"lib-a": "v0.1.0", "lib-b": "v0.1.0", "lib-c": "v0.1.0"}
        releases = compute_releases(changesets, graph, tags, Config())
        assert _summary(releases) == [
            ("lib-a", "v0.1.0", "v0.2.0", "minor", ""),
            ("lib-b", "v0.1.0", "v0.1.1", "patch", "dependency"),
            ("lib-c", "v0.1.0", "v0.1.1", "patch", "dependency"),
        ]

    def test_cascade_scenario(self, graph: Graph) -> None:
        changesets = [Changeset(modules={"lib-a": Bump.MINOR}, summary="Add retry")]
        tags = {"lib-a": "v1.0.0", "lib-b": "v0.5.0"}
        releases = compute_releases(changesets, graph, tags, Config())
        assert _summary(releases) == [
            ("lib-a", "v1.0.0", "v1.1.0", "minor", ""),
            ("lib-b", "v0.5.0", "v0.5.1", "patch", "dependency"),
            ("lib-c", "v0.0.0", "v0.0.1", "patch", "dependency"),
        ]

    def test_sorted_by_module(self, graph: Graph) -> None:
        changesets = [Changeset(modules={"lib-c": Bump.PATCH, "": Bump.MINOR})]
        releases = compute_releases(changesets, graph, {}, Config())
        assert [r.module for r in releases] == ["", "lib-c"]

    def test_highest_bump_across_changesets(self, graph: Graph) -> None:
        changesets = [
            Changeset(modules={"lib-c": Bump.PATCH}),
            Changeset(modules={"lib-c": Bump.MAJOR}),
        ]
        [release] = compute_releases(changesets, graph, {"lib-c": "v1.4.2"}, Config())
        assert release.version == "v2.0.0"
        assert release.bump is Bump.MAJOR

    def test_duplicate_changesets_do_not_change_plan(self, graph: Graph) -> None:
        cs = Changeset(modules={"lib-a": Bump.MINOR, "lib-b": Bump.PATCH})
        once = compute_releases([cs], graph, {}, Config())
        twice = compute_releases([cs, cs.model_copy()], graph, {}, Config())
        assert once == twice

    def test_unknown_module_skipped(self, graph: Graph) -> None:
        changesets = [Changeset(modules={"ghost": Bump.MAJOR})]
        assert compute_releases(changesets, graph, {}, Config()) == []

    def test_empty_changeset_releases_nothing(self, graph: Graph) -> None:
        assert compute_releases([Changeset(summary="x")], graph, {}, Config()) == []

    def test_ignored_module_still_cascades(self, graph: Graph) -> None:
        changesets = [Changeset(modules={"lib-a": Bump.MINOR})]
        releases = compute_releases(changesets, graph, {}, Config(ignore=["lib-a"]))
        assert [(r.module, r.reason) for r in releases] == [
            ("lib-b", DEPENDENCY_REASON),
            ("lib-c", DEPENDENCY_REASON),
        ]

    def test_configured_dependent_bump(self, graph: Graph) -> None:
        changesets = [Changeset(modules={"lib-a": Bump.PATCH})]
        config = Config(dependent_bump=Bump.MINOR)
        releases = compute_releases(changesets, graph, {"lib-b": "v1.2.3"}, config)
        assert _summary(releases)[1] == ("lib-b", "v1.2.3", "v1.3.0", "minor", "dependency")

    def test_empty_tag_treated_as_unreleased(self, graph: Graph) -> None:
        changesets = [Changeset(modules={"lib-c": Bump.MINOR})]
        [release] = compute_releases(changesets, graph, {"lib-c": ""}, Config())
        assert release.previous_version == "v0.0.0"

    def test_invalid_current_version(self, graph: Graph) -> None:
        changesets = [Changeset(modules={"lib-a": Bump.MINOR})]
        with pytest.raises(InvalidVersionError, match="computing version for lib-a"):
            compute_releases(changesets, graph, {"lib-a": "banana"}, Config())

    def test_cycle(self) -> None:
        modules = {"a": _module("a", "b"), "b": _module("b", "a")}
        graph = Graph(_module(""), modules)
        with pytest.raises(CycleError):
            compute_releases([Changeset(modules={"a": Bump.PATCH})], graph, {}, Config())


def test_filter_ignored() -> None:
    releases = [
        Release(module=m, version="v0.0.1", previous_version="v0.0.0", bump=Bump.PATCH)
        for m in ("lib-a", "lib-b")
    ]
    assert [r.module for r in filter_ignored(releases, ["lib-a"])] == ["lib-b"]
    assert filter_ignored(releases, []) == releases


def test_snapshot_releases() -> None:
    release = Release(
        module="lib-a", version="v1.1.0", previous_version="v1.0.0", bump=Bump.MINOR
    )
    [snap] = snapshot_releases([release], datetime(2026, 10, 19, 8, 0, 0))
    assert snap.version == "v1.1.0-dev.20261019080000"
    assert snap.previous_version == "v1.0.0"
    assert release.version == "v1.1.0"
