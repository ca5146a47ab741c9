"""Release computation.

Turns pending changesets into a release plan:
1. Aggregate explicit bumps per module (highest bump wins)
2. Cascade a bump to every dependent that has none, in dependency order
3. Look up each module's current version from its latest tag
4. Compute the next versions
5. Drop ignored modules
6. Sort by module short name

Ignored modules are dropped only after the cascade, so an ignored module
still propagates its bump to the modules that depend on it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime

from .config import Config
from .errors import InvalidVersionError
from .graph import Graph
from .models import DEPENDENCY_REASON, Bump, Changeset, Release
from .versions import ZERO_VERSION, increment_version, snapshot_version


def aggregate_bumps(changesets: Iterable[Changeset]) -> dict[str, Bump]:
    """Highest requested bump per module across all changesets."""
    bumps: dict[str, Bump] = {}
    for changeset in changesets:
        for module, bump in changeset.modules.items():
            existing = bumps.get(module)
            if existing is None or bump > existing:
                bumps[module] = bump
    return bumps


def cascade_bumps(
    bumps: dict[str, Bump], graph: Graph, dependent_bump: Bump
) -> dict[str, str]:
    """Propagate bumps to dependents, modifying bumps in place.

    Modules are visited in topological order, so a dependent that receives a
    cascaded bump passes it on to its own dependents. A module that already
    has a bump keeps it, even when it is lower than dependent_bump.

    Returns:
        Map of module short name → reason for every cascaded bump.
    """
    reasons: dict[str, str] = {}
    for module in graph.topological_sort():
        if module.short_name not in bumps:
            continue
        for dependent in graph.dependents(module.short_name):
            if dependent.short_name not in bumps:
                bumps[dependent.short_name] = dependent_bump
                reasons[dependent.short_name] = DEPENDENCY_REASON
    return reasons


def compute_releases(
    changesets: Iterable[Changeset],
    graph: Graph,
    tags: Mapping[str, str],
    config: Config,
) -> list[Release]:
    """Compute the release plan for a set of changesets.

    Args:
        changesets: All pending changesets.
        graph: Module dependency graph.
        tags: Module short name → latest released version (e.g., "v0.1.0").
        config: Supplies the dependent bump and the ignore list.

    Returns:
        Releases sorted by module short name. Modules named by a changeset
        but missing from the graph are skipped.

    Raises:
        InvalidVersionError: If a current version cannot be incremented.
            No partial plan is returned.
        CycleError: If the dependency graph has a cycle.
    """
    bumps = aggregate_bumps(changesets)
    reasons = cascade_bumps(bumps, graph, config.dependent_bump)

    releases: list[Release] = []
    for short_name, bump in bumps.items():
        module = graph.find_module(short_name)
        if module is None:
            continue

        current = tags.get(short_name) or ZERO_VERSION
        try:
            version = increment_version(current, bump)
        except InvalidVersionError as exc:
            raise InvalidVersionError(
                f"computing version for {module.display_name}: {exc}"
            ) from exc

        releases.append(
            Release(
                module=short_name,
                version=version,
                previous_version=current,
                bump=bump,
                reason=reasons.get(short_name, ""),
            )
        )

    releases = filter_ignored(releases, config.ignore)
    return sorted(releases, key=lambda r: r.module)


def filter_ignored(releases: Iterable[Release], ignore: Iterable[str]) -> list[Release]:
    """Remove releases of ignored modules."""
    ignored = set(ignore)
    return [r for r in releases if r.module not in ignored]


def snapshot_releases(releases: Iterable[Release], when: datetime) -> list[Release]:
    """Copies of releases whose versions carry a timestamped dev suffix."""
    return [
        r.model_copy(update={"version": snapshot_version(r.version, when)})
        for r in releases
    ]
