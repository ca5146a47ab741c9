"""Applying a release plan to the repository.

Application runs as a sequence of steps over plain files:

    REWRITE_MANIFESTS → UPDATE_CHANGELOGS → DELETE_CHANGESETS → WRITE_MANIFEST → DONE

Files offer no transactions, so a failure can leave the repository partly
updated. Instead of rolling back, every step is idempotent and ApplyState
records the work already done: re-running the command (or passing the state
from ApplyError back in) picks up where the previous run stopped. Once some
changesets are deleted, a fresh run simply sees fewer changesets.
"""

from __future__ import annotations

import datetime
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field
from tomlkit.exceptions import TOMLKitError

from .changelog import CHANGELOG_NAME, generate_changelog, update_changelog
from .config import Config
from .deps import rewrite_pyproject
from .discovery import MANIFEST_NAME
from .errors import ApplyError, ChangesetError
from .graph import Graph
from .manifest import write_manifest
from .models import Changeset, Release
from .shell import step
from .store import delete_changeset


class ApplyStep(str, Enum):
    REWRITE_MANIFESTS = "rewrite module manifests"
    UPDATE_CHANGELOGS = "update changelogs"
    DELETE_CHANGESETS = "delete consumed changesets"
    WRITE_MANIFEST = "write release manifest"
    DONE = "done"


# Snapshot releases are throwaway: no changelog, changesets stay pending.
SNAPSHOT_SKIPPED = frozenset({ApplyStep.UPDATE_CHANGELOGS, ApplyStep.DELETE_CHANGESETS})


class ApplyState(BaseModel):
    """Progress of one plan application.

    Attributes:
        step: Next step to run.
        rewritten: pyproject.toml files whose content changed.
        changelogs: Short names of modules whose changelog is up to date.
        deleted: Ids of changesets that have been consumed.
        manifest: Path of the written release manifest.
    """

    step: ApplyStep = ApplyStep.REWRITE_MANIFESTS
    rewritten: list[Path] = Field(default_factory=list)
    changelogs: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    manifest: Path | None = None

    @property
    def done(self) -> bool:
        return self.step is ApplyStep.DONE


def apply_release_plan(
    root: Path,
    graph: Graph,
    releases: Sequence[Release],
    changesets: Sequence[Changeset],
    config: Config,
    *,
    snapshot: bool = False,
    today: datetime.date | None = None,
    state: ApplyState | None = None,
) -> ApplyState:
    """Write a computed plan to disk.

    Args:
        root: Repository root.
        graph: Module graph the plan was computed from.
        releases: The plan.
        changesets: Changesets consumed by the plan.
        config: Supplies the root module name used to recognize internal deps.
        snapshot: Skip changelogs and keep changesets.
        today: Date for changelog headings; defaults to today.
        state: State from a previous, failed application to resume.

    Raises:
        ApplyError: When a step fails. Its state resumes the application.
    """
    if state is None:
        state = ApplyState()
    root_name = config.root or graph.root.name
    versions = {r.module: r.version for r in releases}

    handlers: dict[ApplyStep, Callable[[], None]] = {
        ApplyStep.REWRITE_MANIFESTS: lambda: _rewrite_manifests(
            state, graph, root_name, versions
        ),
        ApplyStep.UPDATE_CHANGELOGS: lambda: _update_changelogs(
            state, graph, releases, changesets, today
        ),
        ApplyStep.DELETE_CHANGESETS: lambda: _delete_changesets(state, changesets),
        ApplyStep.WRITE_MANIFEST: lambda: _write_manifest(state, root, releases),
    }
    order = list(ApplyStep)

    while not state.done:
        current = state.step
        if not (snapshot and current in SNAPSHOT_SKIPPED):
            try:
                handlers[current]()
            except (ChangesetError, OSError, TOMLKitError) as exc:
                raise ApplyError(current, state, exc) from exc
        state.step = order[order.index(current) + 1]

    return state


def _rewrite_manifests(
    state: ApplyState, graph: Graph, root_name: str, versions: dict[str, str]
) -> None:
    step("Updating pyproject.toml files")
    for module in graph.all_modules():
        if module.short_name not in versions and not module.dependencies:
            continue
        path = module.path / MANIFEST_NAME
        if rewrite_pyproject(
            path, root_name, versions, new_version=versions.get(module.short_name)
        ):
            state.rewritten.append(path)
            print(f"  {module.display_name}: {path}")


def _update_changelogs(
    state: ApplyState,
    graph: Graph,
    releases: Sequence[Release],
    changesets: Sequence[Changeset],
    today: datetime.date | None,
) -> None:
    step("Updating changelogs")
    for release in releases:
        if release.module in state.changelogs:
            continue
        module = graph.find_module(release.module)
        if module is None:
            continue
        entry = generate_changelog([release], changesets, today)
        if entry is None:
            continue
        path = module.path / CHANGELOG_NAME
        if update_changelog(path, entry):
            print(f"  {release.display_module}: {path}")
        state.changelogs.append(release.module)


def _delete_changesets(state: ApplyState, changesets: Sequence[Changeset]) -> None:
    step("Deleting consumed changesets")
    for changeset in changesets:
        if changeset.id in state.deleted:
            continue
        delete_changeset(changeset, missing_ok=True)
        state.deleted.append(changeset.id)
        print(f"  {changeset.id}")


def _write_manifest(state: ApplyState, root: Path, releases: Sequence[Release]) -> None:
    step("Writing release manifest")
    state.manifest = write_manifest(root, list(releases))
    print(f"  {state.manifest}")
