"""Data models for changeset.

These Pydantic models represent the core data structures shared by the
discovery, changeset store, release computation and manifest layers.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEPENDENCY_REASON = "dependency"


class Bump(str, Enum):
    """Semantic version bump severity.

    Bumps are totally ordered: patch < minor < major. Every conflict between
    changesets is resolved by taking the maximum under this order, so the
    comparison operators compare severity, not the string values.
    """

    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"

    @property
    def rank(self) -> int:
        return _BUMP_RANK[self]

    def __str__(self) -> str:
        return self.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Bump):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Bump):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Bump):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Bump):
            return NotImplemented
        return self.rank >= other.rank


_BUMP_RANK = {Bump.PATCH: 0, Bump.MINOR: 1, Bump.MAJOR: 2}


def compare_bumps(a: Bump, b: Bump) -> int:
    """Return -1, 0 or 1 as a is less than, equal to or greater than b."""
    return (a.rank > b.rank) - (a.rank < b.rank)


class Module(BaseModel):
    """A project discovered in the repository.

    Attributes:
        name: Canonical project name from [project].name.
        short_name: Name relative to the root project; "" for the root itself.
        path: Directory holding the module's pyproject.toml.
        dependencies: Short names of internal modules this one depends on.
              External dependencies are filtered out at discovery time.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    short_name: str
    path: Path
    dependencies: frozenset[str] = frozenset()

    @property
    def display_name(self) -> str:
        return self.short_name or "(root)"


class Changeset(BaseModel):
    """A single changeset file.

    Attributes:
        id: File name without extension (e.g., "hungry-tiger-jump").
        modules: Module short name → requested bump.
        summary: Markdown description used for the changelog.
        file_path: Backing file; None until the changeset is written.
    """

    id: str = ""
    modules: dict[str, Bump] = Field(default_factory=dict)
    summary: str = ""
    file_path: Path | None = None

    def highest_bump(self) -> Bump:
        """Highest bump this changeset declares, patch when it declares none."""
        return max(self.modules.values(), default=Bump.PATCH)


class Release(BaseModel):
    """A computed release for one module.

    Attributes:
        module: Module short name.
        version: Next version, e.g. "v0.2.0".
        previous_version: Version from the latest tag, or "v0.0.0".
        bump: Severity that was applied.
        reason: "" for explicit releases, "dependency" for cascaded ones.
    """

    model_config = ConfigDict(populate_by_name=True)

    module: str
    version: str
    previous_version: str = Field(alias="previousVersion")
    bump: Bump
    reason: str = ""

    @property
    def display_module(self) -> str:
        return self.module or "(root)"


class Manifest(BaseModel):
    """Persisted release plan consumed by the tag and publish commands."""

    releases: list[Release]
