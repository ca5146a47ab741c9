"""Exception hierarchy for changeset.

Every failure the engine raises derives from ChangesetError so the CLI can
turn it into a single user-facing error. Each message names the entity that
caused it (module, changeset file, version string or path).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .apply import ApplyState, ApplyStep


class ChangesetError(Exception):
    """Base class for all changeset errors."""


class DiscoveryError(ChangesetError):
    """A module manifest is missing or cannot be parsed."""


class CycleError(ChangesetError):
    """The internal dependency graph contains a cycle."""

    def __init__(self, modules: list[str]) -> None:
        self.modules = modules
        names = ", ".join(m or "(root)" for m in modules)
        super().__init__(f"Dependency cycle detected involving: {names}")


class InvalidChangesetError(ChangesetError):
    """A changeset file does not follow the changeset format."""

    def __init__(self, reason: str, path: Path | None = None) -> None:
        self.reason = reason
        self.path = path
        where = f" ({path})" if path is not None else ""
        super().__init__(f"invalid changeset format: {reason}{where}")


class InvalidVersionError(ChangesetError):
    """A version string is not a valid semantic version."""


class ConfigError(ChangesetError):
    """The store configuration file cannot be read or validated."""


class ManifestNotFoundError(ChangesetError):
    """No release manifest exists; the version step has not run yet."""


class ManifestCorruptError(ChangesetError):
    """A release manifest exists but cannot be parsed."""


class PersistenceError(ChangesetError):
    """Writing or deleting a file failed."""

    def __init__(self, message: str, path: Path) -> None:
        self.path = path
        super().__init__(f"{message}: {path}")


class ApplyError(ChangesetError):
    """Applying a release plan stopped partway through.

    The state records what was already done, so the plan can be resumed by
    passing it back to apply_release_plan().
    """

    def __init__(self, step: ApplyStep, state: ApplyState, cause: Exception) -> None:
        self.step = step
        self.state = state
        self.cause = cause
        super().__init__(f"{step.value} failed: {cause}")
