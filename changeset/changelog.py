"""Changelog generation.

Each released module gets an entry in its CHANGELOG.md listing changeset
summaries grouped by severity:

    ## v0.2.0 (2026-10-19)

    ### Features

    - Add retry support to the client.

New entries are inserted above the newest existing one, so anything written
before the first "## " heading (title, intro) stays at the top.
"""

from __future__ import annotations

import datetime
import re
from collections.abc import Iterable, Sequence
from pathlib import Path

from pydantic import BaseModel, Field

from .errors import PersistenceError
from .models import Bump, Changeset, Release

CHANGELOG_NAME = "CHANGELOG.md"

PREAMBLE = (
    "# Changelog\n\n"
    "All notable changes to this project will be documented in this file.\n\n"
)

SECTION_TITLES = {
    Bump.MAJOR: "Breaking Changes",
    Bump.MINOR: "Features",
    Bump.PATCH: "Bug Fixes",
}
_TITLE_BUMPS = {title: bump for bump, title in SECTION_TITLES.items()}

_ENTRY_HEADING = re.compile(r"^## ", re.MULTILINE)


class ChangelogEntry(BaseModel):
    """One version's section of a changelog."""

    version: str
    date: datetime.date | None = None
    changes: dict[Bump, list[str]] = Field(default_factory=dict)


def generate_changelog(
    releases: Sequence[Release],
    changesets: Iterable[Changeset],
    today: datetime.date | None = None,
) -> ChangelogEntry | None:
    """Build a changelog entry from releases and the changesets behind them.

    The entry takes the version of the first release. Every distinct,
    non-empty summary is filed under the highest bump its changeset
    declares (patch for a changeset that declares no modules).

    Returns:
        The entry, or None when there are no releases.
    """
    if not releases:
        return None

    entry = ChangelogEntry(
        version=releases[0].version, date=today or datetime.date.today()
    )
    seen: set[str] = set()
    for changeset in changesets:
        if not changeset.summary or changeset.summary in seen:
            continue
        seen.add(changeset.summary)
        entry.changes.setdefault(changeset.highest_bump(), []).append(
            changeset.summary
        )
    return entry


def format_changelog_entry(entry: ChangelogEntry) -> str:
    """Render an entry as markdown, sections ordered major → minor → patch.

    Continuation lines of multi-line summaries are indented under their
    bullet; blank continuation lines are dropped.
    """
    heading = f"## {entry.version}"
    if entry.date is not None:
        heading += f" ({entry.date:%Y-%m-%d})"
    lines = [heading, ""]

    for bump in (Bump.MAJOR, Bump.MINOR, Bump.PATCH):
        changes = entry.changes.get(bump)
        if not changes:
            continue
        lines.extend([f"### {SECTION_TITLES[bump]}", ""])
        for change in changes:
            first, *rest = change.split("\n")
            lines.append(f"- {first}")
            lines.extend(f"  {line}" for line in rest if line.strip())
        lines.append("")

    return "\n".join(lines) + "\n"


def update_changelog(path: Path, entry: ChangelogEntry) -> bool:
    """Insert an entry into a changelog, creating the file if needed.

    A changelog that already has a heading for entry.version is left
    untouched, so updating the same module twice is safe.

    Returns:
        True if the file was written.
    """
    try:
        existing = path.read_text()
    except FileNotFoundError:
        existing = ""
    except OSError as exc:
        raise PersistenceError("reading changelog", path) from exc

    if any(e.version == entry.version for e in parse_changelog_text(existing)):
        return False

    rendered = format_changelog_entry(entry)
    if not existing:
        content = PREAMBLE + rendered
    else:
        match = _ENTRY_HEADING.search(existing)
        if match:
            content = existing[: match.start()] + rendered + existing[match.start() :]
        else:
            content = existing.rstrip("\n") + "\n\n" + rendered

    try:
        path.write_text(content)
    except OSError as exc:
        raise PersistenceError("writing changelog", path) from exc
    return True


def parse_changelog(path: Path) -> list[ChangelogEntry]:
    """Read a changelog back into entries, in document order.

    Returns an empty list when the file does not exist.
    """
    try:
        text = path.read_text()
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise PersistenceError("reading changelog", path) from exc
    return parse_changelog_text(text)


def parse_changelog_text(text: str) -> list[ChangelogEntry]:
    entries: list[ChangelogEntry] = []
    current: ChangelogEntry | None = None
    bump: Bump | None = None

    for line in text.splitlines():
        if line.startswith("## "):
            version, _, rest = line[3:].strip().partition(" ")
            current = ChangelogEntry(version=version, date=_parse_date(rest))
            entries.append(current)
            bump = None
        elif line.startswith("### "):
            bump = _TITLE_BUMPS.get(line[4:].strip())
        elif current is None or bump is None:
            continue
        elif line.startswith("- "):
            current.changes.setdefault(bump, []).append(line[2:])
        elif line.startswith("  ") and current.changes.get(bump):
            current.changes[bump][-1] += "\n" + line[2:]

    return entries


def _parse_date(text: str) -> datetime.date | None:
    text = text.strip().strip("()")
    if not text:
        return None
    try:
        return datetime.date.fromisoformat(text)
    except ValueError:
        return None
