"""Changeset store.

Reads, writes and deletes changeset files in .changeset/. A changeset file
has a YAML header mapping module short names to bumps, followed by a
free-form markdown summary:

    ---
    "lib-a": minor
    "": patch
    ---

    Add retry support to the client.

An empty header is valid and declares a changeset that releases nothing.
"""

from __future__ import annotations

import json
import random
from pathlib import Path

import yaml

from .config import CONFIG_FILE, Config, store_dir, write_config
from .errors import ChangesetError, InvalidChangesetError, PersistenceError
from .manifest import MANIFEST_FILE
from .models import Bump, Changeset

README_NAME = "README.md"
RESERVED_NAMES = frozenset({README_NAME, CONFIG_FILE, MANIFEST_FILE})
DELIMITER = "---"

README_CONTENT = """\
# Changesets

This directory contains changeset files that describe changes to the codebase.

## What is a changeset?

A changeset is a file that describes which modules should be released and how
(major, minor, or patch). When it's time to release, `changeset version`
consumes these files to compute version bumps and write changelogs.

## Creating a changeset

Run:

```
changeset add
```

or non-interactively:

```
changeset add --module lib-a:minor --summary "Add retry support"
```

## File format

```markdown
---
"lib-a": minor
"lib-b": patch
---

Description of the changes.
```
"""


def parse_changeset(path: Path) -> Changeset:
    """Read and parse a single changeset file.

    The id is the file name without its .md extension.

    Raises:
        InvalidChangesetError: If a delimiter is missing, the header is not a
            mapping, or a bump is not one of patch, minor or major.
    """
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as exc:
        raise PersistenceError("reading changeset", path) from exc

    lines = text.splitlines()
    if not lines or lines[0].strip() != DELIMITER:
        raise InvalidChangesetError("missing opening ---", path)

    close = next(
        (i for i, line in enumerate(lines[1:], start=1) if line.strip() == DELIMITER),
        None,
    )
    if close is None:
        raise InvalidChangesetError("missing closing ---", path)

    modules = _parse_header("\n".join(lines[1:close]), path)
    summary = "\n".join(lines[close + 1 :]).strip()

    return Changeset(
        id=path.name.removesuffix(".md"),
        modules=modules,
        summary=summary,
        file_path=path,
    )


def _parse_header(header: str, path: Path) -> dict[str, Bump]:
    if not header.strip():
        return {}
    try:
        raw = yaml.safe_load(header)
    except yaml.YAMLError as exc:
        raise InvalidChangesetError(f"invalid YAML: {exc}", path) from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise InvalidChangesetError("header must map modules to bumps", path)

    modules: dict[str, Bump] = {}
    for module, bump in raw.items():
        if not isinstance(module, str):
            raise InvalidChangesetError(f"module name {module!r} is not a string", path)
        try:
            modules[module] = Bump(bump)
        except ValueError as exc:
            raise InvalidChangesetError(
                f"invalid bump type {bump!r} for module {module!r}", path
            ) from exc
    return modules


def format_changeset(changeset: Changeset) -> str:
    """Render a changeset in the file format, modules sorted by name."""
    lines = [DELIMITER]
    for module in sorted(changeset.modules):
        lines.append(f"{json.dumps(module, ensure_ascii=False)}: {changeset.modules[module]}")
    lines.extend([DELIMITER, "", changeset.summary])
    return "\n".join(lines) + "\n"


def read_changesets(root: Path) -> list[Changeset]:
    """Read every pending changeset, sorted by file name.

    Skips the README and the reserved config and manifest files. Returns an
    empty list when the store directory does not exist.

    Raises:
        InvalidChangesetError: Naming the first file that fails to parse.
    """
    directory = store_dir(root)
    if not directory.is_dir():
        return []

    changesets: list[Changeset] = []
    for path in sorted(directory.glob("*.md")):
        if path.name in RESERVED_NAMES or not path.is_file():
            continue
        changesets.append(parse_changeset(path))
    return changesets


def write_changeset(
    root: Path, changeset: Changeset, rng: random.Random | None = None
) -> Path:
    """Write a changeset to the store, creating the directory if needed.

    A random id is generated when the changeset has none; ids already used
    by a file in the store are skipped. Sets changeset.file_path.
    """
    directory = store_dir(root)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise PersistenceError("creating store directory", directory) from exc

    if not changeset.id:
        changeset.id = generate_id(rng)
        while (directory / f"{changeset.id}.md").exists():
            changeset.id = generate_id(rng)

    path = directory / f"{changeset.id}.md"
    try:
        path.write_text(format_changeset(changeset))
    except OSError as exc:
        raise PersistenceError("writing changeset", path) from exc

    changeset.file_path = path
    return path


def delete_changeset(changeset: Changeset, *, missing_ok: bool = False) -> None:
    """Remove a changeset's backing file.

    Raises:
        ChangesetError: If the changeset was never written.
        PersistenceError: If the file cannot be removed.
    """
    if changeset.file_path is None:
        raise ChangesetError(f"changeset {changeset.id!r} has no file path")
    try:
        changeset.file_path.unlink(missing_ok=missing_ok)
    except OSError as exc:
        raise PersistenceError("deleting changeset", changeset.file_path) from exc


def store_exists(root: Path) -> bool:
    return store_dir(root).is_dir()


def init_store(root: Path, config: Config) -> Path:
    """Create .changeset/ with config.json and the README guide.

    Raises:
        ChangesetError: If the store directory already exists.
    """
    directory = store_dir(root)
    if directory.exists():
        raise ChangesetError(f"{directory} already exists")
    write_config(root, config)
    readme = directory / README_NAME
    try:
        readme.write_text(README_CONTENT)
    except OSError as exc:
        raise PersistenceError("writing README", readme) from exc
    return directory


ADJECTIVES = (
    "amber", "brave", "calm", "dusty", "eager", "fair", "gentle", "happy",
    "icy", "jolly", "keen", "lively", "merry", "nimble", "odd", "proud",
    "quick", "rare", "shy", "tall", "urban", "vast", "warm", "young",
    "bright", "clever", "fancy", "golden", "honest", "lucky", "mighty",
    "noble", "orange", "purple", "quiet", "rapid", "silent", "tender",
    "violet", "witty", "hungry", "fuzzy", "grumpy", "sleepy", "silly",
)
NOUNS = (
    "ant", "bee", "cat", "dog", "elk", "fox", "goat", "hawk", "ibis",
    "jay", "kite", "lion", "mouse", "newt", "owl", "panda", "quail",
    "rabbit", "snake", "tiger", "urchin", "viper", "wolf", "yak", "zebra",
    "bear", "crane", "dove", "eagle", "frog", "gecko", "horse", "iguana",
    "koala", "lemur", "moose", "otter", "parrot", "seal", "turtle", "whale",
)
VERBS = (
    "jump", "run", "walk", "fly", "swim", "dance", "sing", "play",
    "read", "write", "think", "dream", "sleep", "wake", "eat", "drink",
    "laugh", "smile", "wave", "spin", "twist", "turn", "leap", "skip",
    "hop", "bounce", "glide", "soar", "dive", "climb", "crawl", "roll",
)


def generate_id(rng: random.Random | None = None) -> str:
    """Return a random adjective-noun-verb id such as "hungry-tiger-jump".

    Pass a seeded random.Random for reproducible ids.
    """
    if rng is None:
        rng = random.Random()
    return f"{rng.choice(ADJECTIVES)}-{rng.choice(NOUNS)}-{rng.choice(VERBS)}"
