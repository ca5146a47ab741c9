"""Git tag and repository helpers.

Release tags encode a module and a version. The root module is tagged with
the bare version ("v0.10.0"); other modules are prefixed by their short name
("lib-a/v0.10.0"). Every segment before the version belongs to the short
name, so "a/b/v1.0.0" is module "a/b".
"""

from __future__ import annotations

import re
import subprocess
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel

from .errors import ChangesetError, InvalidVersionError
from .shell import git
from .versions import parse_version

SEMVER_TAG = re.compile(r"^v\d+\.\d+\.\d+(-[0-9A-Za-z.]+)?(\+[0-9A-Za-z.]+)?$")


class Tag(BaseModel):
    """A parsed release tag."""

    name: str
    module: str
    version: str


def parse_tag(tag_name: str) -> tuple[str, str, bool]:
    """Split a tag name into (module short name, version, ok).

    Examples:
        "v0.10.0" → ("", "v0.10.0", True)
        "lib-a/v0.10.0" → ("lib-a", "v0.10.0", True)
        "lib-a/middleware/v0.10.0" → ("lib-a/middleware", "v0.10.0", True)
        "not-a-version" → ("", "", False)
    """
    if SEMVER_TAG.match(tag_name):
        return "", tag_name, True

    module, sep, version = tag_name.rpartition("/")
    if not sep or not module or not SEMVER_TAG.match(version):
        return "", "", False
    return module, version, True


def format_tag(module: str, version: str) -> str:
    """Build a tag name; the root module's tag is the bare version."""
    if not module:
        return version
    return f"{module}/{version}"


def latest_versions(tag_names: Iterable[str]) -> dict[str, str]:
    """Highest semantic version per module among the given tag names.

    Tags that are not release tags, or whose version semver rejects
    (leading zeros such as "v01.0.0"), are ignored.
    """
    latest: dict[str, str] = {}
    for name in tag_names:
        module, version, ok = parse_tag(name)
        if not ok:
            continue
        try:
            parsed = parse_version(version)
        except InvalidVersionError:
            continue
        current = latest.get(module)
        if current is None or parsed > parse_version(current):
            latest[module] = version
    return latest


def list_tags(root: Path) -> list[str]:
    return _git(root, "tag", "--list").splitlines()


def get_latest_versions(root: Path) -> dict[str, str]:
    """Latest released version of every module, from the repository's tags."""
    return latest_versions(list_tags(root))


def create_tag(root: Path, module: str, version: str) -> Tag:
    """Create a lightweight tag for a module version at HEAD."""
    tag = Tag(name=format_tag(module, version), module=module, version=version)
    _git(root, "tag", tag.name)
    return tag


def push_tags(root: Path, tags: Iterable[Tag], remote: str = "origin") -> None:
    refspecs = [f"refs/tags/{t.name}:refs/tags/{t.name}" for t in tags]
    if refspecs:
        _git(root, "push", remote, *refspecs)


def has_uncommitted_changes(root: Path) -> bool:
    return bool(_git(root, "status", "--porcelain"))


def changed_files(root: Path, since_ref: str) -> list[str]:
    """Files that differ between since_ref and HEAD, sorted."""
    output = _git(root, "diff", "--name-only", since_ref, "HEAD")
    return sorted(set(output.splitlines()))


def _git(root: Path, *args: str) -> str:
    try:
        return git(*args, cwd=root)
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
        raise ChangesetError(f"git {' '.join(args)} failed: {detail}") from exc
    except FileNotFoundError as exc:
        raise ChangesetError("git executable not found") from exc
