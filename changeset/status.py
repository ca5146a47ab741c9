"""Changeset coverage checks.

Used by `changeset status --since REF` in CI: every module touched by a
branch should be named by at least one pending changeset.
"""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatch
from pathlib import PurePosixPath

from .config import Config
from .graph import Graph
from .models import Changeset, Module


def should_ignore_path(file: str, patterns: Iterable[str]) -> bool:
    """Whether a repository-relative path matches any ignore pattern.

    Patterns are matched against the full path and against the base name,
    so "*.md" ignores markdown files in every directory.
    """
    name = PurePosixPath(file).name
    return any(fnmatch(file, p) or fnmatch(name, p) for p in patterns)


def find_module_for_file(file: str, graph: Graph) -> Module:
    """The module owning a file: the deepest module directory containing it.

    Files outside every submodule belong to the root module.
    """
    best = graph.root
    best_depth = 0
    for module in graph.all_modules():
        if module is graph.root:
            continue
        try:
            rel = module.path.relative_to(graph.root.path).as_posix()
        except ValueError:
            continue
        if file == rel or file.startswith(rel + "/"):
            depth = len(PurePosixPath(rel).parts)
            if depth > best_depth:
                best, best_depth = module, depth
    return best


def map_files_to_modules(
    files: Iterable[str], graph: Graph, config: Config
) -> set[str]:
    """Short names of modules affected by changed files.

    Files matching config.ignore_paths are skipped, and modules listed in
    config.ignore are removed from the result.
    """
    modules = {
        find_module_for_file(f, graph).short_name
        for f in files
        if not should_ignore_path(f, config.ignore_paths)
    }
    return modules - set(config.ignore)


def covered_modules(changesets: Iterable[Changeset]) -> set[str]:
    return {module for cs in changesets for module in cs.modules}


def missing_changesets(
    changed: Iterable[str], changesets: Iterable[Changeset]
) -> list[str]:
    """Changed modules no pending changeset names, sorted."""
    return sorted(set(changed) - covered_modules(changesets))
