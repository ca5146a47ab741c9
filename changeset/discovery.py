"""Module discovery.

Walks a repository, parses every pyproject.toml it finds and builds the
dependency Graph. A module's identifier is its canonical [project].name;
only dependencies on other modules of the same repository are kept.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from packaging.requirements import InvalidRequirement
from tomlkit.exceptions import TOMLKitError

from .deps import dep_canonical_name
from .errors import DiscoveryError
from .graph import Graph, internal_short_name
from .models import Module
from .toml import get_all_dependency_strings, get_project_name, load_pyproject

MANIFEST_NAME = "pyproject.toml"

# Vendored trees and test fixtures may contain pyproject.toml files that are
# not modules of this repository.
SKIP_DIRS = frozenset(
    {"vendor", "testdata", "fixtures", "node_modules", "__pycache__", "site-packages"}
)


def parse_manifest(path: Path) -> tuple[str, list[str]]:
    """Read a module's identifier and its direct dependency names.

    Returns:
        Tuple of (canonical project name, canonical dependency names).
        The project name falls back to the directory name.

    Raises:
        DiscoveryError: If the file cannot be read or parsed.
    """
    try:
        doc = load_pyproject(path)
    except (OSError, TOMLKitError) as exc:
        raise DiscoveryError(f"parsing {path}: {exc}") from exc

    deps: list[str] = []
    for dep_str in get_all_dependency_strings(doc):
        try:
            deps.append(dep_canonical_name(dep_str))
        except InvalidRequirement as exc:
            raise DiscoveryError(
                f"parsing {path}: invalid dependency {dep_str!r}"
            ) from exc
    return get_project_name(doc, path.parent.name), deps


def discover_modules(root_dir: Path) -> Graph:
    """Scan a repository and build its module graph.

    The root pyproject.toml defines the root module; every other directory
    with a pyproject.toml is a submodule. Hidden directories and the
    directories in SKIP_DIRS are not descended into. Dependencies keep only
    modules that were actually found, so a third-party "acme-tools" under
    root "acme" is dropped.

    Raises:
        DiscoveryError: If the root manifest is missing, any manifest fails
            to parse, or two modules resolve to the same short name.
    """
    root_dir = Path(root_dir)
    root_manifest = root_dir / MANIFEST_NAME
    if not root_manifest.is_file():
        raise DiscoveryError(f"no {MANIFEST_NAME} found in {root_dir}")

    root_name, root_deps = parse_manifest(root_manifest)
    root = Module(
        name=root_name,
        short_name="",
        path=root_dir,
        dependencies=_internal_deps(root_deps, root_name, own=""),
    )

    modules: dict[str, Module] = {}
    for manifest in _find_manifests(root_dir):
        name, deps = parse_manifest(manifest)
        short_name = internal_short_name(name, root_name)
        if short_name is None:
            # Not prefixed by the root name; keep the full name
            short_name = name
        if short_name == "" or short_name in modules:
            other = root_dir if short_name == "" else modules[short_name].path
            raise DiscoveryError(
                f"module {name!r} at {manifest.parent} is also declared at {other}"
            )
        modules[short_name] = Module(
            name=name,
            short_name=short_name,
            path=manifest.parent,
            dependencies=_internal_deps(deps, root_name, own=short_name),
        )

    # Names sharing the root prefix may still be third-party projects
    known = {"", *modules}
    root = root.model_copy(update={"dependencies": root.dependencies & known})
    modules = {
        short_name: module.model_copy(
            update={"dependencies": module.dependencies & known}
        )
        for short_name, module in modules.items()
    }
    return Graph(root, modules)


def _find_manifests(root_dir: Path) -> Iterator[Path]:
    """Yield submodule manifests below root_dir in a stable order."""
    for dirpath, dirnames, filenames in os.walk(root_dir):
        dirnames[:] = sorted(
            d for d in dirnames if not d.startswith(".") and d not in SKIP_DIRS
        )
        current = Path(dirpath)
        if current != root_dir and MANIFEST_NAME in filenames:
            yield current / MANIFEST_NAME


def _internal_deps(names: Iterable[str], root_name: str, own: str) -> frozenset[str]:
    """Short names of internal dependencies, excluding the module itself."""
    internal: set[str] = set()
    for name in names:
        short_name = internal_short_name(name, root_name)
        if short_name is not None and short_name != own:
            internal.add(short_name)
    return frozenset(internal)
