"""Dependency handling utilities.

Provides functions for parsing PEP 508 dependency strings and rewriting
pyproject.toml files to pin internal dependencies to released versions.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

import tomlkit
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from .errors import DiscoveryError
from .graph import internal_short_name
from .toml import load_pyproject, save_pyproject
from .versions import to_python_version


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Handles version specifiers, extras, and normalizes the name per PEP 503
    (lowercase, hyphens instead of underscores).

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
    """
    return canonicalize_name(Requirement(dep_str).name)


def pin_dep(dep_str: str, version: str) -> str:
    """Pin a PEP 508 dependency to an exact version.

    Preserves any extras and environment markers specified in the original
    dependency string, but replaces the version specifier with an exact pin.

    Examples:
        pin_dep("requests>=2.0", "2.31.0") → "requests==2.31.0"
        pin_dep("pkg[extra1,extra2]~=1.0", "1.5.0") → "pkg[extra1,extra2]==1.5.0"
        pin_dep('pkg>=1; python_version<"3.12"', "2.0.0")
            → 'pkg==2.0.0; python_version < "3.12"'
    """
    req = Requirement(dep_str)
    # Sort extras alphabetically for consistent output
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    marker = f"; {req.marker}" if req.marker else ""
    return f"{req.name}{extras}=={version}{marker}"


def rewrite_pyproject(
    pyproject_path: Path,
    root: str,
    versions: Mapping[str, str],
    new_version: str | None = None,
) -> bool:
    """Pin internal dependencies of one module to their released versions.

    This function:
    1. Sets [project].version to new_version when given and the field is
       static (a dynamic version is left alone)
    2. Pins every internal dependency that has an entry in versions

    Internal deps are pinned in all locations:
    - [project].dependencies
    - [project].optional-dependencies.*
    - [dependency-groups].*

    Uses tomlkit to preserve formatting and comments. The file is only
    written when its content actually changes, so re-running with the same
    versions is a no-op.

    Args:
        pyproject_path: Path to the pyproject.toml file.
        root: Canonical name of the root module.
        versions: Map of module short name → "v"-prefixed release version.
        new_version: Release version of this module, if it is released.

    Returns:
        True if the file was rewritten.
    """
    doc = load_pyproject(pyproject_path)
    original = tomlkit.dumps(doc)
    project = cast(dict[str, Any], doc.get("project", {}))

    if new_version is not None and "version" in project:
        python_version = to_python_version(new_version)
        if str(project["version"]) != python_version:
            project["version"] = python_version

    if versions:
        deps = project.get("dependencies")
        if isinstance(deps, list):
            _pin_dep_list(deps, root, versions, pyproject_path)

        opt_deps = project.get("optional-dependencies")
        if isinstance(opt_deps, dict):
            for group in opt_deps.values():
                if isinstance(group, list):
                    _pin_dep_list(group, root, versions, pyproject_path)

        dep_groups = doc.get("dependency-groups")
        if isinstance(dep_groups, dict):
            for group in dep_groups.values():
                if isinstance(group, list):
                    _pin_dep_list(group, root, versions, pyproject_path)

    if tomlkit.dumps(doc) == original:
        return False
    save_pyproject(pyproject_path, doc)
    return True


def _pin_dep_list(
    deps: list, root: str, versions: Mapping[str, str], path: Path
) -> None:
    """Pin internal dependencies in a list, modifying in place."""
    for i, dep_str in enumerate(deps):
        if not isinstance(dep_str, str):
            continue
        try:
            name = dep_canonical_name(dep_str)
        except InvalidRequirement as exc:
            raise DiscoveryError(f"invalid dependency {dep_str!r} in {path}") from exc
        short_name = internal_short_name(name, root)
        if short_name is None or short_name not in versions:
            continue
        pinned = pin_dep(dep_str, to_python_version(versions[short_name]))
        if pinned != dep_str:
            deps[i] = pinned
