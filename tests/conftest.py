"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

import pytest
import tomlkit

from changeset.config import Config
from changeset.discovery import discover_modules
from changeset.graph import Graph
from changeset.store import init_store


def _write_pyproject(
    directory: Path, name: str, deps: Iterable[str] = (), version: str = "0.1.0"
) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    dep_lines = "".join(f'    "{dep}",\n' for dep in deps)
    path = directory / "pyproject.toml"
    path.write_text(
        f'[project]\nname = "{name}"\nversion = "{version}"\n'
        f"dependencies = [\n{dep_lines}]\n"
    )
    return path


@pytest.fixture
def write_module() -> Callable[..., Path]:
    """Write a module's pyproject.toml: write_module(dir, name, deps, version)."""
    return _write_pyproject


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """Repository with root "acme" and lib-a ← lib-b ← lib-c (lib-c also uses lib-a)."""
    _write_pyproject(tmp_path, "acme")
    _write_pyproject(tmp_path / "lib-a", "acme-lib-a", ["requests>=2.0"])
    _write_pyproject(tmp_path / "lib-b", "acme-lib-b", ["acme-lib-a>=0.1"])
    _write_pyproject(
        tmp_path / "lib-c", "acme-lib-c", ["acme-lib-a", "acme-lib-b>=0.1"]
    )
    return tmp_path


@pytest.fixture
def graph(repo: Path) -> Graph:
    return discover_modules(repo)


@pytest.fixture
def store(repo: Path) -> Path:
    """The repo fixture with an initialized .changeset/ directory."""
    init_store(repo, Config(root="acme"))
    return repo


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    content = """\
[project]
name = "acme-app"
version = "1.0.0"
dependencies = [
    "requests>=2.0",
    "acme-lib-a>=1.0",
]

[project.optional-dependencies]
dev = ["pytest>=8.0", "acme-lib-b>=0.5"]

[dependency-groups]
test = ["pytest>=8.0", "acme-lib-c>=0.1"]
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "my-package"
version = "2.0.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0"]
"""
    return tomlkit.parse(content)
