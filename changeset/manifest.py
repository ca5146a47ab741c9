"""Release manifest persistence (.changeset/release-manifest.json).

The version command writes the computed plan here; tag and publish read it
back later without recomputing anything.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from .config import store_dir
from .errors import ManifestCorruptError, ManifestNotFoundError, PersistenceError
from .models import Manifest, Release

MANIFEST_FILE = "release-manifest.json"


def manifest_path(root: Path) -> Path:
    return store_dir(root) / MANIFEST_FILE


def manifest_exists(root: Path) -> bool:
    return manifest_path(root).is_file()


def read_manifest(root: Path) -> Manifest:
    """Read the release manifest.

    Raises:
        ManifestNotFoundError: If no manifest has been written yet.
        ManifestCorruptError: If the file exists but cannot be parsed.
    """
    path = manifest_path(root)
    try:
        data = path.read_text()
    except FileNotFoundError as exc:
        raise ManifestNotFoundError(f"release manifest not found: {path}") from exc
    except OSError as exc:
        raise PersistenceError("reading manifest", path) from exc

    try:
        return Manifest.model_validate_json(data)
    except ValidationError as exc:
        raise ManifestCorruptError(f"parsing {path}: {exc}") from exc


def write_manifest(root: Path, releases: list[Release]) -> Path:
    """Write releases to the manifest, creating the store directory."""
    path = manifest_path(root)
    manifest = Manifest(releases=releases)
    # Explicit releases have an empty reason, which is left out
    data = manifest.model_dump_json(by_alias=True, exclude_defaults=True, indent=2)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(data + "\n")
    except OSError as exc:
        raise PersistenceError("writing manifest", path) from exc
    return path


def delete_manifest(root: Path) -> None:
    """Remove the manifest; a missing manifest is not an error."""
    path = manifest_path(root)
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        raise PersistenceError("deleting manifest", path) from exc
