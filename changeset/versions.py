"""Version parsing and bumping utilities.

Release versions are semantic versions with a "v" prefix ("v1.2.3"), the
form used in git tags. pyproject.toml files need the PEP 440 spelling of the
same version, which to_python_version() produces.
"""

from __future__ import annotations

from datetime import datetime

import semver
from packaging.version import InvalidVersion, Version

from .errors import InvalidVersionError
from .models import Bump

ZERO_VERSION = "v0.0.0"


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    The "v" prefix is optional, and incomplete versions are padded:
    - "v1" → 1.0.0
    - "1.2" → 1.2.0
    - "v1.2.3-rc.1" → 1.2.3-rc.1

    Raises:
        InvalidVersionError: If the string is not a semantic version.
    """
    text = version_str[1:] if version_str.startswith("v") else version_str
    try:
        return semver.Version.parse(text, optional_minor_and_patch=True)
    except (TypeError, ValueError) as exc:
        raise InvalidVersionError(
            f"invalid semantic version {version_str!r}"
        ) from exc


def increment_version(current: str, bump: Bump | str) -> str:
    """Apply a bump to a version and return the next "v"-prefixed version.

    Examples:
        increment_version("v1.2.3", "minor") → "v1.3.0"
        increment_version("v0.10.5", "patch") → "v0.10.6"
        increment_version("v1.2.3", "major") → "v2.0.0"
        increment_version("v1.2.3-rc.1", "patch") → "v1.2.3"

    A patch bump of a pre-release only finalizes it; minor and major bumps
    drop pre-release and build metadata.

    Raises:
        InvalidVersionError: If current is not a semantic version or the
            bump is not one of patch, minor or major.
    """
    try:
        bump = Bump(bump)
    except ValueError as exc:
        raise InvalidVersionError(f"unknown bump type {bump!r}") from exc

    version = parse_version(current)
    if bump is Bump.MAJOR:
        nxt = version.bump_major()
    elif bump is Bump.MINOR:
        nxt = version.bump_minor()
    elif version.prerelease or version.build:
        nxt = version.finalize_version()
    else:
        nxt = version.bump_patch()
    return f"v{nxt}"


def to_python_version(version: str) -> str:
    """Convert a tag version to its normalized PEP 440 form.

    Examples:
        "v0.2.0" → "0.2.0"
        "v1.0.0-beta.1" → "1.0.0b1"
        "v0.2.0-dev.20261019120000" → "0.2.0.dev20261019120000"
    """
    text = version[1:] if version.startswith("v") else version
    try:
        return str(Version(text))
    except InvalidVersion as exc:
        raise InvalidVersionError(
            f"version {version!r} has no PEP 440 equivalent"
        ) from exc


def snapshot_version(version: str, when: datetime) -> str:
    """Append a timestamped dev suffix used for snapshot releases."""
    return f"{version}-dev.{when:%Y%m%d%H%M%S}"
