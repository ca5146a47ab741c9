"""Store configuration (.changeset/config.json)."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError, PersistenceError
from .models import Bump

STORE_DIR = ".changeset"
CONFIG_FILE = "config.json"


class Config(BaseModel):
    """Settings read at the start of every command.

    Attributes:
        root: Canonical name of the root module, captured by `init`.
        base_branch: Branch releases are cut from.
        ignore: Module short names excluded from every release.
        ignore_paths: Glob patterns excluded from changed-file checks.
        dependent_bump: Bump applied to modules released only because a
            dependency was.
    """

    model_config = ConfigDict(populate_by_name=True)

    root: str = ""
    base_branch: str = Field(default="main", alias="baseBranch")
    ignore: list[str] = Field(default_factory=list)
    ignore_paths: list[str] = Field(default_factory=list, alias="ignorePaths")
    dependent_bump: Bump = Field(default=Bump.PATCH, alias="dependentBump")


def store_dir(root: Path) -> Path:
    return Path(root) / STORE_DIR


def read_config(root: Path) -> Config:
    """Read .changeset/config.json, returning defaults if it doesn't exist.

    Raises:
        ConfigError: If the file is not valid JSON or has invalid values.
    """
    path = store_dir(root) / CONFIG_FILE
    try:
        data = path.read_text()
    except FileNotFoundError:
        return Config()
    except OSError as exc:
        raise ConfigError(f"reading {path}: {exc}") from exc

    try:
        return Config.model_validate_json(data)
    except ValidationError as exc:
        raise ConfigError(f"parsing {path}: {exc}") from exc


def write_config(root: Path, config: Config) -> Path:
    """Write config to .changeset/config.json, creating the directory."""
    path = store_dir(root) / CONFIG_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(config.model_dump_json(by_alias=True, indent=2) + "\n")
    except OSError as exc:
        raise PersistenceError("writing config", path) from exc
    return path
