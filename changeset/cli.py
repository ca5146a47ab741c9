"""CLI entry point for changeset."""

from __future__ import annotations

import functools
import json
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

import click

from .apply import ApplyStep, apply_release_plan
from .config import Config, read_config
from .discovery import discover_modules
from .errors import ApplyError, ChangesetError, ManifestNotFoundError
from .git import (
    Tag,
    changed_files,
    create_tag,
    format_tag,
    get_latest_versions,
    has_uncommitted_changes,
    push_tags,
)
from .manifest import delete_manifest, read_manifest
from .models import Bump, Changeset, Manifest
from .releases import compute_releases, snapshot_releases
from .status import covered_modules, map_files_to_modules, missing_changesets
from .store import init_store, read_changesets, store_exists, write_changeset

F = TypeVar("F", bound=Callable[..., Any])

BUMP_CHOICES = [b.value for b in Bump]
EMPTY_SUMMARY = "Empty changeset for changes that don't require a release."


def _handle_errors(func: F) -> F:
    """Report engine errors as click errors (exit code 1)."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ChangesetError as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper  # type: ignore[return-value]


def _require_store(root: Path) -> None:
    if not store_exists(root):
        raise click.ClickException(
            "Changeset not initialized. Run 'changeset init' first."
        )


def _read_manifest(root: Path) -> Manifest:
    try:
        return read_manifest(root)
    except ManifestNotFoundError as exc:
        raise click.ClickException(
            "No release manifest found. Run 'changeset version' first."
        ) from exc


def parse_module_bumps(values: tuple[str, ...]) -> dict[str, Bump]:
    """Parse repeated NAME:BUMP options; ":minor" names the root module."""
    modules: dict[str, Bump] = {}
    for value in values:
        name, sep, bump = value.rpartition(":")
        if not sep:
            raise click.BadParameter(
                f"invalid module:bump format: {value!r} (expected 'module:bump')",
                param_hint="--module",
            )
        if bump not in BUMP_CHOICES:
            raise click.BadParameter(
                f"invalid bump type {bump!r} for module {name!r} "
                "(must be patch, minor, or major)",
                param_hint="--module",
            )
        modules[name] = Bump(bump)
    return modules


@click.group()
@click.version_option()
def cli() -> None:
    """Manage versions and changelogs of a multi-module repository."""


@cli.command()
@_handle_errors
def init() -> None:
    """Create .changeset/ with config.json and README.md."""
    root = Path.cwd()
    if store_exists(root):
        raise click.ClickException(
            "Changeset already initialized. "
            "Run 'changeset status' to see pending changesets."
        )

    graph = discover_modules(root)
    init_store(root, Config(root=graph.root.name))

    click.echo(f"✓ Initialized .changeset/ for {graph.root.name}")
    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Run 'changeset add' to create your first changeset")
    click.echo("  2. Run 'changeset status' to see pending releases")


@cli.command()
@click.option(
    "--empty",
    is_flag=True,
    help="Create an empty changeset (for changes that don't need releases).",
)
@click.option(
    "--module",
    "modules",
    multiple=True,
    metavar="NAME:BUMP",
    help="Module and bump for non-interactive mode (e.g., lib-a:minor). Repeatable.",
)
@click.option("-m", "--summary", default="", help="Changeset summary.")
@click.option(
    "--open", "open_editor", is_flag=True, help="Open the new changeset in $EDITOR."
)
@_handle_errors
def add(empty: bool, modules: tuple[str, ...], summary: str, open_editor: bool) -> None:
    """Create a new changeset."""
    root = Path.cwd()
    _require_store(root)

    if empty:
        changeset = Changeset(summary=summary or EMPTY_SUMMARY)
    elif modules:
        changeset = Changeset(
            modules=parse_module_bumps(modules),
            summary=summary or "No summary provided.",
        )
    else:
        changeset = _prompt_changeset(root, summary)

    path = write_changeset(root, changeset)
    click.echo(f"✓ Created changeset {changeset.id} ({path.relative_to(root)})")

    if open_editor:
        click.edit(filename=str(path))


def _prompt_changeset(root: Path, summary: str) -> Changeset:
    graph = discover_modules(root)
    modules = graph.all_modules()

    click.echo("Modules:")
    for i, module in enumerate(modules, start=1):
        label = module.short_name or f"(root) {module.name}"
        click.echo(f"  {i}. {label}")

    answer = click.prompt("Which modules have changes? (comma-separated numbers)")
    selected: list[str] = []
    for part in answer.split(","):
        part = part.strip()
        if not part.isdigit() or not 1 <= int(part) <= len(modules):
            raise click.BadParameter(f"no module numbered {part!r}")
        selected.append(modules[int(part) - 1].short_name)

    bumps: dict[str, Bump] = {}
    for short_name in selected:
        choice = click.prompt(
            f"What type of change is this for {short_name or '(root)'}?",
            type=click.Choice(BUMP_CHOICES),
            default=Bump.PATCH.value,
        )
        bumps[short_name] = Bump(choice)

    if not summary:
        summary = click.prompt("Describe the changes")
    return Changeset(modules=bumps, summary=summary)


@cli.command()
@click.option("--verbose", is_flag=True, help="Show full changeset contents.")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write JSON output to a file for CI tools.",
)
@click.option(
    "--since",
    default=None,
    metavar="REF",
    help="Check that modules changed since REF have changesets.",
)
@_handle_errors
def status(verbose: bool, output: Path | None, since: str | None) -> None:
    """Show pending changesets and planned releases."""
    root = Path.cwd()
    _require_store(root)
    config = read_config(root)
    changesets = read_changesets(root)

    if since:
        _status_since(root, since, changesets, config, output)
        return

    if not changesets:
        click.echo("No pending changesets.")
        return

    graph = discover_modules(root)
    releases = compute_releases(changesets, graph, get_latest_versions(root), config)

    if output is not None:
        data = {
            "changesets": [
                {
                    "id": cs.id,
                    "modules": {m: b.value for m, b in cs.modules.items()},
                    "summary": cs.summary,
                    "filePath": str(cs.file_path) if cs.file_path else "",
                }
                for cs in changesets
            ],
            "releases": [
                r.model_dump(mode="json", by_alias=True, exclude_defaults=True)
                for r in releases
            ],
        }
        output.write_text(json.dumps(data, indent=2) + "\n")
        click.echo(f"Output written to {output}")
        return

    click.echo(f"Found {len(changesets)} changeset(s):\n")
    for cs in changesets:
        click.echo(f"  {cs.id}")
        if verbose:
            for module, bump in sorted(cs.modules.items()):
                click.echo(f"    - {module or '(root)'}: {bump}")
            if cs.summary:
                click.echo(f"    Summary: {cs.summary}")

    if not releases:
        click.echo("\nNo releases planned.")
        return

    click.echo("\nPlanned releases:\n")
    for r in releases:
        reason = f" ({r.reason})" if r.reason else ""
        click.echo(
            f"  {r.display_module}: {r.previous_version} → {r.version} ({r.bump}){reason}"
        )


def _status_since(
    root: Path,
    since: str,
    changesets: list[Changeset],
    config: Config,
    output: Path | None,
) -> None:
    graph = discover_modules(root)
    changed = map_files_to_modules(changed_files(root, since), graph, config)
    covered = covered_modules(changesets)
    missing = missing_changesets(changed, changesets)

    if output is not None:
        data = {
            "changedModules": sorted(changed),
            "coveredModules": sorted(covered),
            "missingChangesets": missing,
        }
        output.write_text(json.dumps(data, indent=2) + "\n")
        click.echo(f"Output written to {output}")
    else:
        click.echo(f"Changes since {since}:\n")
        if not changed:
            click.echo("  No module changes detected.")
            return
        click.echo(f"  Changed modules: {len(changed)}")
        for module in sorted(changed):
            mark = "✓ has changeset" if module in covered else "✗ missing changeset"
            click.echo(f"    {module or '(root)'}: {mark}")

    if missing:
        raise click.ClickException(
            f"{len(missing)} module(s) have changes but no changeset. "
            "Run 'changeset add' to create one."
        )
    if output is None:
        click.echo("\nAll changed modules have changesets.")


@cli.command()
@click.option(
    "--ignore", multiple=True, metavar="NAME", help="Skip a module. Repeatable."
)
@click.option("--snapshot", is_flag=True, help="Create snapshot versions for testing.")
@_handle_errors
def version(ignore: tuple[str, ...], snapshot: bool) -> None:
    """Consume changesets: update pyproject.toml files and changelogs."""
    root = Path.cwd()
    _require_store(root)

    if not snapshot and has_uncommitted_changes(root):
        raise click.ClickException(
            "You have uncommitted changes. Please commit or stash them first."
        )

    config = read_config(root)
    config = config.model_copy(update={"ignore": [*config.ignore, *ignore]})

    changesets = read_changesets(root)
    if not changesets:
        click.echo("No changesets found, nothing to release.")
        return

    graph = discover_modules(root)
    releases = compute_releases(changesets, graph, get_latest_versions(root), config)
    if not releases:
        click.echo("No releases to process after filtering.")
        return

    if snapshot:
        releases = snapshot_releases(releases, datetime.now())

    try:
        apply_release_plan(root, graph, releases, changesets, config, snapshot=snapshot)
    except ApplyError as exc:
        raise click.ClickException(f"{exc}\n{_recovery_hint(exc)}") from exc

    click.echo("\nSnapshot release summary:" if snapshot else "\nRelease summary:")
    for r in releases:
        reason = f" ({r.reason})" if r.reason else ""
        click.echo(f"  {r.display_module}: {r.previous_version} → {r.version}{reason}")

    click.echo()
    click.echo("Next steps:")
    if snapshot:
        click.echo("  1. Run 'changeset publish --no-push' to create snapshot tags")
        click.echo("  2. Test the snapshot versions")
        click.echo("  3. Delete snapshot tags when done: git tag -d <tag>")
    else:
        click.echo("  1. Review and commit the updated files")
        click.echo("  2. Run 'changeset publish' to create and push git tags")


def _recovery_hint(exc: ApplyError) -> str:
    """How to get back to a state where 'changeset version' runs again."""
    if exc.step in (ApplyStep.REWRITE_MANIFESTS, ApplyStep.UPDATE_CHANGELOGS):
        # No changeset consumed yet, so a re-run computes the same plan
        return (
            "The repository is partially updated. Commit the partial changes "
            "or stash them (git stash), then re-run 'changeset version'."
        )
    return (
        "The repository is partially updated and some changesets are consumed. "
        "Stash the changes (git stash) to restore them, then re-run "
        "'changeset version'."
    )


@cli.command()
@_handle_errors
def tag() -> None:
    """Create git tags from the release manifest without pushing."""
    root = Path.cwd()
    manifest = _read_manifest(root)
    if not manifest.releases:
        click.echo("No releases in manifest.")
        return

    for r in manifest.releases:
        created = create_tag(root, r.module, r.version)
        click.echo(f"  ✓ {created.name}")

    click.echo(f"\nCreated {len(manifest.releases)} tag(s).")
    click.echo("To push them: changeset publish, or git push origin --tags")


@cli.command()
@click.option("--no-push", is_flag=True, help="Create tags locally without pushing.")
@_handle_errors
def publish(no_push: bool) -> None:
    """Create git tags from the release manifest and push them."""
    root = Path.cwd()
    manifest = _read_manifest(root)
    if not manifest.releases:
        click.echo("No releases in manifest.")
        return

    tags: list[Tag] = []
    for r in manifest.releases:
        try:
            tags.append(create_tag(root, r.module, r.version))
            click.echo(f"  ✓ {format_tag(r.module, r.version)}")
        except ChangesetError as exc:
            # Left over from an earlier `changeset tag`
            click.echo(f"  ! {format_tag(r.module, r.version)} may already exist: {exc}")
            tags.append(
                Tag(name=format_tag(r.module, r.version), module=r.module, version=r.version)
            )

    if no_push:
        click.echo("\nTags created locally. To push: git push origin --tags")
        return

    push_tags(root, tags)
    delete_manifest(root)
    click.echo(f"\nPushed {len(tags)} tag(s); release manifest removed.")
