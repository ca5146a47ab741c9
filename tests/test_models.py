"""Tests for changeset.models."""

from __future__ import annotations

from pathlib import Path

from changeset.models import Bump, Changeset, Module, Release, compare_bumps


class TestBump:
    def test_severity_order(self) -> None:
        assert Bump.PATCH < Bump.MINOR < Bump.MAJOR
        assert Bump.MAJOR > Bump.PATCH

    def test_order_is_not_alphabetical(self) -> None:
        # "major" < "minor" as strings
        assert max(Bump.MAJOR, Bump.MINOR) is Bump.MAJOR
        assert sorted([Bump.MINOR, Bump.MAJOR, Bump.PATCH]) == [
            Bump.PATCH,
            Bump.MINOR,
            Bump.MAJOR,
        ]

    def test_compare_bumps(self) -> None:
        assert compare_bumps(Bump.PATCH, Bump.MINOR) == -1
        assert compare_bumps(Bump.MAJOR, Bump.MAJOR) == 0
        assert compare_bumps(Bump.MAJOR, Bump.MINOR) == 1

    def test_str_is_value(self) -> None:
        assert str(Bump.MINOR) == "minor"
        assert f"{Bump.PATCH}" == "patch"

    def test_from_string(self) -> None:
        assert Bump("major") is Bump.MAJOR


class TestModule:
    def test_display_name_of_root(self) -> None:
        root = Module(name="acme", short_name="", path=Path("."))
        assert root.display_name == "(root)"

    def test_display_name_of_submodule(self) -> None:
        mod = Module(name="acme-lib-a", short_name="lib-a", path=Path("lib-a"))
        assert mod.display_name == "lib-a"
        assert mod.dependencies == frozenset()


class TestChangeset:
    def test_highest_bump(self) -> None:
        cs = Changeset(modules={"lib-a": Bump.PATCH, "lib-b": Bump.MAJOR})
        assert cs.highest_bump() is Bump.MAJOR

    def test_highest_bump_of_empty_changeset_is_patch(self) -> None:
        assert Changeset(summary="Docs only").highest_bump() is Bump.PATCH

    def test_modules_validated_from_strings(self) -> None:
        cs = Changeset.model_validate({"modules": {"lib-a": "minor"}})
        assert cs.modules == {"lib-a": Bump.MINOR}


class TestRelease:
    def test_accepts_alias_and_field_name(self) -> None:
        by_alias = Release.model_validate(
            {"module": "lib-a", "version": "v1.1.0", "previousVersion": "v1.0.0", "bump": "minor"}
        )
        by_name = Release(
            module="lib-a", version="v1.1.0", previous_version="v1.0.0", bump=Bump.MINOR
        )
        assert by_alias == by_name

    def test_dump_uses_camel_case(self) -> None:
        release = Release(
            module="", version="v0.1.0", previous_version="v0.0.0", bump=Bump.MINOR
        )
        data = release.model_dump(mode="json", by_alias=True)
        assert data["previousVersion"] == "v0.0.0"
        assert data["bump"] == "minor"
        assert release.display_module == "(root)"
