"""Tests for step resolution."""

import pytest

from schemaver.errors import ExecutionError, SpecError, VersionSkewError
from schemaver.migrations.resolver import (
    MigrationStep,
    StepKind,
    resolve_latest_version,
    resolve_step,
)
from schemaver.spec import SchemaSpec


class TestLatestVersion:
    """Tests for resolve_latest_version."""

    def test_explicit_latest_version(self) -> None:
        spec = SchemaSpec(latest_version=5, upgrade_to_version={2: ["SELECT 1"]})
        assert resolve_latest_version(spec) == 5

    def test_derived_from_upgrade_steps(self) -> None:
        spec = SchemaSpec(upgrade_to_version={2: ["SELECT 1"], 4: ["SELECT 1"], 3: ["SELECT 1"]})
        assert resolve_latest_version(spec) == 4

    def test_defaults_to_one(self) -> None:
        spec = SchemaSpec(install=["CREATE TABLE a (id INTEGER)"])
        assert resolve_latest_version(spec) == 1


class TestResolveOnEmptyDatabase:
    """Tests for resolution at version 0."""

    def test_install_goes_straight_to_latest(self, scenario_spec) -> None:
        step = resolve_step(scenario_spec, 0)

        assert step == MigrationStep(
            version=3,
            statements=tuple(scenario_spec.install),
            kind=StepKind.INSTALL,
            create_bookkeeping_table=True,
        )

    def test_install_at_version(self, scenario_spec) -> None:
        step = resolve_step(scenario_spec, 0, create_from_version=1)

        assert step.version == 1
        assert step.kind == StepKind.INSTALL_AT_VERSION
        assert step.statements == tuple(scenario_spec.install_at_version[1])
        assert step.create_bookkeeping_table is True

    def test_install_at_version_missing(self, scenario_spec) -> None:
        with pytest.raises(SpecError, match="install script for version 2") as exc_info:
            resolve_step(scenario_spec, 0, create_from_version=2)
        assert exc_info.value.version == 2

    def test_install_at_version_beyond_latest(self) -> None:
        spec = SchemaSpec(
            latest_version=2,
            install_at_version={3: ["SELECT 1"]},
            upgrade_to_version={2: ["SELECT 1"]},
        )
        with pytest.raises(SpecError, match="latest version is 2"):
            resolve_step(spec, 0, create_from_version=3)

    def test_upgrade_to_v1_without_install(self) -> None:
        spec = SchemaSpec.from_sequence([["CREATE TABLE a (id INTEGER)"], ["DROP TABLE a"]])

        step = resolve_step(spec, 0)

        assert step.version == 1
        assert step.kind == StepKind.UPGRADE
        assert step.create_bookkeeping_table is True

    def test_no_install_path(self) -> None:
        spec = SchemaSpec(latest_version=2, upgrade_to_version={2: ["SELECT 1"]})
        with pytest.raises(SpecError, match="install"):
            resolve_step(spec, 0)

    def test_existing_meta_table_not_recreated(self, scenario_spec) -> None:
        step = resolve_step(scenario_spec, 0, has_bookkeeping_table=True)
        assert step.create_bookkeeping_table is False

    def test_create_from_version_takes_precedence_over_install(self, scenario_spec) -> None:
        step = resolve_step(scenario_spec, 0, create_from_version=1)
        assert step.kind == StepKind.INSTALL_AT_VERSION


class TestResolveUpgrade:
    """Tests for resolution on a database with a version."""

    def test_next_version(self, scenario_spec) -> None:
        step = resolve_step(scenario_spec, 1, has_bookkeeping_table=True)

        assert step.version == 2
        assert step.kind == StepKind.UPGRADE
        assert step.statements == tuple(scenario_spec.upgrade_to_version[2])
        assert step.create_bookkeeping_table is False

    def test_create_from_version_ignored_after_install(self, scenario_spec) -> None:
        step = resolve_step(scenario_spec, 2, has_bookkeeping_table=True, create_from_version=1)
        assert step.version == 3
        assert step.kind == StepKind.UPGRADE

    def test_missing_upgrade_step(self) -> None:
        spec = SchemaSpec(latest_version=3, install=["SELECT 1"], upgrade_to_version={3: ["SELECT 1"]})
        with pytest.raises(SpecError, match="Upgrade to version 2 not specified"):
            resolve_step(spec, 1, has_bookkeeping_table=True)

    def test_already_latest(self, scenario_spec) -> None:
        assert resolve_step(scenario_spec, 3, has_bookkeeping_table=True) is None

    def test_database_newer_than_spec(self, scenario_spec) -> None:
        with pytest.raises(VersionSkewError) as exc_info:
            resolve_step(scenario_spec, 5, has_bookkeeping_table=True)

        assert isinstance(exc_info.value, ExecutionError)
        assert exc_info.value.current_version == 5
        assert exc_info.value.latest_version == 3


class TestStepDescription:
    @pytest.mark.parametrize(
        "kind,expected",
        [
            (StepKind.INSTALL, "install version 4"),
            (StepKind.INSTALL_AT_VERSION, "install version 4 (intermediate)"),
            (StepKind.UPGRADE, "upgrade to version 4"),
        ],
    )
    def test_describe(self, kind: StepKind, expected: str) -> None:
        step = MigrationStep(version=4, statements=(), kind=kind)
        assert step.describe() == expected
