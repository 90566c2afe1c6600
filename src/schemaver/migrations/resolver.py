"""Decide which step brings a database one step closer to the latest version."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from schemaver.errors import SpecError, VersionSkewError
from schemaver.spec import SchemaSpec


class StepKind(str, Enum):
    """Where the statements of a step come from."""

    INSTALL = "install"
    INSTALL_AT_VERSION = "install_at_version"
    UPGRADE = "upgrade"


@dataclass(frozen=True)
class MigrationStep:
    """One atomic unit of migration work.

    Attributes:
        version: Version recorded once the step commits.
        statements: SQL statements, run in order.
        kind: Which part of the spec the statements come from.
        create_bookkeeping_table: Create the ``meta`` table inside this step.
    """

    version: int
    statements: tuple[str, ...]
    kind: StepKind
    create_bookkeeping_table: bool = False

    def describe(self) -> str:
        if self.kind == StepKind.INSTALL:
            return f"install version {self.version}"
        if self.kind == StepKind.INSTALL_AT_VERSION:
            return f"install version {self.version} (intermediate)"
        return f"upgrade to version {self.version}"


def resolve_latest_version(spec: SchemaSpec) -> int:
    """Get the version a fully migrated database ends up at.

    Uses ``spec.latest_version`` when given, else the highest upgrade step,
    else 1.
    """
    if spec.latest_version is not None:
        return spec.latest_version
    return max(spec.upgrade_to_version, default=1)


def resolve_step(
    spec: SchemaSpec,
    current_version: int,
    *,
    has_bookkeeping_table: bool = False,
    create_from_version: int | None = None,
) -> MigrationStep | None:
    """Resolve the next step for a database at ``current_version``.

    Args:
        spec: The schema spec.
        current_version: Version recorded in the database (0 for a virgin one).
        has_bookkeeping_table: Whether the ``meta`` table already exists.
        create_from_version: On an empty database, install this intermediate
            version instead of the latest one.

    Returns:
        The step to apply, or None when the database is already at the
        latest version.

    Raises:
        SpecError: If the spec has no way to produce the needed step.
        VersionSkewError: If the database is newer than the spec.
    """
    latest = resolve_latest_version(spec)

    if current_version > latest:
        raise VersionSkewError(current_version, latest)
    if current_version == latest:
        return None

    create_table = current_version == 0 and not has_bookkeeping_table

    if current_version == 0:
        if create_from_version is not None:
            statements = spec.install_at_version.get(create_from_version)
            if statements is None:
                raise SpecError(
                    f"Error in spec: Can't find install script for version {create_from_version}",
                    version=create_from_version,
                )
            if not 1 <= create_from_version <= latest:
                raise SpecError(
                    f"Error in spec: Can't install version {create_from_version}, "
                    f"latest version is {latest}",
                    version=create_from_version,
                )
            return MigrationStep(
                version=create_from_version,
                statements=tuple(statements),
                kind=StepKind.INSTALL_AT_VERSION,
                create_bookkeeping_table=create_table,
            )

        if spec.install is not None:
            return MigrationStep(
                version=latest,
                statements=tuple(spec.install),
                kind=StepKind.INSTALL,
                create_bookkeeping_table=create_table,
            )

        if 1 not in spec.upgrade_to_version:
            raise SpecError("Error in spec: Can't find an install script", version=1)

    next_version = current_version + 1
    statements = spec.upgrade_to_version.get(next_version)
    if statements is None:
        raise SpecError(
            f"Error in spec: Upgrade to version {next_version} not specified",
            version=next_version,
        )
    return MigrationStep(
        version=next_version,
        statements=tuple(statements),
        kind=StepKind.UPGRADE,
        create_bookkeeping_table=create_table,
    )
