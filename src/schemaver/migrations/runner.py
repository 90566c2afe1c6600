"""Migration runner for schemaver.

This module drives a database from whatever version it records to the
latest version of a schema spec:
- Reading the current version
- Resolving and applying one step at a time, each in its own transaction
- Reporting the outcome as a ``MigrationResult`` instead of raising

A failed step leaves the database at the last committed version, so running
the migration again resumes from there.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from sqlalchemy.engine import Engine

from schemaver.capability import DatabaseCapability, SqlAlchemyCapability
from schemaver.errors import ExecutionError, SchemaError, SpecError, VersionSkewError
from schemaver.logging import get_logger
from schemaver.migrations.executor import apply_step
from schemaver.migrations.resolver import MigrationStep, resolve_latest_version, resolve_step
from schemaver.migrations.versions import read_current_version
from schemaver.spec import SchemaSpec


class MigrationStatus(IntEnum):
    """Outcome class of a migration run, valued as its status code."""

    SUCCESS = 200
    SPEC_ERROR = 400
    EXECUTION_ERROR = 500


@dataclass(frozen=True)
class MigrationResult:
    """Result of a migration run.

    Attributes:
        status: Outcome class.
        message: Human-readable summary, including the database's error text
            on failure.
        version: Version the database is at after the run. On failure this is
            the last committed version, not the one that failed.
        from_version: Version the database was at before the run.
        steps_applied: Number of steps committed by this run.
    """

    status: MigrationStatus
    message: str
    version: int
    from_version: int
    steps_applied: int = 0

    @property
    def ok(self) -> bool:
        return self.status == MigrationStatus.SUCCESS

    @property
    def status_code(self) -> int:
        return int(self.status)


def migrate(
    capability: DatabaseCapability,
    spec: SchemaSpec,
    *,
    create_from_version: int | None = None,
    log: Any = None,
) -> MigrationResult:
    """Bring the database schema to the spec's latest version.

    Args:
        capability: Database to migrate, exclusively owned for the call.
        spec: Schema spec describing every buildable version.
        create_from_version: On an empty database, install this version from
            ``spec.install_at_version`` and upgrade from there instead of
            using ``spec.install``.
        log: Diagnostic sink (a structlog-style bound logger). Defaults to
            the runner's logger.

    Returns:
        The result of the run. Errors are reported here, never raised.
    """
    log = log if log is not None else get_logger("migrations")

    try:
        current = read_current_version(capability)
    except ExecutionError as e:
        return _failed(MigrationStatus.EXECUTION_ERROR, e, 0, 0, 0, log)

    original = current.version
    latest = resolve_latest_version(spec)

    if original > latest:
        error = VersionSkewError(original, latest)
        return _failed(MigrationStatus.EXECUTION_ERROR, error, original, original, 0, log)

    version = original
    has_table = current.has_bookkeeping_table
    applied = 0

    try:
        while True:
            step = resolve_step(
                spec,
                version,
                has_bookkeeping_table=has_table,
                create_from_version=create_from_version,
            )
            if step is None:
                break

            log.info(
                "migration_step_applying",
                from_version=version,
                version=step.version,
                kind=step.kind.value,
                statements=len(step.statements),
            )
            apply_step(capability, step, log=log)
            log.info("migration_step_applied", version=step.version)

            version = step.version
            has_table = True
            applied += 1
    except SpecError as e:
        return _failed(MigrationStatus.SPEC_ERROR, e, version, original, applied, log)
    except ExecutionError as e:
        return _failed(MigrationStatus.EXECUTION_ERROR, e, version, original, applied, log)

    if applied == 0:
        log.info("schema_already_current", version=version)
        message = f"OK (already at version {version})"
    else:
        log.info("migration_complete", from_version=original, version=version, steps=applied)
        message = f"OK (upgraded from version {original} to {version})"

    return MigrationResult(
        status=MigrationStatus.SUCCESS,
        message=message,
        version=version,
        from_version=original,
        steps_applied=applied,
    )


def _failed(
    status: MigrationStatus,
    error: SchemaError,
    version: int,
    original: int,
    applied: int,
    log: Any,
) -> MigrationResult:
    message = f"Can't upgrade schema (from version {original}): {error.message}"
    log.error(
        "migration_failed",
        status=int(status),
        from_version=original,
        version=version,
        failed_version=error.version,
        error=error.message,
    )
    return MigrationResult(
        status=status,
        message=message,
        version=version,
        from_version=original,
        steps_applied=applied,
    )


def migrate_engine(
    engine: Engine,
    spec: SchemaSpec,
    *,
    create_from_version: int | None = None,
    log: Any = None,
) -> MigrationResult:
    """Run ``migrate`` over a fresh connection from ``engine``."""
    with engine.connect() as conn:
        return migrate(
            SqlAlchemyCapability(conn),
            spec,
            create_from_version=create_from_version,
            log=log,
        )


def get_pending_steps(
    capability: DatabaseCapability,
    spec: SchemaSpec,
    *,
    create_from_version: int | None = None,
) -> list[MigrationStep]:
    """Get the steps a migration would apply, without applying any.

    Stops at the first step the spec can't produce.

    Raises:
        ExecutionError: If the version can't be read, or the database is
            newer than the spec.
    """
    current = read_current_version(capability)
    version = current.version
    has_table = current.has_bookkeeping_table
    pending: list[MigrationStep] = []

    while True:
        try:
            step = resolve_step(
                spec,
                version,
                has_bookkeeping_table=has_table,
                create_from_version=create_from_version,
            )
        except SpecError:
            break
        if step is None:
            break
        pending.append(step)
        version = step.version
        has_table = True

    return pending
