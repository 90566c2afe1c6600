"""Apply one migration step inside one transaction."""

from __future__ import annotations

from typing import Any

from schemaver.capability import DatabaseCapability
from schemaver.database import META_TABLE, SCHEMA_VERSION_KEY
from schemaver.errors import ExecutionError
from schemaver.logging import get_logger
from schemaver.migrations.resolver import MigrationStep

CREATE_META_SQL = (
    f"CREATE TABLE {META_TABLE} "
    "(name VARCHAR(64) NOT NULL PRIMARY KEY, value VARCHAR(255))"
)
INSERT_VERSION_SQL = (
    f"INSERT INTO {META_TABLE} (name, value) VALUES ('{SCHEMA_VERSION_KEY}', '0')"
)


def update_version_sql(version: int) -> str:
    return f"UPDATE {META_TABLE} SET value='{int(version)}' WHERE name='{SCHEMA_VERSION_KEY}'"


def apply_step(capability: DatabaseCapability, step: MigrationStep, log: Any = None) -> None:
    """Run a step's statements and record its version, atomically.

    The bookkeeping table is created first when the step asks for it. The
    first statement the database rejects stops the step; the transaction is
    then rolled back and nothing of the step stays visible (on databases
    with transactional DDL).

    Args:
        capability: Database to migrate.
        step: The step to apply.
        log: Diagnostic sink. Defaults to the executor's logger.

    Raises:
        ExecutionError: Tagged with ``step.version``, embedding the
            database's own error text.
    """
    log = log if log is not None else get_logger("executor")

    began = capability.begin_transaction()
    if not began.ok:
        raise ExecutionError(
            f"Can't begin transaction for version {step.version}: {began.error}",
            version=step.version,
        )

    statements: list[str] = []
    if step.create_bookkeeping_table:
        statements += [CREATE_META_SQL, INSERT_VERSION_SQL]
    statements += step.statements
    statements.append(update_version_sql(step.version))

    for sql in statements:
        log.debug("executing_statement", version=step.version, sql=sql)
        result = capability.execute(sql)
        if not result.ok:
            _abort(capability, step, f"{result.error} (statement: {sql})", log)

    committed = capability.commit()
    if not committed.ok:
        _abort(capability, step, f"commit failed: {committed.error}", log)


def _abort(capability: DatabaseCapability, step: MigrationStep, error: str, log: Any) -> None:
    message = f"Can't {step.describe()}: {error}"
    rolled_back = capability.rollback()
    if not rolled_back.ok:
        log.error("rollback_failed", version=step.version, error=rolled_back.error)
        message += f" (rollback failed: {rolled_back.error})"
    raise ExecutionError(message, version=step.version)
