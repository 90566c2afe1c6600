"""Read the schema version recorded in the bookkeeping table."""

from __future__ import annotations

from typing import NamedTuple

from schemaver.capability import DatabaseCapability
from schemaver.database import META_TABLE, SCHEMA_VERSION_KEY
from schemaver.errors import ExecutionError

SELECT_VERSION_SQL = f"SELECT value FROM {META_TABLE} WHERE name='{SCHEMA_VERSION_KEY}'"


class CurrentVersion(NamedTuple):
    """Schema version of a database and whether it has a ``meta`` table."""

    version: int
    has_bookkeeping_table: bool


def read_current_version(capability: DatabaseCapability) -> CurrentVersion:
    """Get current schema version from database.

    A database without the bookkeeping table is at version 0. A bookkeeping
    table without a usable ``schema_version`` row is an inconsistency this
    module refuses to guess about.

    Raises:
        ExecutionError: If the database can't be probed or the stored value
            is missing or not an integer.
    """
    tables = capability.list_tables(META_TABLE)
    if not tables.ok:
        raise ExecutionError(f"Can't list tables: {tables.error}")

    if META_TABLE not in tables.value:
        return CurrentVersion(0, False)

    result = capability.query_scalar(SELECT_VERSION_SQL)
    if not result.ok:
        raise ExecutionError(f"Can't read schema version: {result.error}")
    if result.value is None:
        raise ExecutionError(
            f"Table '{META_TABLE}' exists but has no '{SCHEMA_VERSION_KEY}' row"
        )

    try:
        version = int(result.value)
    except (TypeError, ValueError):
        raise ExecutionError(
            f"Invalid schema version in table '{META_TABLE}': {result.value!r}"
        ) from None

    if version < 0:
        raise ExecutionError(f"Invalid schema version in table '{META_TABLE}': {version}")

    return CurrentVersion(version, True)
