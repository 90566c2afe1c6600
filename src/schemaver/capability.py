"""Narrow database interface the migration engine depends on.

The engine never talks to a driver directly. It calls a ``DatabaseCapability``
whose every operation returns a ``DbResult``: success with a value, or failure
carrying the driver's own error text. Nothing is signalled through a mutable
error flag and nothing is raised across this boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol

from sqlalchemy import inspect
from sqlalchemy.engine import Connection, RootTransaction
from sqlalchemy.exc import SQLAlchemyError


@dataclass(frozen=True)
class DbResult:
    """Outcome of one capability operation."""

    ok: bool
    value: Any = None
    error: str | None = None

    @classmethod
    def success(cls, value: Any = None) -> "DbResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "DbResult":
        return cls(ok=False, error=error)


class DatabaseCapability(Protocol):
    """Operations the engine needs from a database connection."""

    def list_tables(self, name: str) -> DbResult:
        """Return the set of table names equal to ``name`` (empty set if none)."""
        ...

    def query_scalar(self, sql: str) -> DbResult:
        """Return the first column of the first row, or None when there is no row."""
        ...

    def execute(self, sql: str) -> DbResult:
        """Execute one opaque SQL statement."""
        ...

    def begin_transaction(self) -> DbResult: ...

    def commit(self) -> DbResult: ...

    def rollback(self) -> DbResult: ...


def driver_error_text(error: SQLAlchemyError) -> str:
    """Extract the driver's message from a wrapped SQLAlchemy error."""
    orig = getattr(error, "orig", None)
    if orig is not None:
        return str(orig)
    return str(error)


class SqlAlchemyCapability:
    """``DatabaseCapability`` backed by a SQLAlchemy ``Connection``.

    Statements go through ``exec_driver_sql`` so they reach the driver
    untouched (no bind parameter parsing). Calls made outside an explicit
    transaction run in a short transaction of their own.

    Attributes:
        connection: The connection owned by this migration run.
    """

    def __init__(self, connection: Connection) -> None:
        self.connection = connection
        self._transaction: RootTransaction | None = None

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    def list_tables(self, name: str) -> DbResult:
        return self._run(
            lambda: {t for t in inspect(self.connection).get_table_names() if t == name}
        )

    def query_scalar(self, sql: str) -> DbResult:
        return self._run(lambda: self.connection.exec_driver_sql(sql).scalar())

    def execute(self, sql: str) -> DbResult:
        def run() -> None:
            self.connection.exec_driver_sql(sql)

        return self._run(run)

    def begin_transaction(self) -> DbResult:
        if self._transaction is not None:
            return DbResult.failure("A transaction is already in progress")
        try:
            self._transaction = self.connection.begin()
        except SQLAlchemyError as e:
            return DbResult.failure(driver_error_text(e))
        return DbResult.success()

    def commit(self) -> DbResult:
        if self._transaction is None:
            return DbResult.failure("No transaction in progress")
        try:
            self._transaction.commit()
        except SQLAlchemyError as e:
            # Left open so the caller can still roll back
            return DbResult.failure(driver_error_text(e))
        self._transaction = None
        return DbResult.success()

    def rollback(self) -> DbResult:
        if self._transaction is None:
            return DbResult.failure("No transaction in progress")
        transaction, self._transaction = self._transaction, None
        try:
            transaction.rollback()
        except SQLAlchemyError as e:
            return DbResult.failure(driver_error_text(e))
        return DbResult.success()

    def _run(self, operation: Callable[[], Any]) -> DbResult:
        try:
            if self._transaction is not None:
                return DbResult.success(operation())
            with self.connection.begin():
                return DbResult.success(operation())
        except SQLAlchemyError as e:
            return DbResult.failure(driver_error_text(e))
