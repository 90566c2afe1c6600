"""Database connection management and schema inspection for schemaver.

Uses SQLAlchemy Core (not ORM). The only table schemaver owns is ``meta``,
the single-row bookkeeping table holding the schema version.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Column, MetaData, String, Table, create_engine, event, inspect
from sqlalchemy.engine import Engine

from schemaver.config import Config

metadata = MetaData()

# Reserved bookkeeping table
META_TABLE = "meta"
SCHEMA_VERSION_KEY = "schema_version"

meta = Table(
    META_TABLE,
    metadata,
    Column("name", String(64), primary_key=True),
    Column("value", String(255), nullable=True),
)


def enable_sqlite_transactional_ddl(engine: Engine) -> None:
    """Make pysqlite run DDL inside real transactions.

    The sqlite3 module only opens transactions implicitly before DML, so a
    failing ``CREATE TABLE`` batch could not be rolled back. Turning off its
    transaction handling and emitting BEGIN ourselves fixes that.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def engine_from_url(url: str, echo: bool = False) -> Engine:
    """Create a SQLAlchemy engine for a database URL.

    Args:
        url: SQLAlchemy database URL.
        echo: Log every SQL statement through SQLAlchemy's logger.

    Returns:
        SQLAlchemy Engine instance.
    """
    engine = create_engine(url, echo=echo)
    if engine.dialect.name == "sqlite":
        enable_sqlite_transactional_ddl(engine)
    return engine


def get_engine(config: Config) -> Engine:
    """Create SQLAlchemy engine from config.

    Args:
        config: Application configuration.

    Returns:
        SQLAlchemy Engine instance.
    """
    if config.uses_default_sqlite:
        # Ensure data directory exists
        config.database_path.parent.mkdir(parents=True, exist_ok=True)

    return engine_from_url(
        config.database_url,
        echo=config.database.echo or config.log_level == "DEBUG",
    )


def list_schema(engine: Engine, include_meta: bool = False) -> dict[str, list[str]]:
    """Describe the tables of a database as table name -> column names.

    Args:
        engine: SQLAlchemy Engine instance.
        include_meta: Whether to include the bookkeeping table.

    Returns:
        Mapping of table name to its column names in declaration order.
    """
    inspector = inspect(engine)
    schema: dict[str, list[str]] = {}
    for table_name in sorted(inspector.get_table_names()):
        if table_name == META_TABLE and not include_meta:
            continue
        schema[table_name] = [col["name"] for col in inspector.get_columns(table_name)]
    return schema
