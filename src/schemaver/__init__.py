"""schemaver - versioned SQL schema migrations."""

from schemaver.capability import DatabaseCapability, DbResult, SqlAlchemyCapability
from schemaver.errors import ExecutionError, SchemaError, SpecError, VersionSkewError
from schemaver.migrations import MigrationResult, MigrationStatus, migrate, migrate_engine
from schemaver.spec import SchemaSpec

__version__ = "0.1.0"

__all__ = [
    "DatabaseCapability",
    "DbResult",
    "ExecutionError",
    "MigrationResult",
    "MigrationStatus",
    "SchemaError",
    "SchemaSpec",
    "SpecError",
    "SqlAlchemyCapability",
    "VersionSkewError",
    "__version__",
    "migrate",
    "migrate_engine",
]
