"""Versioned schema migrations.

A migration run is a loop over steps:

    read current version -> resolve next step -> apply it in one transaction

until the database records the spec's latest version. Steps come from a
``SchemaSpec``:

    install                 build the latest version on an empty database
    install_at_version[K]   build version K on an empty database
    upgrade_to_version[K]   turn version K-1 into version K

Migrations are forward-only.
"""

from schemaver.migrations.resolver import (
    MigrationStep,
    StepKind,
    resolve_latest_version,
    resolve_step,
)
from schemaver.migrations.runner import (
    MigrationResult,
    MigrationStatus,
    get_pending_steps,
    migrate,
    migrate_engine,
)
from schemaver.migrations.versions import CurrentVersion, read_current_version

__all__ = [
    "CurrentVersion",
    "MigrationResult",
    "MigrationStatus",
    "MigrationStep",
    "StepKind",
    "get_pending_steps",
    "migrate",
    "migrate_engine",
    "read_current_version",
    "resolve_latest_version",
    "resolve_step",
]
