"""Consistency checks for schema specs.

``validate_spec`` looks at a spec on its own. ``verify_spec`` actually runs
it: once through ``install`` and once through ``install_at_version[1]``
followed by every upgrade step, each on a fresh database, and compares the
resulting schemas. Both paths must end at the same tables and columns.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy.engine import Engine

from schemaver.database import engine_from_url, list_schema
from schemaver.logging import get_logger
from schemaver.migrations.resolver import resolve_latest_version
from schemaver.migrations.runner import MigrationResult, migrate_engine
from schemaver.spec import SchemaSpec

log = get_logger("checks")

EngineFactory = Callable[[str], Engine]


def validate_spec(spec: SchemaSpec) -> list[str]:
    """List the problems of a spec that can be found without a database.

    Returns:
        Human-readable problems; empty when the spec is consistent.
    """
    problems: list[str] = []
    latest = resolve_latest_version(spec)

    if spec.install is None and 1 not in spec.upgrade_to_version:
        problems.append("No install path: neither 'install' nor upgrade_to_version[1] is given")

    if spec.install is not None and latest > 1 and 1 not in spec.install_at_version:
        problems.append(
            "No install_at_version[1]: upgrades from version 1 can't be verified"
        )

    for version in range(2, latest + 1):
        if version not in spec.upgrade_to_version:
            problems.append(f"Missing upgrade_to_version[{version}]")

    for version in sorted(spec.upgrade_to_version):
        if version > latest:
            problems.append(
                f"upgrade_to_version[{version}] is beyond latest version {latest}"
            )

    for version in sorted(spec.install_at_version):
        if version > latest:
            problems.append(
                f"install_at_version[{version}] is beyond latest version {latest}"
            )

    return problems


@dataclass
class SpecVerification:
    """Outcome of running both bootstrap paths of a spec.

    Attributes:
        install_result: Migration of an empty database using the default path.
        install_schema: Tables and columns that path produced.
        upgrade_result: Migration via ``install_at_version[1]`` and upgrades,
            or None when the spec has no such path.
        upgrade_schema: Tables and columns the upgrade path produced.
    """

    install_result: MigrationResult
    install_schema: dict[str, list[str]]
    upgrade_result: MigrationResult | None = None
    upgrade_schema: dict[str, list[str]] = field(default_factory=dict)

    @property
    def problems(self) -> list[str]:
        problems: list[str] = []
        if not self.install_result.ok:
            problems.append(f"Install path failed: {self.install_result.message}")
        if self.upgrade_result is None:
            return problems
        if not self.upgrade_result.ok:
            problems.append(f"Upgrade path failed: {self.upgrade_result.message}")
        elif self.install_result.ok and self.install_schema != self.upgrade_schema:
            for table in sorted(set(self.install_schema) | set(self.upgrade_schema)):
                installed = self.install_schema.get(table)
                upgraded = self.upgrade_schema.get(table)
                if installed is None:
                    problems.append(f"Table '{table}' exists only after upgrading")
                elif upgraded is None:
                    problems.append(f"Table '{table}' exists only after installing")
                elif sorted(installed) != sorted(upgraded):
                    problems.append(
                        f"Table '{table}' columns differ: install={installed} upgrade={upgraded}"
                    )
        return problems

    @property
    def equivalent(self) -> bool:
        return not self.problems


def verify_spec(spec: SchemaSpec, engine_factory: EngineFactory) -> SpecVerification:
    """Run a spec's bootstrap paths on fresh databases and compare them.

    Args:
        spec: Spec to verify.
        engine_factory: Returns a new engine on an empty database for a label
            (``"install"`` or ``"upgrade"``).

    Returns:
        The verification outcome.
    """
    install_engine = engine_factory("install")
    try:
        install_result = migrate_engine(install_engine, spec)
        install_schema = list_schema(install_engine)
    finally:
        install_engine.dispose()

    verification = SpecVerification(install_result=install_result, install_schema=install_schema)

    if 1 in spec.install_at_version and spec.install is not None:
        upgrade_engine = engine_factory("upgrade")
        try:
            verification.upgrade_result = migrate_engine(upgrade_engine, spec, create_from_version=1)
            verification.upgrade_schema = list_schema(upgrade_engine)
        finally:
            upgrade_engine.dispose()

    log.info(
        "spec_verified",
        equivalent=verification.equivalent,
        problems=len(verification.problems),
    )
    return verification


def sqlite_engine_factory(directory: Path) -> EngineFactory:
    """Engine factory creating SQLite database files inside ``directory``."""

    def factory(label: str) -> Engine:
        return engine_from_url(f"sqlite:///{directory / f'{label}.db'}")

    return factory
