"""Schema spec model and YAML loading.

A schema spec declares every buildable version of a database schema as plain
SQL. A YAML spec looks like::

    latest_version: 3
    install:
      - CREATE TABLE t1 (id INTEGER)
      - CREATE TABLE t4 (id INTEGER)
    install_at_version:
      1:
        - CREATE TABLE t1 (id INTEGER)
        - CREATE TABLE t2 (id INTEGER)
        - CREATE TABLE t3 (id INTEGER)
    upgrade_to_version:
      2:
        - CREATE TABLE t4 (id INTEGER)
        - DROP TABLE t3
      3:
        - DROP TABLE t2
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from schemaver.logging import get_logger

log = get_logger("spec")


class SchemaSpec(BaseModel):
    """Immutable description of all buildable schema versions.

    Attributes:
        latest_version: Target version. Derived from the upgrade steps when omitted.
        install: Statements building the schema directly at the latest version.
        install_at_version: Statements building the schema at an earlier version.
        upgrade_to_version: Statements transforming version K-1 into version K.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    latest_version: int | None = Field(default=None, ge=1)
    install: list[str] | None = None
    install_at_version: dict[int, list[str]] = Field(default_factory=dict)
    upgrade_to_version: dict[int, list[str]] = Field(default_factory=dict)

    @field_validator("install_at_version", "upgrade_to_version")
    @classmethod
    def validate_steps(cls, v: dict[int, list[str]]) -> dict[int, list[str]]:
        """Versions start at 1 and every statement has content."""
        bad = sorted(k for k in v if k < 1)
        if bad:
            raise ValueError(f"versions must be >= 1, got: {bad}")
        for statements in v.values():
            _check_statements(statements)
        return v

    @field_validator("install")
    @classmethod
    def validate_install(cls, v: list[str] | None) -> list[str] | None:
        if v is not None:
            _check_statements(v)
        return v

    @classmethod
    def from_sequence(cls, steps: Sequence[Sequence[str]]) -> "SchemaSpec":
        """Build a spec from a list of statement lists.

        Element ``i`` upgrades the schema to version ``i + 1``; the first
        element therefore creates version 1 from an empty database.
        """
        return cls(upgrade_to_version={i + 1: list(step) for i, step in enumerate(steps)})

    @classmethod
    def load(cls, path: Path | str) -> "SchemaSpec":
        """Load a spec from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the file is empty or fails validation.
            yaml.YAMLError: If the file contains invalid YAML.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Spec file not found: {path}")

        data = yaml.safe_load(path.read_text())
        if data is None:
            raise ValueError(f"Empty spec file: {path}")

        try:
            spec = cls.model_validate(data)
        except ValidationError as e:
            error_msg = format_validation_error(e, path)
            log.error("spec_validation_failed", path=str(path), error=error_msg)
            raise ValueError(error_msg) from e

        log.debug("spec_loaded", path=str(path), latest_version=spec.latest_version)
        return spec


def _check_statements(statements: list[str]) -> None:
    for sql in statements:
        if not sql.strip():
            raise ValueError("SQL statements must not be empty")


def format_validation_error(error: ValidationError, path: Path) -> str:
    """Format Pydantic validation error for user display.

    Args:
        error: The Pydantic ValidationError to format.
        path: Path to the file that failed validation.

    Returns:
        Human-readable error message with location details.
    """
    lines = [f"Invalid schema spec in {path}:"]
    for err in error.errors():
        loc = " -> ".join(str(loc_part) for loc_part in err["loc"])
        lines.append(f"  {loc}: {err['msg']}")
    return "\n".join(lines)
