"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from schemaver.capability import SqlAlchemyCapability
from schemaver.database import engine_from_url
from schemaver.spec import SchemaSpec


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo logging configuration done by CLI invocations."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_data_dir(tmp_path):
    """Provide a temporary data directory for tests."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def engine(tmp_path: Path):
    """Create an engine on an empty SQLite database file."""
    engine = engine_from_url(f"sqlite:///{tmp_path / 'test.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def connection(engine):
    """Open a connection for the duration of a test."""
    with engine.connect() as conn:
        yield conn


@pytest.fixture
def capability(connection) -> SqlAlchemyCapability:
    """Capability over the test connection."""
    return SqlAlchemyCapability(connection)


@pytest.fixture
def scenario_spec() -> SchemaSpec:
    """Three-version spec whose install and upgrade paths end identically."""
    return SchemaSpec(
        latest_version=3,
        install=[
            "CREATE TABLE t1 (id INTEGER PRIMARY KEY, name TEXT)",
            "CREATE TABLE t4 (id INTEGER PRIMARY KEY, t1_id INTEGER)",
        ],
        install_at_version={
            1: [
                "CREATE TABLE t1 (id INTEGER PRIMARY KEY, name TEXT)",
                "CREATE TABLE t2 (id INTEGER PRIMARY KEY)",
                "CREATE TABLE t3 (id INTEGER PRIMARY KEY)",
            ],
        },
        upgrade_to_version={
            1: [
                "CREATE TABLE t1 (id INTEGER PRIMARY KEY, name TEXT)",
                "CREATE TABLE t2 (id INTEGER PRIMARY KEY)",
                "CREATE TABLE t3 (id INTEGER PRIMARY KEY)",
            ],
            2: [
                "CREATE TABLE t4 (id INTEGER PRIMARY KEY, t1_id INTEGER)",
                "DROP TABLE t3",
            ],
            3: ["DROP TABLE t2"],
        },
    )


@pytest.fixture
def spec_yaml(tmp_path: Path) -> Path:
    """Write a small valid spec file."""
    path = tmp_path / "spec.yaml"
    path.write_text(
        """\
latest_version: 2
install:
  - CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT)
install_at_version:
  1:
    - CREATE TABLE users (id INTEGER PRIMARY KEY)
upgrade_to_version:
  2:
    - ALTER TABLE users ADD COLUMN email TEXT
"""
    )
    return path
