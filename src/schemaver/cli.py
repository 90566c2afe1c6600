"""Command-line interface for schemaver."""

import tempfile
from pathlib import Path

import click
import yaml

from schemaver import __version__
from schemaver.config import Config
from schemaver.logging import setup_logging
from schemaver.spec import SchemaSpec


@click.group()
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to configuration file.",
)
@click.option(
    "--spec",
    "spec_file",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to the schema spec YAML file (overrides config).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Set logging level (overrides config).",
)
@click.option(
    "--log-json/--no-log-json",
    default=None,
    help="Output logs as JSON or human-readable format (overrides config).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    spec_file: Path | None,
    log_level: str | None,
    log_json: bool | None,
) -> None:
    """schemaver - versioned SQL schema migrations.

    Creates or upgrades a database schema from a declarative spec of plain
    SQL statements, one transaction per version.
    """
    ctx.ensure_object(dict)

    config = Config.load_or_default(config_file)
    ctx.obj["config"] = config
    ctx.obj["config_file"] = config_file
    ctx.obj["spec_file"] = spec_file or config.spec_path

    # CLI overrides config
    effective_log_level = log_level or config.log_level
    effective_log_json = log_json if log_json is not None else config.log_json

    setup_logging(json_output=effective_log_json, level=effective_log_level)


def _load_spec(ctx: click.Context) -> SchemaSpec:
    """Load the spec given by --spec or the config, exiting on failure."""
    spec_file = ctx.obj["spec_file"]
    if spec_file is None:
        click.echo("Error: no schema spec given (use --spec or spec_path in config)", err=True)
        raise SystemExit(1)

    try:
        return SchemaSpec.load(spec_file)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


@cli.command()
def version() -> None:
    """Print version information."""
    click.echo(f"schemaver {__version__}")


@cli.group()
def db() -> None:
    """Database management commands."""
    pass


@db.command(name="status")
@click.pass_context
def db_status(ctx: click.Context) -> None:
    """Show database schema version and pending steps."""
    from schemaver.capability import SqlAlchemyCapability
    from schemaver.database import get_engine
    from schemaver.errors import ExecutionError
    from schemaver.migrations import get_pending_steps, read_current_version, resolve_latest_version

    config = ctx.obj["config"]
    spec = _load_spec(ctx)
    engine = get_engine(config)

    try:
        with engine.connect() as conn:
            capability = SqlAlchemyCapability(conn)
            current = read_current_version(capability)
            latest = resolve_latest_version(spec)

            click.echo(f"Database: {engine.url.render_as_string(hide_password=True)}")
            click.echo(f"Current version: {current.version}")
            click.echo(f"Latest version: {latest}")

            if current.version > latest:
                click.echo("Database is newer than the spec")
                raise SystemExit(1)

            pending = get_pending_steps(capability, spec)
    except ExecutionError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        engine.dispose()

    if pending:
        click.echo(f"Pending steps: {len(pending)}")
        for step in pending:
            click.echo(f"  {step.version}: {step.describe()}")
        if pending[-1].version < latest:
            click.echo(f"Spec can't reach version {latest} from version {pending[-1].version}")
    elif current.version < latest:
        click.echo(f"Spec can't reach version {latest} from version {current.version}")
    else:
        click.echo("No pending steps")


@db.command(name="migrate")
@click.option(
    "--create-from-version",
    type=int,
    default=None,
    help="On an empty database, install this version and upgrade from there.",
)
@click.pass_context
def db_migrate(ctx: click.Context, create_from_version: int | None) -> None:
    """Create or upgrade the database schema to the latest version."""
    from schemaver.database import get_engine
    from schemaver.migrations import migrate_engine

    config = ctx.obj["config"]
    spec = _load_spec(ctx)
    engine = get_engine(config)

    try:
        result = migrate_engine(engine, spec, create_from_version=create_from_version)
    finally:
        engine.dispose()

    if not result.ok:
        click.echo(f"Error [{result.status_code}]: {result.message}", err=True)
        click.echo(f"Database left at version {result.version}", err=True)
        raise SystemExit(1)

    if result.steps_applied == 0:
        click.echo(f"Database already at version {result.version}")
    else:
        click.echo(f"Migrated from version {result.from_version} to {result.version}")


@cli.group()
def spec() -> None:
    """Schema spec commands."""
    pass


@spec.command(name="check")
@click.argument("spec_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--verify/--no-verify",
    default=False,
    help="Also run both install paths on throwaway SQLite databases.",
)
def spec_check(spec_file: Path, verify: bool) -> None:
    """Validate a schema spec file."""
    from schemaver.checks import sqlite_engine_factory, validate_spec, verify_spec
    from schemaver.migrations import resolve_latest_version

    try:
        schema_spec = SchemaSpec.load(spec_file)
    except (ValueError, yaml.YAMLError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"Spec: {spec_file}")
    click.echo(f"  Latest version: {resolve_latest_version(schema_spec)}")
    click.echo(f"  Upgrade steps: {len(schema_spec.upgrade_to_version)}")

    problems = validate_spec(schema_spec)

    if verify:
        with tempfile.TemporaryDirectory(prefix="schemaver-") as tmp:
            verification = verify_spec(schema_spec, sqlite_engine_factory(Path(tmp)))
        problems += verification.problems

    if problems:
        click.echo(f"Problems: {len(problems)}")
        for problem in problems:
            click.echo(f"  - {problem}")
        raise SystemExit(1)

    click.echo("Spec valid")


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command(name="check")
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=True, path_type=Path),
    default="schemaver.yaml",
    help="Path to configuration file.",
)
def config_check(config_file: Path) -> None:
    """Validate configuration file."""
    try:
        cfg = Config.load(config_file)
        click.echo(f"Configuration valid: {config_file}")
        click.echo(f"  Data directory: {cfg.data_dir}")
        click.echo(f"  Database URL: {cfg.database_url}")
        click.echo(f"  Log level: {cfg.log_level}")
        if cfg.spec_path:
            click.echo(f"  Spec: {cfg.spec_path}")
        else:
            click.echo("  Spec: not configured")

    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    except Exception as e:
        click.echo(f"Configuration error: {e}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
