"""CLI entrypoint for running schemaver as a module."""

from schemaver.cli import cli
from schemaver.logging import setup_logging

if __name__ == "__main__":
    setup_logging()
    cli()
