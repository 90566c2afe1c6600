"""Exception types raised while resolving and applying schema migrations."""

from __future__ import annotations


class SchemaError(Exception):
    """Base class for migration failures.

    Attributes:
        version: Schema version the failure relates to, if known.
    """

    def __init__(self, message: str, version: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.version = version


class SpecError(SchemaError):
    """The schema spec cannot produce the step the database needs.

    Raised for a missing install path, a missing upgrade step, or a missing
    or out-of-range ``install_at_version`` script. Nothing is rolled back
    because of it; previously committed versions stay in place.
    """


class ExecutionError(SchemaError):
    """The database rejected a statement, the bookkeeping write or a commit.

    Also raised when the bookkeeping table is present but unreadable.
    """


class VersionSkewError(ExecutionError):
    """The database schema is newer than the latest version the spec knows."""

    def __init__(self, current_version: int, latest_version: int) -> None:
        super().__init__(
            f"Database schema version ({current_version}) is newer than the spec's "
            f"latest version ({latest_version}), you probably need to upgrade "
            "the application first",
            version=current_version,
        )
        self.current_version = current_version
        self.latest_version = latest_version
