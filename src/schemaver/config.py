"""Configuration loading and validation for schemaver."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    """Database configuration.

    ``url`` takes precedence; otherwise a SQLite file named ``path`` inside
    the data directory is used.
    """

    path: str = "schemaver.db"
    url: str | None = None
    echo: bool = False


class Config(BaseModel):
    """Root configuration for schemaver."""

    data_dir: Path = Path("./data")
    log_level: str = "INFO"
    log_json: bool = True
    spec_path: Path | None = None

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log_level is valid."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {allowed}")
        return v_upper

    @property
    def database_path(self) -> Path:
        """Get full path to the SQLite database file."""
        return self.data_dir / self.database.path

    @property
    def database_url(self) -> str:
        """Get the SQLAlchemy URL of the target database."""
        if self.database.url:
            return self.database.url
        return f"sqlite:///{self.database_path}"

    @property
    def uses_default_sqlite(self) -> bool:
        """True when the database is the SQLite file inside ``data_dir``."""
        return not self.database.url

    @classmethod
    def load(cls, config_path: Path | str = Path("schemaver.yaml")) -> "Config":
        """Load configuration from YAML file with env var overlay.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Validated Config instance.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If config is invalid.
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}

        return cls.model_validate(apply_env_overrides(yaml_config))

    @classmethod
    def load_or_default(cls, config_path: Path | str | None = None) -> "Config":
        """Load configuration, falling back to defaults if file not found.

        Args:
            config_path: Optional path to YAML configuration file.

        Returns:
            Config instance (from file or defaults).
        """
        if config_path is None:
            # Try default locations
            for path in [Path("schemaver.yaml"), Path("schemaver.yml")]:
                if path.exists():
                    return cls.load(path)
            return cls.model_validate(apply_env_overrides({}))

        try:
            return cls.load(config_path)
        except FileNotFoundError:
            return cls.model_validate(apply_env_overrides({}))


def apply_env_overrides(raw: dict) -> dict:
    """Overlay SCHEMAVER_* environment variables onto raw config data."""
    data = dict(raw)
    if "SCHEMAVER_DATA_DIR" in os.environ:
        data["data_dir"] = os.environ["SCHEMAVER_DATA_DIR"]
    if "SCHEMAVER_LOG_LEVEL" in os.environ:
        data["log_level"] = os.environ["SCHEMAVER_LOG_LEVEL"]
    if "SCHEMAVER_LOG_JSON" in os.environ:
        data["log_json"] = os.environ["SCHEMAVER_LOG_JSON"].lower() == "true"
    if "SCHEMAVER_SPEC" in os.environ:
        data["spec_path"] = os.environ["SCHEMAVER_SPEC"]
    if "SCHEMAVER_DATABASE_URL" in os.environ:
        database = dict(data.get("database") or {})
        database["url"] = os.environ["SCHEMAVER_DATABASE_URL"]
        data["database"] = database
    return data
