"""
Configuration management for pg-fixtures.

Loads and validates configuration from pg-fixtures.toml files using Pydantic.
Every table operation receives a Config explicitly; nothing reads paths from
global state.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILENAME = "pg-fixtures.toml"


class DatabaseConfig(BaseSettings):
    """Database connection configuration."""

    model_config = SettingsConfigDict(env_prefix="PG_FIXTURES_DATABASE_")

    url: str = Field(
        default="postgresql://localhost/myproject_development",
        description="PostgreSQL connection URL",
    )
    schema_name: str = Field(default="public", description="Schema holding the tables")


class PathsConfig(BaseSettings):
    """Where fixture and dump files live."""

    model_config = SettingsConfigDict(env_prefix="PG_FIXTURES_PATHS_")

    project_root: str = Field(
        default=".", description="Base directory for relative paths"
    )
    fixtures_dir: str = Field(
        default="test/fixtures", description="Directory for test fixture files"
    )
    data_dir: str = Field(default="db", description="Directory for full table dumps")


class TablesConfig(BaseSettings):
    """Conventions of the mapped tables."""

    model_config = SettingsConfigDict(env_prefix="PG_FIXTURES_TABLES_")

    inheritance_column: str = Field(
        default="type",
        description="Single table inheritance discriminator column",
    )


class Config(BaseSettings):
    """Main configuration for pg-fixtures."""

    model_config = SettingsConfigDict(env_prefix="PG_FIXTURES_")

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    tables: TablesConfig = Field(default_factory=TablesConfig)

    @classmethod
    def from_toml(cls, path: Path | str) -> Config:
        """
        Load configuration from TOML file.

        Args:
            path: Path to pg-fixtures.toml file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        return cls(**data)

    @classmethod
    def find_and_load(cls, start_dir: Optional[Path] = None) -> Config:
        """
        Find and load configuration from pg-fixtures.toml.

        Searches for pg-fixtures.toml starting from start_dir and walking up
        parent directories until found or reaching filesystem root. A relative
        project_root in the file is resolved against the file's directory.

        Args:
            start_dir: Directory to start search (defaults to current directory)

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If no config file found
        """
        if start_dir is None:
            start_dir = Path.cwd()

        current = Path(start_dir).resolve()

        # Walk up directory tree
        while True:
            config_path = current / CONFIG_FILENAME
            if config_path.exists():
                config = cls.from_toml(config_path)
                root = Path(config.paths.project_root)
                if not root.is_absolute():
                    config.paths.project_root = str((current / root).resolve())
                return config

            # Check if we've reached filesystem root
            parent = current.parent
            if parent == current:
                break
            current = parent

        raise FileNotFoundError(
            f"No {CONFIG_FILENAME} found in {start_dir} or parent directories."
        )

    def to_toml(self, path: Path | str) -> None:
        """
        Write configuration to TOML file.

        Args:
            path: Path to write pg-fixtures.toml
        """
        config_path = Path(path)

        # Build TOML content manually for better formatting
        toml_content = f"""# pg-fixtures configuration

[database]
url = "{self.database.url}"
schema_name = "{self.database.schema_name}"

[paths]
project_root = "{self.paths.project_root}"
fixtures_dir = "{self.paths.fixtures_dir}"
data_dir = "{self.paths.data_dir}"

[tables]
inheritance_column = "{self.tables.inheritance_column}"
"""

        config_path.write_text(toml_content)

    def get_project_root(self) -> Path:
        """Get the project root as a Path object."""
        return Path(self.paths.project_root)

    def resolve_path(self, path: Path | str) -> Path:
        """Resolve a path against the project root (absolute paths unchanged)."""
        return self.get_project_root() / Path(path)

    def get_fixtures_dir(self) -> Path:
        """Get the test fixtures directory as a Path object."""
        return self.resolve_path(self.paths.fixtures_dir)

    def get_data_dir(self) -> Path:
        """Get the table dump directory as a Path object."""
        return self.resolve_path(self.paths.data_dir)


# Default configuration instance
DEFAULT_CONFIG = Config()
