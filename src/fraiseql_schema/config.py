"""
Configuration management for fraiseql-schema.

Settings come from ``FRAISEQL_SCHEMA_*`` environment variables or the
``[analyzer]`` table of a fraiseql-schema.toml file, validated with Pydantic.
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

from fraiseql_schema.gateway import PooledGateway

CONFIG_FILENAME = "fraiseql-schema.toml"


class AnalyzerConfig(BaseSettings):
    """Schema analyzer configuration."""

    model_config = SettingsConfigDict(env_prefix="FRAISEQL_SCHEMA_")

    database_url: str = Field(
        default="postgresql://localhost/postgres",
        description="PostgreSQL connection URL",
    )
    module_name: str = Field(
        default="fraiseql_schema",
        description="Module name stamped on snapshots when the caller gives none",
    )
    max_workers: int = Field(
        default=8, ge=1, description="Concurrent catalog queries (1 = sequential)"
    )
    timeout: Optional[float] = Field(
        default=None, gt=0, description="Seconds before an analysis is abandoned"
    )
    migrations_table: str = Field(
        default="schema_migrations", description="Table holding applied migrations"
    )
    migrations_schema: Optional[str] = Field(
        default=None, description="Schema of the migrations table (search path if unset)"
    )
    exclude_schemas: list[str] = Field(
        default_factory=list,
        description="Schemas to skip in addition to pg_catalog and information_schema",
    )

    @classmethod
    def from_toml(cls, path: Path | str) -> AnalyzerConfig:
        """Build a config from the ``[analyzer]`` table of ``path``.

        Keys missing from the file fall back to environment variables and
        defaults. Raises ``FileNotFoundError`` when ``path`` is absent.
        """
        config_path = Path(path)
        if not config_path.is_file():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with config_path.open("rb") as f:
            return cls(**tomllib.load(f).get("analyzer", {}))

    @classmethod
    def find_and_load(cls, start_dir: Optional[Path] = None) -> AnalyzerConfig:
        """Load the nearest fraiseql-schema.toml at or above ``start_dir``."""
        start = Path(start_dir or Path.cwd()).resolve()
        for directory in (start, *start.parents):
            candidate = directory / CONFIG_FILENAME
            if candidate.is_file():
                return cls.from_toml(candidate)
        return cls()

    def connect(self) -> PooledGateway:
        """Open a pooled gateway sized for ``max_workers`` concurrent queries."""
        return PooledGateway(self.database_url, max_size=self.max_workers)
