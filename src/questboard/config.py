"""Configuration management for Questboard.

This module defines the configuration schema using Pydantic settings,
supporting TOML files, environment variables, and programmatic overrides.

Configuration loading priority (highest to lowest):
1. Programmatic overrides (passed to QuestboardConfig constructor)
2. Environment variables (QUESTBOARD_* prefix)
3. TOML configuration file
4. Default values defined in this module

Example TOML configuration:
    [database]
    url = "sqlite+aiosqlite:///./questboard.db"

    [auth]
    token = "change-me"

    [automation]
    base_url = "http://localhost:8000"
    stale_after_hours = 24

Example environment variable override:
    QUESTBOARD_DATABASE__URL="postgresql+asyncpg://prod/questboard"
    QUESTBOARD_AUTH__TOKEN="s3cret"
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

import tomli
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database connection configuration.

    Attributes:
        url: SQLAlchemy async database URL. None means the backing store
             is not configured and every store request fails with a
             BackingStoreUnavailableError.
        pool_size: Number of connections to maintain in the pool
                   (ignored for SQLite)
        max_overflow: Maximum number of connections beyond pool_size
        echo: Enable SQL query logging
    """

    model_config = SettingsConfigDict(
        env_prefix="QUESTBOARD_DATABASE__",
        extra="forbid",
    )

    url: str | None = Field(
        default=None,
        description="Async SQLAlchemy URL, e.g. sqlite+aiosqlite:///./questboard.db",
    )
    pool_size: int = Field(default=5, ge=1, le=100)
    max_overflow: int = Field(default=10, ge=0, le=100)
    echo: bool = Field(default=False)


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json or console)
        file: Optional log file path (None for stdout only)
        rotation_size_mb: Log file rotation size in megabytes
        retention_count: Number of rotated log files to keep
    """

    model_config = SettingsConfigDict(
        env_prefix="QUESTBOARD_LOGGING__",
        extra="forbid",
    )

    level: str = Field(default="INFO")
    format: str = Field(default="json")
    file: Path | None = Field(default=None)
    rotation_size_mb: int = Field(default=50, ge=1, le=1000)
    retention_count: int = Field(default=10, ge=1, le=100)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is recognized."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format is recognized."""
        valid_formats = {"json", "console"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return v_lower


class AuthConfig(BaseSettings):
    """Shared-secret authentication for mutating API requests.

    Attributes:
        token: Shared secret. When None, all requests are accepted
               (local development).
    """

    model_config = SettingsConfigDict(
        env_prefix="QUESTBOARD_AUTH__",
        extra="forbid",
    )

    token: str | None = Field(default=None)


class WebConfig(BaseSettings):
    """Web API configuration.

    Attributes:
        host: Bind host address
        port: Bind port number
        cors_origins: Allowed CORS origins
    """

    model_config = SettingsConfigDict(
        env_prefix="QUESTBOARD_WEB__",
        extra="forbid",
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])


class AutomationConfig(BaseSettings):
    """Configuration for the unattended maintenance agents.

    Attributes:
        base_url: Base URL of the Questboard HTTP API
        token: Shared secret sent with mutating requests
        timeout_seconds: Per-request timeout for API calls
        lock_dir: Directory holding the per-agent run lock files
        auto_start_lock_seconds: Age after which an auto-starter lock is abandoned
        sweep_lock_seconds: Age after which a stale-sweeper lock is abandoned
        stale_after_hours: Time in DOING without update before a task is stale
        exempt_tags: Tags that exempt a DOING task from staleness
    """

    model_config = SettingsConfigDict(
        env_prefix="QUESTBOARD_AUTOMATION__",
        extra="forbid",
    )

    base_url: str = Field(default="http://localhost:8000")
    token: str | None = Field(default=None)
    timeout_seconds: float = Field(default=15.0, gt=0, le=300)
    lock_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    auto_start_lock_seconds: int = Field(default=120, ge=1, le=86400)
    sweep_lock_seconds: int = Field(default=300, ge=1, le=86400)
    stale_after_hours: float = Field(default=24.0, gt=0)
    exempt_tags: list[str] = Field(default_factory=lambda: ["pinned", "wip-ok"])

    @field_validator("exempt_tags")
    @classmethod
    def lowercase_tags(cls, v: list[str]) -> list[str]:
        """Exempt tags are matched case-insensitively."""
        return [tag.strip().lower() for tag in v if tag.strip()]


class QuestboardConfig(BaseSettings):
    """Root configuration for Questboard.

    Aggregates all subsystem configurations. Configuration can be loaded from:
    1. TOML files (using load_config function)
    2. Environment variables (QUESTBOARD_* prefix)
    3. Direct instantiation with keyword arguments

    Environment variable format for nested config:
        QUESTBOARD_<SECTION>__<KEY>=value
    """

    model_config = SettingsConfigDict(
        env_prefix="QUESTBOARD_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    automation: AutomationConfig = Field(default_factory=AutomationConfig)


def load_config(config_path: Path | None = None) -> QuestboardConfig:
    """Load configuration from TOML file with environment variable overrides.

    Configuration search order (first found is used):
    1. config_path if explicitly provided
    2. ./questboard.toml (current directory)
    3. ~/.config/questboard/config.toml (user config directory)

    Args:
        config_path: Explicit path to TOML config file. If None, searches
                    default locations.

    Returns:
        QuestboardConfig: Fully resolved configuration instance.

    Raises:
        FileNotFoundError: If config_path is explicitly provided but doesn't exist.
        ValueError: If TOML file contains invalid configuration.
    """
    toml_data: dict[str, Any] = {}

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        selected_path = config_path
    else:
        search_paths = [
            Path.cwd() / "questboard.toml",
            Path.home() / ".config" / "questboard" / "config.toml",
        ]
        selected_path = None
        for path in search_paths:
            if path.exists():
                selected_path = path
                break

    if selected_path is not None:
        with open(selected_path, "rb") as f:
            toml_data = tomli.load(f)

    # Pydantic overlays environment variables on top of the TOML data
    try:
        return QuestboardConfig(**toml_data)
    except Exception as e:
        if selected_path:
            raise ValueError(
                f"Invalid configuration in {selected_path}: {e}"
            ) from e
        else:
            raise ValueError(f"Invalid configuration: {e}") from e
