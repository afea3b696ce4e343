"""Unit tests for configuration management.

Tests cover:
- Default configuration values
- TOML file loading and search order
- Environment variable overrides
- Validation errors for invalid configurations
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from questboard.config import (
    AuthConfig,
    AutomationConfig,
    DatabaseConfig,
    LoggingConfig,
    QuestboardConfig,
    WebConfig,
    load_config,
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep real environment variables and config files out of the tests."""
    import os

    for key in list(os.environ):
        if key.startswith("QUESTBOARD_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)


class TestDefaults:
    """Test default values of each section."""

    def test_database_not_configured_by_default(self) -> None:
        """Test that no database URL is set by default."""
        config = DatabaseConfig()
        assert config.url is None
        assert config.pool_size == 5
        assert config.echo is False

    def test_auth_disabled_by_default(self) -> None:
        """Test that no token is configured by default."""
        assert AuthConfig().token is None

    def test_web_defaults(self) -> None:
        """Test web server defaults."""
        config = WebConfig()
        assert config.port == 8000
        assert config.cors_origins == ["http://localhost:3000"]

    def test_automation_defaults(self) -> None:
        """Test agent defaults."""
        config = AutomationConfig()
        assert config.base_url == "http://localhost:8000"
        assert config.timeout_seconds == 15.0
        assert config.auto_start_lock_seconds == 120
        assert config.sweep_lock_seconds == 300
        assert config.stale_after_hours == 24.0
        assert config.exempt_tags == ["pinned", "wip-ok"]

    def test_logging_defaults(self) -> None:
        """Test logging defaults."""
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.format == "json"
        assert config.file is None


class TestValidation:
    """Test validation of individual fields."""

    def test_log_level_normalised(self) -> None:
        """Test that log levels are upper-cased."""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_log_level(self) -> None:
        """Test that unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")

    def test_invalid_log_format(self) -> None:
        """Test that unknown log formats are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")

    def test_port_range(self) -> None:
        """Test that ports are validated."""
        with pytest.raises(ValidationError):
            WebConfig(port=0)

    def test_exempt_tags_lowercased(self) -> None:
        """Test that exempt tags are normalised for case-insensitive matching."""
        config = AutomationConfig(exempt_tags=["Pinned", " WIP-OK ", ""])
        assert config.exempt_tags == ["pinned", "wip-ok"]

    def test_unknown_keys_rejected(self) -> None:
        """Test that typos in config sections fail loudly."""
        with pytest.raises(ValidationError):
            AuthConfig(tokn="x")


class TestEnvironment:
    """Test environment variable overrides."""

    def test_nested_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test QUESTBOARD_<SECTION>__<KEY> variables."""
        monkeypatch.setenv("QUESTBOARD_AUTH__TOKEN", "s3cret")
        monkeypatch.setenv("QUESTBOARD_AUTOMATION__STALE_AFTER_HOURS", "12")

        config = QuestboardConfig()

        assert config.auth.token == "s3cret"
        assert config.automation.stale_after_hours == 12.0


class TestLoadConfig:
    """Test TOML loading."""

    def test_explicit_file(self, tmp_path: Path) -> None:
        """Test loading an explicit TOML file."""
        path = tmp_path / "custom.toml"
        path.write_text(
            '[database]\nurl = "sqlite+aiosqlite:///./board.db"\n\n'
            '[automation]\nbase_url = "http://board:9000"\nexempt_tags = ["Frozen"]\n'
        )

        config = load_config(path)

        assert config.database.url == "sqlite+aiosqlite:///./board.db"
        assert config.automation.base_url == "http://board:9000"
        assert config.automation.exempt_tags == ["frozen"]

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        """Test that a missing explicit path is an error."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_invalid_values(self, tmp_path: Path) -> None:
        """Test that invalid values are reported as ValueError."""
        path = tmp_path / "bad.toml"
        path.write_text("[web]\nport = 70000\n")
        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(path)

    def test_finds_file_in_working_directory(self, tmp_path: Path) -> None:
        """Test that ./questboard.toml is picked up automatically."""
        (tmp_path / "questboard.toml").write_text('[auth]\ntoken = "from-cwd"\n')
        assert load_config().auth.token == "from-cwd"

    def test_falls_back_to_user_config(self, tmp_path: Path) -> None:
        """Test that ~/.config/questboard/config.toml is used next."""
        user_dir = tmp_path / "home" / ".config" / "questboard"
        user_dir.mkdir(parents=True)
        (user_dir / "config.toml").write_text('[web]\nport = 9100\n')

        assert load_config().web.port == 9100

    def test_no_file_gives_defaults(self) -> None:
        """Test that defaults apply when no file exists."""
        config = load_config()
        assert config.database.url is None
        assert config.auth.token is None
