"""
Tests for environment configuration loading and validation.
"""

import pytest

from signup_bot.config import BotConfig, ConfigManager, ConfigValidator, EnvironmentLoader, LogLevel
from signup_bot.exceptions import ConfigurationError

TOKEN = "A" * 24 + ".abc_def-123"

OPTIONAL_VARS = (
    "ADMIN_ROLE_ID", "SQUADMAKER_ROLE_ID", "BOARD_CATEGORY_ID", "DATABASE_PATH", "DB_POOL_SIZE",
    "BOARD_REFRESH_SECONDS", "CONVERSATION_TIMEOUT", "SELECTOR_TIMEOUT", "CONFIRM_TIMEOUT",
    "SELECTOR_ITEMS_PER_ROW", "SELECTOR_ROWS_PER_PAGE", "HEALTH_ENABLED", "HEALTH_HOST",
    "HEALTH_PORT", "LOG_LEVEL", "LOG_FILE",
)


@pytest.fixture
def env(monkeypatch):
    for name in OPTIONAL_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DISCORD_TOKEN", TOKEN)
    monkeypatch.setenv("MAIN_GUILD_ID", "123456")
    return monkeypatch


class TestEnvironmentLoader:

    def test_defaults(self, env):
        config = EnvironmentLoader.load_config()
        assert config.discord_token == TOKEN
        assert config.main_guild_id == 123456
        assert config.admin_role_id is None
        assert config.board.refresh_interval_seconds == 300
        assert config.conversation.items_per_row == 4
        assert config.log_level is LogLevel.INFO

    def test_overrides(self, env):
        env.setenv("ADMIN_ROLE_ID", "77")
        env.setenv("BOARD_CATEGORY_ID", "500")
        env.setenv("SELECTOR_TIMEOUT", "30")
        env.setenv("LOG_LEVEL", "debug")
        env.setenv("HEALTH_ENABLED", "false")

        config = EnvironmentLoader.load_config()
        assert config.admin_role_id == 77
        assert config.board.category_id == 500
        assert config.conversation.selector_timeout_seconds == 30.0
        assert config.log_level is LogLevel.DEBUG
        assert not config.health.enabled

    def test_missing_token(self, env):
        env.delenv("DISCORD_TOKEN")
        with pytest.raises(ValueError):
            EnvironmentLoader.load_config()

    def test_guild_id_must_be_numeric(self, env):
        env.setenv("MAIN_GUILD_ID", "main")
        with pytest.raises(ValueError):
            EnvironmentLoader.load_config()


class TestConfigValidator:

    def test_valid(self):
        assert ConfigValidator.validate_config(BotConfig(discord_token=TOKEN, main_guild_id=1)) == []

    def test_collects_every_error(self):
        config = BotConfig(discord_token="short!", main_guild_id=-1)
        config.conversation.rows_per_page = 5
        config.board.refresh_interval_seconds = 1

        errors = ConfigValidator.validate_config(config)
        assert "Discord token appears to be too short" in errors
        assert "Discord token contains invalid characters" in errors
        assert "MAIN_GUILD_ID must be a positive Discord id" in errors
        assert "SELECTOR_ROWS_PER_PAGE must be between 1 and 4" in errors
        assert "BOARD_REFRESH_SECONDS must be at least 10" in errors


class TestConfigManager:

    @pytest.mark.asyncio
    async def test_load(self, env):
        manager = ConfigManager()
        config = await manager.load_config()
        assert manager.get_current_config() is config

    @pytest.mark.asyncio
    async def test_invalid_values_raise(self, env):
        env.setenv("DB_POOL_SIZE", "50")
        with pytest.raises(ConfigurationError) as exc_info:
            await ConfigManager().load_config()
        assert exc_info.value.error_code == "CONFIG_INVALID"

    @pytest.mark.asyncio
    async def test_missing_values_raise(self, env):
        env.delenv("MAIN_GUILD_ID")
        with pytest.raises(ConfigurationError) as exc_info:
            await ConfigManager().load_config()
        assert exc_info.value.error_code == "CONFIG_LOAD_FAILED"
