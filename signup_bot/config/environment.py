"""
Environment variable handling for Signup Bot configuration.
"""

import os
from typing import Optional
from dotenv import load_dotenv
from .settings import (
    BotConfig, DatabaseConfig, BoardConfig, ConversationConfig, HealthConfig, LogLevel
)


class EnvironmentLoader:
    """Loads configuration from environment variables."""

    @staticmethod
    def load_config() -> BotConfig:
        """Load configuration from environment variables."""
        # Load .env file if it exists (override=True to prefer .env over shell env)
        load_dotenv(override=True)

        discord_token = EnvironmentLoader._get_required_env('DISCORD_TOKEN')
        main_guild_id = EnvironmentLoader._parse_int(
            EnvironmentLoader._get_required_env('MAIN_GUILD_ID'), 'MAIN_GUILD_ID'
        )

        database = DatabaseConfig(
            path=os.getenv('DATABASE_PATH', 'data/signup_bot.db'),
            pool_size=int(os.getenv('DB_POOL_SIZE', '5'))
        )

        board = BoardConfig(
            refresh_interval_seconds=int(os.getenv('BOARD_REFRESH_SECONDS', '300')),
            category_id=EnvironmentLoader._optional_int('BOARD_CATEGORY_ID')
        )

        conversation = ConversationConfig(
            timeout_seconds=float(os.getenv('CONVERSATION_TIMEOUT', '300')),
            selector_timeout_seconds=float(os.getenv('SELECTOR_TIMEOUT', '180')),
            confirm_timeout_seconds=float(os.getenv('CONFIRM_TIMEOUT', '60')),
            items_per_row=int(os.getenv('SELECTOR_ITEMS_PER_ROW', '4')),
            rows_per_page=int(os.getenv('SELECTOR_ROWS_PER_PAGE', '3'))
        )

        health = HealthConfig(
            enabled=os.getenv('HEALTH_ENABLED', 'true').lower() == 'true',
            host=os.getenv('HEALTH_HOST', '0.0.0.0'),
            port=int(os.getenv('HEALTH_PORT', '5000'))
        )

        # Log level
        log_level_str = os.getenv('LOG_LEVEL', 'INFO').upper()
        log_level = LogLevel.INFO  # default
        try:
            log_level = LogLevel(log_level_str)
        except ValueError:
            pass  # Use default

        return BotConfig(
            discord_token=discord_token,
            main_guild_id=main_guild_id,
            admin_role_id=EnvironmentLoader._optional_int('ADMIN_ROLE_ID'),
            squadmaker_role_id=EnvironmentLoader._optional_int('SQUADMAKER_ROLE_ID'),
            database=database,
            board=board,
            conversation=conversation,
            health=health,
            log_level=log_level,
            log_file=os.getenv('LOG_FILE', 'data/signup_bot.log') or None
        )

    @staticmethod
    def _get_required_env(key: str) -> str:
        """Get a required environment variable or raise an error."""
        value = os.getenv(key)
        if not value:
            raise ValueError(f"Required environment variable {key} is not set")
        return value

    @staticmethod
    def _parse_int(value: str, key: str) -> int:
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"Environment variable {key} must be an integer, got {value!r}")

    @staticmethod
    def _optional_int(key: str) -> Optional[int]:
        value = os.getenv(key)
        if not value:
            return None
        return EnvironmentLoader._parse_int(value, key)

