"""
Configuration validation for Signup Bot.
"""

from typing import List
import re
from .settings import BotConfig


class ConfigValidator:
    """Validates configuration settings."""

    @staticmethod
    def validate_config(config: BotConfig) -> List[str]:
        """Validate the entire bot configuration."""
        errors = []

        errors.extend(ConfigValidator._validate_discord_token(config.discord_token))
        errors.extend(ConfigValidator._validate_snowflakes(config))
        errors.extend(ConfigValidator._validate_conversation(config))
        errors.extend(ConfigValidator._validate_numeric_ranges(config))

        return errors

    @staticmethod
    def _validate_discord_token(token: str) -> List[str]:
        """Validate Discord token format."""
        errors = []

        if not token:
            errors.append("DISCORD_TOKEN is required")
            return errors

        # Discord bot tokens should be at least 24 characters
        if len(token) < 24:
            errors.append("Discord token appears to be too short")

        # Discord tokens typically contain only alphanumeric characters, dots, and underscores
        if not re.match(r'^[A-Za-z0-9._-]+$', token):
            errors.append("Discord token contains invalid characters")

        return errors

    @staticmethod
    def _validate_snowflakes(config: BotConfig) -> List[str]:
        """Discord ids must be positive."""
        errors = []
        ids = {
            "MAIN_GUILD_ID": config.main_guild_id,
            "ADMIN_ROLE_ID": config.admin_role_id,
            "SQUADMAKER_ROLE_ID": config.squadmaker_role_id,
            "BOARD_CATEGORY_ID": config.board.category_id,
        }
        for name, value in ids.items():
            if value is not None and value <= 0:
                errors.append(f"{name} must be a positive Discord id")
        return errors

    @staticmethod
    def _validate_conversation(config: BotConfig) -> List[str]:
        errors = []
        conversation = config.conversation

        # Discord allows 5 rows of 5 components; the last row holds the controls
        if not 1 <= conversation.items_per_row <= 5:
            errors.append("SELECTOR_ITEMS_PER_ROW must be between 1 and 5")
        if not 1 <= conversation.rows_per_page <= 4:
            errors.append("SELECTOR_ROWS_PER_PAGE must be between 1 and 4")

        for name, value in (
            ("CONVERSATION_TIMEOUT", conversation.timeout_seconds),
            ("SELECTOR_TIMEOUT", conversation.selector_timeout_seconds),
            ("CONFIRM_TIMEOUT", conversation.confirm_timeout_seconds),
        ):
            if value <= 0:
                errors.append(f"{name} must be positive")

        return errors

    @staticmethod
    def _validate_numeric_ranges(config: BotConfig) -> List[str]:
        """Validate numeric configuration ranges."""
        errors = []

        if config.board.refresh_interval_seconds < 10:
            errors.append("BOARD_REFRESH_SECONDS must be at least 10")

        if not 1 <= config.database.pool_size <= 20:
            errors.append("DB_POOL_SIZE must be between 1 and 20")

        if not 1 <= config.health.port <= 65535:
            errors.append("HEALTH_PORT must be between 1 and 65535")

        return errors
