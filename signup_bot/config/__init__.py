"""
Configuration management for Signup Bot.
"""

import logging
from typing import Optional

from .settings import (
    BotConfig, DatabaseConfig, BoardConfig, ConversationConfig, HealthConfig, LogLevel
)
from .environment import EnvironmentLoader
from .validation import ConfigValidator
from ..exceptions import ConfigurationError, create_error_context

logger = logging.getLogger(__name__)


class ConfigManager:
    """Loads and validates the bot configuration."""

    def __init__(self):
        self._config: Optional[BotConfig] = None

    async def load_config(self) -> BotConfig:
        """Load configuration from the environment and validate it.

        Raises:
            ConfigurationError: A variable is missing or a value is invalid
        """
        try:
            config = EnvironmentLoader.load_config()
        except ValueError as e:
            raise ConfigurationError(
                message=str(e),
                error_code="CONFIG_LOAD_FAILED",
                context=create_error_context(operation="load_config"),
                cause=e
            )

        errors = ConfigValidator.validate_config(config)
        if errors:
            raise ConfigurationError(
                message="Invalid configuration: " + "; ".join(errors),
                error_code="CONFIG_INVALID",
                context=create_error_context(operation="validate_config", errors=errors)
            )

        self._config = config
        logger.info("Configuration loaded")
        return config

    def get_current_config(self) -> Optional[BotConfig]:
        return self._config


__all__ = [
    'BotConfig',
    'DatabaseConfig',
    'BoardConfig',
    'ConversationConfig',
    'HealthConfig',
    'LogLevel',
    'EnvironmentLoader',
    'ConfigValidator',
    'ConfigManager',
]
