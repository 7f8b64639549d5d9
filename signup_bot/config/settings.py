"""
Configuration settings and data classes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class DatabaseConfig:
    """SQLite database configuration."""
    path: str = "data/signup_bot.db"
    pool_size: int = 5


@dataclass
class BoardConfig:
    """Sign-up board configuration."""
    refresh_interval_seconds: int = 300
    category_id: Optional[int] = None


@dataclass
class ConversationConfig:
    """Timeouts and layout of private conversations."""
    timeout_seconds: float = 300.0
    selector_timeout_seconds: float = 180.0
    confirm_timeout_seconds: float = 60.0
    items_per_row: int = 4
    rows_per_page: int = 3


@dataclass
class HealthConfig:
    """HTTP health endpoint configuration."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 5000


@dataclass
class BotConfig:
    """Top level bot configuration."""
    discord_token: str
    main_guild_id: int
    admin_role_id: Optional[int] = None
    squadmaker_role_id: Optional[int] = None
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    board: BoardConfig = field(default_factory=BoardConfig)
    conversation: ConversationConfig = field(default_factory=ConversationConfig)
    health: HealthConfig = field(default_factory=HealthConfig)
    log_level: LogLevel = LogLevel.INFO
    log_file: Optional[str] = "data/signup_bot.log"
