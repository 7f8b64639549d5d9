"""
Main application entry point for the Signup Bot.

Wires configuration, the database, the Discord client, the board scheduler
and the health server together.
"""

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from .config import BotConfig, ConfigManager
from .data import RepositoryFactory, run_migrations
from .discord_bot import SignupBot
from .exceptions import handle_unexpected_error
from .health import HealthServer


class SignupBotApp:
    """Owns the lifetime of every long running component."""

    def __init__(self):
        self.config: Optional[BotConfig] = None
        self.config_manager: Optional[ConfigManager] = None
        self.repository_factory: Optional[RepositoryFactory] = None
        self.discord_bot: Optional[SignupBot] = None
        self.health_server: Optional[HealthServer] = None
        self.running = False
        self._stopped = False

        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[logging.StreamHandler(sys.stdout)]
        )
        self.logger = logging.getLogger(__name__)

    def _configure_logging(self, config: BotConfig) -> None:
        root = logging.getLogger()
        root.setLevel(config.log_level.value)
        if not config.log_file:
            return
        try:
            log_path = Path(config.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(str(log_path))
        except OSError as e:
            self.logger.warning(f"File logging disabled: {e}")
            return
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        root.addHandler(handler)

    async def initialize(self) -> None:
        """Load configuration, migrate the database and build the bot."""
        try:
            self.logger.info("Initializing Signup Bot...")

            self.config_manager = ConfigManager()
            self.config = await self.config_manager.load_config()
            self._configure_logging(self.config)
            self.logger.info("Configuration loaded successfully")

            repos = await self._initialize_database()

            self.discord_bot = SignupBot(self.config, repos)

            if self.config.health.enabled:
                self.health_server = HealthServer(self.config.health, self.discord_bot.health_status)
                await self.health_server.start_server()

            self.logger.info("All components initialized successfully")

        except Exception as e:
            error = handle_unexpected_error(e)
            self.logger.error(f"Failed to initialize application: {error.to_log_string()}")
            raise

    async def _initialize_database(self):
        db_path = self.config.database.path
        self.logger.info(f"Initializing database at {db_path}...")

        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        await run_migrations(db_path)

        self.repository_factory = RepositoryFactory(
            backend="sqlite",
            db_path=db_path,
            pool_size=self.config.database.pool_size
        )
        repos = await self.repository_factory.create_repositories()
        self.logger.info("Database initialized successfully")
        return repos

    async def start(self) -> None:
        """Connect to Discord; blocks until the client closes."""
        if not self.config or not self.discord_bot:
            raise RuntimeError("Application not initialized. Call initialize() first.")

        self.running = True
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._signal_handler, sig)

        self.logger.info("Starting Signup Bot...")
        try:
            await self.discord_bot.start(self.config.discord_token)
        except Exception as e:
            error = handle_unexpected_error(e)
            self.logger.error(f"Failed to start application: {error.to_log_string()}")
            raise

    async def stop(self) -> None:
        """Stop services in reverse order of initialization."""
        if self._stopped:
            return
        self._stopped = True
        self.running = False
        self.logger.info("Initiating graceful shutdown...")

        if self.health_server:
            await self.health_server.stop_server()

        if self.discord_bot and not self.discord_bot.is_closed():
            await self.discord_bot.close()

        if self.repository_factory:
            await self.repository_factory.close()

        self.logger.info("Signup Bot stopped cleanly")

    def _signal_handler(self, signum) -> None:
        self.logger.info(f"Received {signal.Signals(signum).name}, initiating graceful shutdown...")
        asyncio.create_task(self.stop())


async def main() -> None:
    app = SignupBotApp()
    try:
        await app.initialize()
        await app.start()
    finally:
        await app.stop()
