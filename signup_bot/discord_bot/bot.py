"""
Discord client of the sign-up bot.
"""

import logging
from typing import Any, Awaitable, Callable, Dict

import discord
from discord.ext import commands

from ..board.actions import parse_action
from ..board.reconciler import BoardReconciler
from ..board.scheduler import BoardScheduler
from ..commands import run_command
from ..config.settings import BotConfig
from ..conversation.collector import EventCollector
from ..conversation.conversation import ConversationManager
from ..conversation.session_lock import SessionLock
from ..data.repositories import Repositories
from ..exceptions import GatewayError
from ..flow_logging import FlowInfo, FlowKind, LogTrace, OperatorLog, run_flow
from ..gateway.discord_gateway import (
    DiscordGateway, DiscordResponder, event_from_interaction, event_from_message,
    event_from_reaction, platform_errors
)
from ..gateway.events import EventKind, InteractionEvent
from ..interactions import FlowContext, handle_board_button
from .command_tree import build_command_tree

logger = logging.getLogger(__name__)

EXPIRED_TEXT = "This interaction has expired. Please start again."


class SignupBot(commands.Bot):
    """Routes Discord events to collectors, board button flows and commands."""

    def __init__(self, config: BotConfig, repos: Repositories):
        intents = discord.Intents.default()
        intents.members = True
        intents.message_content = True

        super().__init__(
            command_prefix="!",
            intents=intents,
            description="Training sign-up bot"
        )
        self.config = config
        self.repos = repos

        self.collector = EventCollector()
        self.gateway = DiscordGateway(self, self.collector, config.main_guild_id)
        self.conversations = ConversationManager(self.gateway, SessionLock(), config.conversation)
        self.board = BoardReconciler(self.gateway, repos)
        self.oplog = OperatorLog(self.gateway, repos.config)
        self.flow_context = FlowContext(
            gateway=self.gateway,
            repos=repos,
            conversations=self.conversations,
            board=self.board,
            config=config,
            oplog=self.oplog
        )
        self.board_scheduler = BoardScheduler(
            self.board,
            self.gateway,
            repos.trainings,
            self.oplog,
            config.board.refresh_interval_seconds
        )

        self._event_handlers: Dict[EventKind, Callable[[InteractionEvent], Awaitable[None]]] = {
            EventKind.BUTTON: self._on_component,
            EventKind.SELECT: self._on_component,
            EventKind.MESSAGE: self._on_collector_event,
            EventKind.REACTION: self._on_collector_event,
        }
        self._board_started = False

        build_command_tree(self)

    async def setup_hook(self) -> None:
        """Sync slash commands to the main guild."""
        guild = discord.Object(id=self.config.main_guild_id)
        self.tree.copy_global_to(guild=guild)
        await self.tree.sync(guild=guild)
        logger.info(f"Slash commands synced to guild {self.config.main_guild_id}")

    async def on_ready(self) -> None:
        """Load the board and start the refresh schedule once.

        on_ready fires again after reconnects.
        """
        logger.info(f"Logged in as {self.user} ({self.user.id if self.user else '?'})")
        if self._board_started:
            return
        self._board_started = True

        await self.board.load()
        if self.board.category_id is None and self.config.board.category_id:
            await self.board.set_category(self.config.board.category_id)
        await self.board_scheduler.start()
        await self.board_scheduler.run_once()

    async def close(self) -> None:
        await self.board_scheduler.stop(wait=False)
        await super().close()

    async def on_interaction(self, interaction: discord.Interaction) -> None:
        # Slash commands are dispatched by the command tree
        event = event_from_interaction(interaction)
        if event is None:
            return
        await self._event_handlers[event.kind](event)

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or message.guild is not None:
            return
        await self._event_handlers[EventKind.MESSAGE](event_from_message(message))

    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        if self.user is not None and payload.user_id == self.user.id:
            return
        await self._event_handlers[EventKind.REACTION](event_from_reaction(payload))

    async def on_member_remove(self, member: discord.Member) -> None:
        if member.guild.id != self.config.main_guild_id or member.bot:
            return

        async def remove_member(trace: LogTrace) -> None:
            user = await self.repos.users.get_by_discord_id(member.id)
            if user is None:
                trace.step("Member was not registered")
                return
            training_ids = [s.training_id for s in await self.repos.signups.list_for_user(user.id)]
            await self.repos.users.delete_by_discord_id(member.id)
            trace.step(f"Deleted user {user.gw2_id} and {len(training_ids)} sign-up(s)")
            for training_id in training_ids:
                await self.board.update_training(training_id)

        await run_flow(
            FlowInfo(FlowKind.EVENT, "Member left", member.id),
            remove_member,
            oplog=self.oplog
        )

    async def _on_collector_event(self, event: InteractionEvent) -> None:
        self.collector.dispatch(event)

    async def _on_component(self, event: InteractionEvent) -> None:
        interaction: discord.Interaction = event.raw
        if self.collector.dispatch(event):
            await self._acknowledge(interaction, thinking=False)
            return

        responder = DiscordResponder(interaction)
        if parse_action(event.custom_id or "") is None:
            try:
                await responder.info(EXPIRED_TEXT)
            except GatewayError as e:
                logger.warning(f"Could not answer an expired interaction: {e.to_log_string()}")
            return

        if await self._acknowledge(interaction, thinking=True):
            await handle_board_button(self.flow_context, responder, event.user_id, event.custom_id)

    async def _acknowledge(self, interaction: discord.Interaction, thinking: bool) -> bool:
        """Defer an interaction; component clicks are answered by editing messages."""
        try:
            with platform_errors("defer"):
                if thinking:
                    await interaction.response.defer(ephemeral=interaction.guild_id is not None, thinking=True)
                else:
                    await interaction.response.defer()
        except GatewayError as e:
            logger.warning(f"Could not acknowledge interaction: {e.to_log_string()}")
            return False
        return True

    async def run_command(self, interaction: discord.Interaction, name: str, /, **arguments) -> None:
        """Entry point of every slash command callback."""
        if await self._acknowledge(interaction, thinking=True):
            await run_command(
                self.flow_context, DiscordResponder(interaction), name, interaction.user.id, **arguments
            )

    def health_status(self) -> Dict[str, Any]:
        return {
            "ready": self.is_ready(),
            "latency_ms": round(self.latency * 1000, 1) if self.is_ready() else None,
            "active_conversations": self.conversations.active_count,
            "pending_collectors": len(self.collector),
            "board_channels": len(self.board.state.channels),
            "board_messages": len(self.board.state.messages),
        }
