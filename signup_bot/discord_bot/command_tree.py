"""
Slash command tree built from COMMAND_TABLE.
"""

import logging
from typing import TYPE_CHECKING, Callable, Dict, Optional, Set

import discord
from discord import app_commands

from ..commands import COMMAND_TABLE
from ..exceptions import ConfigurationError, create_error_context
from ..models.training import TrainingState

if TYPE_CHECKING:
    from .bot import SignupBot

logger = logging.getLogger(__name__)

GROUP_DESCRIPTIONS = {
    "training": "Manage trainings",
    "role": "Manage training roles",
    "training_roles": "Roles offered by trainings",
    "tier": "Manage tiers",
    "boss": "Manage bosses",
    "config": "Bot configuration",
    "board": "Manage the training board",
}

STATE_CHOICES = [app_commands.Choice(name=s.value, value=s.value) for s in TrainingState]


def build_command_tree(bot: 'SignupBot') -> None:
    """Register every COMMAND_TABLE entry on ``bot.tree``.

    Raises:
        ConfigurationError: A table entry has no slash command
    """
    groups: Dict[str, app_commands.Group] = {}
    registered: Set[str] = set()

    def group(name: str, admin: bool) -> app_commands.Group:
        if name not in groups:
            groups[name] = app_commands.Group(
                name=name,
                description=GROUP_DESCRIPTIONS.get(name, name),
                default_permissions=discord.Permissions(manage_guild=True) if admin else None,
                guild_only=True
            )
        return groups[name]

    def command(path: str) -> Callable:
        spec = COMMAND_TABLE[path]
        registered.add(path)
        parts = path.split(" ")
        if len(parts) == 1:
            return bot.tree.command(name=path, description=spec.description)
        return group(parts[0], spec.admin).command(name=parts[1], description=spec.description)

    @command("register")
    @app_commands.describe(gw2_account="Your account name, e.g. Some Name.1234")
    async def register(interaction: discord.Interaction, gw2_account: str) -> None:
        await bot.run_command(interaction, "register", gw2_account=gw2_account)

    @command("unregister")
    async def unregister(interaction: discord.Interaction) -> None:
        await bot.run_command(interaction, "unregister")

    @command("training add")
    @app_commands.describe(
        title="Title shown on the board",
        date="Start in UTC, YYYY-MM-DD HH:MM",
        tier="Name of the required tier"
    )
    async def training_add(interaction: discord.Interaction, title: str, date: str,
                           tier: Optional[str] = None) -> None:
        await bot.run_command(interaction, "training add", title=title, date=date, tier=tier)

    @command("training state")
    @app_commands.choices(state=STATE_CHOICES)
    async def training_state(interaction: discord.Interaction, training_id: int,
                             state: app_commands.Choice[str]) -> None:
        await bot.run_command(interaction, "training state", training_id=training_id, state=state.value)

    @command("training set")
    @app_commands.choices(state=STATE_CHOICES)
    @app_commands.describe(day="Every training on this day, YYYY-MM-DD",
                           ids="Training ids, separated by commas")
    async def training_set(interaction: discord.Interaction, state: app_commands.Choice[str],
                           day: Optional[str] = None, ids: Optional[str] = None) -> None:
        await bot.run_command(interaction, "training set", state=state.value, day=day, ids=ids)

    @command("training info")
    async def training_info(interaction: discord.Interaction, training_id: int) -> None:
        await bot.run_command(interaction, "training info", training_id=training_id)

    @command("training download")
    async def training_download(interaction: discord.Interaction, training_id: int) -> None:
        await bot.run_command(interaction, "training download", training_id=training_id)

    @command("training list")
    @app_commands.choices(state=STATE_CHOICES)
    async def training_list(interaction: discord.Interaction,
                            state: Optional[app_commands.Choice[str]] = None) -> None:
        await bot.run_command(interaction, "training list", state=state.value if state else None)

    @command("training delete")
    async def training_delete(interaction: discord.Interaction, training_id: int) -> None:
        await bot.run_command(interaction, "training delete", training_id=training_id)

    @command("training bosses")
    @app_commands.describe(bosses="Short names of the bosses, separated by spaces")
    async def training_bosses(interaction: discord.Interaction, training_id: int,
                              bosses: Optional[str] = None) -> None:
        await bot.run_command(interaction, "training bosses", training_id=training_id, bosses=bosses or "")

    @command("role add")
    @app_commands.describe(repr="Short unique name", priority="0 to 4, lower is listed first")
    async def role_add(interaction: discord.Interaction, title: str, repr: str, emoji: str,
                       priority: Optional[int] = 2) -> None:
        await bot.run_command(interaction, "role add", title=title, repr=repr, emoji=emoji,
                              priority=2 if priority is None else priority)

    @command("role remove")
    async def role_remove(interaction: discord.Interaction, repr: str) -> None:
        await bot.run_command(interaction, "role remove", repr=repr)

    @command("role list")
    async def role_list(interaction: discord.Interaction) -> None:
        await bot.run_command(interaction, "role list")

    @command("training_roles set")
    @app_commands.describe(roles="Short names of the roles, separated by spaces")
    async def training_roles_set(interaction: discord.Interaction, training_id: int, roles: str) -> None:
        await bot.run_command(interaction, "training_roles set", training_id=training_id, roles=roles)

    @command("tier add")
    async def tier_add(interaction: discord.Interaction, name: str) -> None:
        await bot.run_command(interaction, "tier add", name=name)

    @command("tier remove")
    async def tier_remove(interaction: discord.Interaction, name: str) -> None:
        await bot.run_command(interaction, "tier remove", name=name)

    @command("tier add_role")
    async def tier_add_role(interaction: discord.Interaction, name: str, role: discord.Role) -> None:
        await bot.run_command(interaction, "tier add_role", name=name, discord_role_id=role.id)

    @command("tier remove_role")
    async def tier_remove_role(interaction: discord.Interaction, name: str, role: discord.Role) -> None:
        await bot.run_command(interaction, "tier remove_role", name=name, discord_role_id=role.id)

    @command("tier list")
    async def tier_list(interaction: discord.Interaction) -> None:
        await bot.run_command(interaction, "tier list")

    @command("boss add")
    @app_commands.describe(repr="Short unique name", url="Guide link")
    async def boss_add(interaction: discord.Interaction, repr: str, name: str, wing: int,
                       position: int, emoji: str, url: Optional[str] = None) -> None:
        await bot.run_command(interaction, "boss add", repr=repr, name=name, wing=wing,
                              position=position, emoji=emoji, url=url)

    @command("boss remove")
    async def boss_remove(interaction: discord.Interaction, repr: str) -> None:
        await bot.run_command(interaction, "boss remove", repr=repr)

    @command("boss list")
    async def boss_list(interaction: discord.Interaction) -> None:
        await bot.run_command(interaction, "boss list")

    @command("config board_category")
    async def config_board_category(interaction: discord.Interaction,
                                    category: discord.CategoryChannel) -> None:
        await bot.run_command(interaction, "config board_category", category_id=category.id)

    @command("config log_channel")
    async def config_log_channel(interaction: discord.Interaction, channel: discord.TextChannel) -> None:
        await bot.run_command(interaction, "config log_channel", channel_id=channel.id)

    @command("board reset")
    async def board_reset(interaction: discord.Interaction) -> None:
        await bot.run_command(interaction, "board reset")

    @command("board refresh")
    async def board_refresh(interaction: discord.Interaction) -> None:
        await bot.run_command(interaction, "board refresh")

    for app_group in groups.values():
        bot.tree.add_command(app_group)

    missing = set(COMMAND_TABLE) - registered
    if missing:
        raise ConfigurationError(
            f"Commands without a slash command: {', '.join(sorted(missing))}",
            error_code="COMMAND_TREE_INCOMPLETE",
            context=create_error_context(operation="build_command_tree")
        )
    logger.info(f"Registered {len(registered)} slash commands in {len(groups)} groups")
