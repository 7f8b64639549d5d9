"""
discord.py implementation of the chat gateway.
"""

import io
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

import discord

from ..exceptions import GatewayError, GatewayForbidden, GatewayNotFound
from .base import ChannelRef, ChatGateway, MessageRef, Responder
from .events import EventKind, InteractionEvent
from .view import ButtonSpec, ButtonStyle, EmbedSpec, MessageView

logger = logging.getLogger(__name__)

BUTTON_STYLES = {
    ButtonStyle.PRIMARY: discord.ButtonStyle.primary,
    ButtonStyle.SECONDARY: discord.ButtonStyle.secondary,
    ButtonStyle.SUCCESS: discord.ButtonStyle.success,
    ButtonStyle.DANGER: discord.ButtonStyle.danger,
    ButtonStyle.LINK: discord.ButtonStyle.link,
}

# Discord component type of a button; select menus use other values
BUTTON_COMPONENT_TYPE = 2


@contextmanager
def platform_errors(operation: str) -> Iterator[None]:
    """Translate discord.py HTTP errors into gateway errors."""
    try:
        yield
    except discord.Forbidden as e:
        raise GatewayForbidden(operation, str(e), cause=e) from e
    except discord.NotFound as e:
        raise GatewayNotFound(operation, str(e), cause=e) from e
    except discord.HTTPException as e:
        raise GatewayError(operation, str(e), cause=e) from e


def to_embed(spec: EmbedSpec) -> discord.Embed:
    embed = discord.Embed(
        title=spec.title,
        description=spec.description,
        color=spec.color,
        url=spec.url
    )
    for field in spec.fields:
        embed.add_field(name=field.name, value=field.value, inline=field.inline)
    if spec.footer:
        embed.set_footer(text=spec.footer)
    return embed


def to_button(spec: ButtonSpec, row: int) -> discord.ui.Button:
    if spec.style is ButtonStyle.LINK:
        return discord.ui.Button(
            style=discord.ButtonStyle.link, label=spec.label, url=spec.url,
            emoji=spec.emoji, disabled=spec.disabled, row=row
        )
    return discord.ui.Button(
        style=BUTTON_STYLES[spec.style], label=spec.label, custom_id=spec.custom_id,
        emoji=spec.emoji, disabled=spec.disabled, row=row
    )


def to_components(view: MessageView) -> discord.ui.View:
    """Build a component view; button clicks are routed by the bot, not by the view.

    An empty view clears the components of an edited message.
    """
    components = discord.ui.View(timeout=None)
    for index, row in enumerate(view.rows):
        for spec in row:
            components.add_item(to_button(spec, index))
    # A finished view is not stored by the client's view store
    components.stop()
    return components


def message_kwargs(view: MessageView) -> dict:
    return {
        "content": view.content,
        "embeds": [to_embed(e) for e in view.embeds],
        "view": to_components(view),
    }


def event_from_interaction(interaction: discord.Interaction) -> Optional[InteractionEvent]:
    """Component interactions as collector events; None for other interaction types."""
    if interaction.type is not discord.InteractionType.component or interaction.data is None:
        return None
    data = interaction.data
    kind = EventKind.BUTTON if data.get("component_type") == BUTTON_COMPONENT_TYPE else EventKind.SELECT
    return InteractionEvent(
        kind=kind,
        user_id=interaction.user.id,
        channel_id=interaction.channel_id,
        message_id=interaction.message.id if interaction.message else None,
        guild_id=interaction.guild_id,
        custom_id=data.get("custom_id"),
        values=tuple(data.get("values", ())),
        raw=interaction
    )


def event_from_message(message: discord.Message) -> InteractionEvent:
    return InteractionEvent.message(
        user_id=message.author.id,
        channel_id=message.channel.id,
        content=message.content,
        message_id=message.id,
        guild_id=message.guild.id if message.guild else None,
        raw=message
    )


def event_from_reaction(payload: discord.RawReactionActionEvent) -> InteractionEvent:
    return InteractionEvent.reaction(
        user_id=payload.user_id,
        channel_id=payload.channel_id,
        message_id=payload.message_id,
        emoji=str(payload.emoji),
        guild_id=payload.guild_id,
        raw=payload
    )


class DiscordGateway(ChatGateway):
    """ChatGateway on top of a connected discord.py client."""

    def __init__(self, client: discord.Client, collector, main_guild_id: int):
        super().__init__(collector)
        self.client = client
        self.main_guild_id = main_guild_id

    async def _channel(self, channel_id: int, operation: str):
        channel = self.client.get_channel(channel_id)
        if channel is None:
            with platform_errors(operation):
                channel = await self.client.fetch_channel(channel_id)
        return channel

    def _guild(self, operation: str) -> discord.Guild:
        guild = self.client.get_guild(self.main_guild_id)
        if guild is None:
            raise GatewayNotFound(operation, f"guild {self.main_guild_id} is not available")
        return guild

    async def send_message(self, channel_id: int, view: MessageView) -> MessageRef:
        channel = await self._channel(channel_id, "send_message")
        kwargs = message_kwargs(view)
        if not view.rows:
            del kwargs["view"]
        with platform_errors("send_message"):
            message = await channel.send(**kwargs)
        return MessageRef(channel_id, message.id)

    async def edit_message(self, message: MessageRef, view: MessageView) -> None:
        channel = await self._channel(message.channel_id, "edit_message")
        with platform_errors("edit_message"):
            await channel.get_partial_message(message.id).edit(**message_kwargs(view))

    async def delete_message(self, message: MessageRef) -> None:
        channel = await self._channel(message.channel_id, "delete_message")
        with platform_errors("delete_message"):
            await channel.get_partial_message(message.id).delete()

    async def create_channel(self, category_id: int, name: str,
                             position: Optional[int] = None) -> ChannelRef:
        guild = self._guild("create_channel")
        category = guild.get_channel(category_id)
        if not isinstance(category, discord.CategoryChannel):
            raise GatewayNotFound("create_channel", f"category {category_id} not found")
        kwargs = {"category": category}
        if position is not None:
            kwargs["position"] = position
        with platform_errors("create_channel"):
            channel = await guild.create_text_channel(name, **kwargs)
        return ChannelRef(channel.id, channel.name)

    async def move_channel(self, channel_id: int, after_channel_id: Optional[int] = None) -> None:
        channel = await self._channel(channel_id, "move_channel")
        try:
            with platform_errors("move_channel"):
                if after_channel_id is None:
                    await channel.move(beginning=True)
                else:
                    await channel.move(after=discord.Object(id=after_channel_id))
        except ValueError as e:
            # discord.py could not find the sibling among the category's channels
            raise GatewayNotFound("move_channel", str(e), cause=e) from e

    async def delete_channel(self, channel_id: int) -> None:
        channel = await self._channel(channel_id, "delete_channel")
        with platform_errors("delete_channel"):
            await channel.delete()

    async def list_category_channels(self, category_id: int) -> List[ChannelRef]:
        category = await self._channel(category_id, "list_category_channels")
        if not isinstance(category, discord.CategoryChannel):
            raise GatewayNotFound("list_category_channels", f"{category_id} is not a category")
        return [ChannelRef(c.id, c.name) for c in category.text_channels]

    async def open_private_channel(self, user_id: int) -> ChannelRef:
        with platform_errors("open_private_channel"):
            user = self.client.get_user(user_id) or await self.client.fetch_user(user_id)
            channel = user.dm_channel or await user.create_dm()
        return ChannelRef(channel.id)

    async def member_has_any_role(self, user_id: int, role_ids: Sequence[int]) -> bool:
        if not role_ids:
            return False
        guild = self._guild("member_has_any_role")
        member = guild.get_member(user_id)
        if member is None:
            try:
                with platform_errors("member_has_any_role"):
                    member = await guild.fetch_member(user_id)
            except GatewayNotFound:
                return False
        wanted = set(role_ids)
        return any(role.id in wanted for role in member.roles)

    async def user_name(self, user_id: int) -> str:
        user = self.client.get_user(user_id)
        if user is None:
            with platform_errors("user_name"):
                user = await self.client.fetch_user(user_id)
        return str(user)

    async def set_status(self, text: str) -> None:
        with platform_errors("set_status"):
            await self.client.change_presence(activity=discord.Game(name=text))

    def message_link(self, message: MessageRef, guild_id: Optional[int] = None) -> str:
        channel = self.client.get_channel(message.channel_id)
        if guild_id is None and isinstance(channel, discord.abc.GuildChannel):
            guild_id = channel.guild.id
        return super().message_link(message, guild_id)


class DiscordResponder(Responder):
    """Replies to a slash command or component interaction.

    Replies are ephemeral inside guilds and use a followup once the
    interaction has been answered or deferred.
    """

    def __init__(self, interaction: discord.Interaction):
        self.interaction = interaction

    async def info(self, text: str, view: Optional[MessageView] = None) -> None:
        embeds = [to_embed(e) for e in view.embeds] if view else []
        await self._send(content=text, embeds=embeds)

    async def error(self, text: str) -> None:
        await self._send(content=text)

    async def file(self, text: str, filename: str, data: bytes) -> None:
        await self._send(content=text, file=discord.File(io.BytesIO(data), filename=filename))

    async def _send(self, **kwargs) -> None:
        kwargs["ephemeral"] = self.interaction.guild_id is not None
        with platform_errors("reply"):
            if self.interaction.response.is_done():
                await self.interaction.followup.send(**kwargs)
            else:
                await self.interaction.response.send_message(**kwargs)
