"""
Abstract chat platform port.

Flows, the conversation layer and the board reconciler talk to the chat
platform only through ChatGateway. Calls raise GatewayError subclasses when
the platform rejects them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Union

from .events import CollectorFilter, InteractionEvent, TimedOut
from .view import MessageView

if TYPE_CHECKING:
    from ..conversation.collector import EventCollector, InteractionStream


@dataclass(frozen=True)
class ChannelRef:
    id: int
    name: Optional[str] = None


@dataclass(frozen=True)
class MessageRef:
    channel_id: int
    id: int


class ChatGateway(ABC):
    """Operations the bot needs from the chat platform.

    Interaction waits are served by the shared EventCollector that the
    platform client feeds with inbound events.
    """

    def __init__(self, collector: 'EventCollector'):
        self.collector = collector

    @abstractmethod
    async def send_message(self, channel_id: int, view: MessageView) -> MessageRef:
        """
        Post a new message.

        Args:
            channel_id: Target channel
            view: Message content

        Returns:
            Handle of the created message
        """
        pass

    @abstractmethod
    async def edit_message(self, message: MessageRef, view: MessageView) -> None:
        """Replace the full content of a message."""
        pass

    @abstractmethod
    async def delete_message(self, message: MessageRef) -> None:
        pass

    @abstractmethod
    async def create_channel(self, category_id: int, name: str,
                             position: Optional[int] = None) -> ChannelRef:
        """
        Create a text channel inside a category.

        Args:
            category_id: Parent category
            name: Channel name
            position: Sort position; channels already at that position are
                not shifted, equal positions order by id
        """
        pass

    @abstractmethod
    async def move_channel(self, channel_id: int, after_channel_id: Optional[int] = None) -> None:
        """
        Reorder a channel inside its category.

        Args:
            channel_id: Channel to move
            after_channel_id: Sibling to place it right after; first in the
                category if None
        """
        pass

    @abstractmethod
    async def delete_channel(self, channel_id: int) -> None:
        pass

    @abstractmethod
    async def list_category_channels(self, category_id: int) -> List[ChannelRef]:
        """All text channels currently inside a category."""
        pass

    @abstractmethod
    async def open_private_channel(self, user_id: int) -> ChannelRef:
        """
        Open (or reuse) the private channel with a user.

        Raises:
            GatewayError: The channel could not be opened
        """
        pass

    @abstractmethod
    async def member_has_any_role(self, user_id: int, role_ids: Sequence[int]) -> bool:
        """Whether the user holds one of the Discord roles in the main guild."""
        pass

    @abstractmethod
    async def user_name(self, user_id: int) -> str:
        """
        Account name of a Discord user.

        Raises:
            GatewayNotFound: The user does not exist
        """
        pass

    @abstractmethod
    async def set_status(self, text: str) -> None:
        """Update the bot's presence text."""
        pass

    async def await_interaction(self, filter: CollectorFilter) -> Union[InteractionEvent, TimedOut]:
        """Wait for one matching event or ``TIMED_OUT``."""
        return await self.collector.wait_for(filter)

    def stream_interactions(self, filter: CollectorFilter) -> 'InteractionStream':
        """Matching events until the stream is closed or its deadline passes."""
        return self.collector.stream(filter)

    def message_link(self, message: MessageRef, guild_id: Optional[int] = None) -> str:
        scope = guild_id if guild_id is not None else "@me"
        return f"https://discord.com/channels/{scope}/{message.channel_id}/{message.id}"


class Responder(ABC):
    """Replies to the interaction or command that started a flow."""

    @abstractmethod
    async def info(self, text: str, view: Optional[MessageView] = None) -> None:
        """Informational reply, ephemeral in public channels."""
        pass

    @abstractmethod
    async def error(self, text: str) -> None:
        pass

    @abstractmethod
    async def file(self, text: str, filename: str, data: bytes) -> None:
        """Reply with a file attached, e.g. an export."""
        pass
