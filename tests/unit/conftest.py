"""
Shared fixtures: an in-memory chat gateway and a throwaway SQLite database.
"""

import asyncio
import itertools
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

import pytest
import pytest_asyncio

from signup_bot.board import BoardReconciler
from signup_bot.config import BotConfig, ConversationConfig
from signup_bot.conversation import ConversationManager, EventCollector
from signup_bot.data import RepositoryFactory, run_migrations
from signup_bot.exceptions import GatewayForbidden, GatewayNotFound
from signup_bot.flow_logging import OperatorLog
from signup_bot.gateway import ChannelRef, ChatGateway, InteractionEvent, MessageRef, MessageView, Responder
from signup_bot.interactions import FlowContext

CATEGORY_ID = 500


@dataclass
class FakeChannel:
    id: int
    name: str
    category_id: Optional[int] = None
    position: int = 0


@dataclass
class FakeMessage:
    id: int
    channel_id: int
    view: MessageView


class FakeGateway(ChatGateway):
    """Keeps channels and messages in dicts. Ids only ever increase.

    Channel positions follow the platform: creating a channel never shifts
    its siblings, a category lists its channels by ``(position, id)`` and a
    move renumbers the whole category.
    """

    def __init__(self):
        super().__init__(EventCollector())
        self._ids = itertools.count(1000)
        self.channels: Dict[int, FakeChannel] = {}
        self.deleted_channels: Set[int] = set()
        self.messages: Dict[int, FakeMessage] = {}
        self.private_channels: Dict[int, int] = {}
        self.member_roles: Dict[int, Set[int]] = {}
        self.no_private_channel: Set[int] = set()
        self.unknown_users: Set[int] = set()
        self.blocked_channels: Set[int] = set()
        self.status: Optional[str] = None
        self.sent = 0
        self.edited = 0

    async def send_message(self, channel_id: int, view: MessageView) -> MessageRef:
        if channel_id in self.deleted_channels:
            raise GatewayNotFound("send_message")
        if channel_id in self.blocked_channels:
            raise GatewayForbidden("send_message")
        message_id = next(self._ids)
        self.messages[message_id] = FakeMessage(message_id, channel_id, view)
        self.sent += 1
        return MessageRef(channel_id, message_id)

    async def edit_message(self, message: MessageRef, view: MessageView) -> None:
        if message.id not in self.messages:
            raise GatewayNotFound("edit_message")
        self.messages[message.id].view = view
        self.edited += 1

    async def delete_message(self, message: MessageRef) -> None:
        if self.messages.pop(message.id, None) is None:
            raise GatewayNotFound("delete_message")

    async def create_channel(self, category_id: int, name: str,
                             position: Optional[int] = None) -> ChannelRef:
        if position is None:
            position = max((c.position for c in self._siblings(category_id)), default=-1) + 1
        channel = FakeChannel(next(self._ids), name, category_id, position)
        self.channels[channel.id] = channel
        return ChannelRef(channel.id, name)

    async def move_channel(self, channel_id: int, after_channel_id: Optional[int] = None) -> None:
        channel = self.channels.get(channel_id)
        if channel is None:
            raise GatewayNotFound("move_channel")
        siblings = [c for c in self._siblings(channel.category_id) if c.id != channel_id]
        if after_channel_id is None:
            index = 0
        else:
            ids = [c.id for c in siblings]
            if after_channel_id not in ids:
                raise GatewayNotFound("move_channel")
            index = ids.index(after_channel_id) + 1
        siblings.insert(index, channel)
        for position, sibling in enumerate(siblings):
            sibling.position = position

    async def delete_channel(self, channel_id: int) -> None:
        if self.channels.pop(channel_id, None) is None:
            raise GatewayNotFound("delete_channel")
        self.deleted_channels.add(channel_id)
        for message_id in [m.id for m in self.messages.values() if m.channel_id == channel_id]:
            del self.messages[message_id]

    async def list_category_channels(self, category_id: int) -> List[ChannelRef]:
        return [ChannelRef(c.id, c.name) for c in self._siblings(category_id)]

    async def open_private_channel(self, user_id: int) -> ChannelRef:
        if user_id in self.no_private_channel:
            raise GatewayForbidden("open_private_channel")
        if user_id not in self.private_channels:
            self.private_channels[user_id] = next(self._ids)
        return ChannelRef(self.private_channels[user_id])

    async def member_has_any_role(self, user_id: int, role_ids: Sequence[int]) -> bool:
        return bool(self.member_roles.get(user_id, set()) & set(role_ids))

    async def user_name(self, user_id: int) -> str:
        if user_id in self.unknown_users:
            raise GatewayNotFound("user_name")
        return f"user{user_id}"

    async def set_status(self, text: str) -> None:
        self.status = text

    # Inspection helpers

    def _siblings(self, category_id: int) -> List[FakeChannel]:
        return sorted(
            (c for c in self.channels.values() if c.category_id == category_id),
            key=lambda c: (c.position, c.id)
        )

    def channel_names(self, category_id: int = CATEGORY_ID) -> List[str]:
        return [c.name for c in self._siblings(category_id)]

    def messages_in(self, channel_id: int) -> List[FakeMessage]:
        return sorted(
            (m for m in self.messages.values() if m.channel_id == channel_id),
            key=lambda m: m.id
        )

    def board_footers(self, category_id: int = CATEGORY_ID) -> List[List[str]]:
        """Embed footers per board channel, in channel then message order."""
        return [
            [m.view.embeds[0].footer for m in self.messages_in(channel.id)]
            for channel in self._siblings(category_id)
        ]

    def anchor(self, user_id: int) -> Optional[FakeMessage]:
        """Latest message in the user's private channel."""
        channel_id = self.private_channels.get(user_id)
        if channel_id is None:
            return None
        messages = self.messages_in(channel_id)
        return messages[-1] if messages else None

    # Input helpers: retry until a waiting flow accepts the event

    async def click(self, user_id: int, custom_id: str,
                    message_id: Optional[int] = None, timeout: float = 3.0) -> None:
        def event():
            target = message_id
            if target is None:
                anchor = self.anchor(user_id)
                if anchor is None:
                    return None
                target = anchor.id
            channel_id = self.messages[target].channel_id if target in self.messages else 0
            return InteractionEvent.button(user_id, channel_id, target, custom_id)
        await self._deliver(event, timeout, f"click {custom_id!r}")

    async def reply(self, user_id: int, content: str, timeout: float = 3.0) -> None:
        def event():
            channel_id = self.private_channels.get(user_id)
            if channel_id is None:
                return None
            return InteractionEvent.message(user_id, channel_id, content)
        await self._deliver(event, timeout, f"reply {content!r}")

    async def _deliver(self, build, timeout: float, what: str) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline:
            event = build()
            if event is not None and self.collector.dispatch(event):
                return
            await asyncio.sleep(0.01)
        raise AssertionError(f"Nobody accepted {what}")


class FakeResponder(Responder):
    def __init__(self):
        self.infos: List[Tuple[str, Optional[MessageView]]] = []
        self.errors: List[str] = []
        self.files: List[Tuple[str, str, bytes]] = []

    async def info(self, text: str, view: Optional[MessageView] = None) -> None:
        self.infos.append((text, view))

    async def error(self, text: str) -> None:
        self.errors.append(text)

    async def file(self, text: str, filename: str, data: bytes) -> None:
        self.files.append((text, filename, data))

    @property
    def texts(self) -> List[str]:
        return [text for text, _ in self.infos]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def responder():
    return FakeResponder()


@pytest.fixture
def bot_config():
    return BotConfig(
        discord_token="a" * 30,
        main_guild_id=1,
        conversation=ConversationConfig(
            timeout_seconds=5.0,
            selector_timeout_seconds=5.0,
            confirm_timeout_seconds=5.0
        )
    )


@pytest_asyncio.fixture
async def repos():
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = str(Path(tmpdir) / "signup_bot.db")
        await run_migrations(db_path)
        factory = RepositoryFactory(backend="sqlite", db_path=db_path, pool_size=3)
        try:
            yield await factory.create_repositories()
        finally:
            await factory.close()


@pytest.fixture
def ctx(gateway, repos, bot_config):
    return FlowContext(
        gateway=gateway,
        repos=repos,
        conversations=ConversationManager(gateway, config=bot_config.conversation),
        board=BoardReconciler(gateway, repos),
        config=bot_config,
        oplog=OperatorLog(gateway, repos.config)
    )
