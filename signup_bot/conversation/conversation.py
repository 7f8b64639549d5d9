"""
Exclusive private conversations between the bot and one user.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional, Sequence, Union

from ..config.settings import ConversationConfig
from ..exceptions import (
    ConversationLocked, NoPrivateChannel, ChannelBlocked, GatewayError, create_error_context
)
from ..gateway.base import ChatGateway, ChannelRef, MessageRef
from ..gateway.events import (
    CollectorFilter, EventKind, InteractionEvent, TimedOut, TIMED_OUT
)
from ..gateway.view import MessageView
from .collector import InteractionStream
from .confirm import ConfirmOutcome, confirm_abort
from .selector import PagedSelector, SelectionResult, SelectorConfig, SelectorItem
from .session_lock import SessionLock

logger = logging.getLogger(__name__)

PLACEHOLDER_VIEW = MessageView.info("Loading...")

_DEFAULT = object()


class Conversation:
    """A user's private channel, its anchor message and their session lock entry.

    The lock entry is released exactly once, by ``finish``, ``abort`` or
    leaving the ``async with`` block, whichever happens first.
    """

    def __init__(self, manager: 'ConversationManager', user_id: int,
                 channel: ChannelRef, message: MessageRef):
        self.manager = manager
        self.user_id = user_id
        self.channel = channel
        self.message = message
        self._released = False

    @property
    def gateway(self) -> ChatGateway:
        return self.manager.gateway

    @property
    def config(self) -> ConversationConfig:
        return self.manager.config

    @property
    def active(self) -> bool:
        return not self._released

    @property
    def link(self) -> str:
        return self.gateway.message_link(self.message)

    async def show(self, view: MessageView) -> None:
        """Replace the anchor message content."""
        await self.gateway.edit_message(self.message, view)

    def filter(self, *, kinds: Iterable[EventKind] = (EventKind.BUTTON,),
               custom_ids: Optional[Iterable[str]] = None,
               on_message: bool = True,
               predicate=None,
               timeout=_DEFAULT) -> CollectorFilter:
        """A filter scoped to this conversation's author and channel."""
        return CollectorFilter(
            author_id=self.user_id,
            channel_id=self.channel.id,
            message_id=self.message.id if on_message else None,
            kinds=frozenset(kinds),
            custom_ids=frozenset(custom_ids) if custom_ids is not None else None,
            predicate=predicate,
            timeout=self.config.timeout_seconds if timeout is _DEFAULT else timeout
        )

    async def await_interaction(self, custom_ids: Optional[Iterable[str]] = None,
                                predicate=None,
                                timeout=_DEFAULT) -> Union[InteractionEvent, TimedOut]:
        """Wait for a button on the anchor message."""
        return await self.gateway.await_interaction(
            self.filter(custom_ids=custom_ids, predicate=predicate, timeout=timeout)
        )

    def stream_interactions(self, kinds: Iterable[EventKind] = (EventKind.BUTTON,),
                            custom_ids: Optional[Iterable[str]] = None,
                            timeout=_DEFAULT) -> InteractionStream:
        return self.gateway.stream_interactions(
            self.filter(kinds=kinds, custom_ids=custom_ids, timeout=timeout)
        )

    async def await_reply(self, timeout=_DEFAULT) -> Optional[str]:
        """Wait for the user's next text message in the private channel.

        Returns:
            The message content, None on timeout
        """
        event = await self.gateway.await_interaction(
            self.filter(kinds=(EventKind.MESSAGE,), on_message=False, timeout=timeout)
        )
        if event is TIMED_OUT:
            return None
        return event.content

    async def confirm(self, view: MessageView, timeout=_DEFAULT) -> ConfirmOutcome:
        return await confirm_abort(
            self.gateway,
            self.message,
            self.user_id,
            view,
            self.config.confirm_timeout_seconds if timeout is _DEFAULT else timeout
        )

    async def select(self, items: Sequence[SelectorItem],
                     config: Optional[SelectorConfig] = None,
                     pre_selected: Iterable[str] = ()) -> SelectionResult:
        """Run a PagedSelector on the anchor message."""
        if config is None:
            config = self.manager.selector_config()
        selector = PagedSelector(
            self.gateway, self.message, self.user_id, items, config, pre_selected
        )
        return await selector.run()

    def finish(self) -> None:
        self._release()

    def abort(self) -> None:
        self._release()

    def _release(self) -> None:
        if self._released:
            return
        self._released = True
        self.manager.lock.release(self.user_id)
        logger.debug(f"Conversation with user {self.user_id} ended")

    async def __aenter__(self) -> 'Conversation':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self._release()


class ConversationManager:
    """Starts conversations and owns the session lock they share."""

    def __init__(self, gateway: ChatGateway,
                 lock: Optional[SessionLock] = None,
                 config: Optional[ConversationConfig] = None):
        self.gateway = gateway
        self.lock = lock or SessionLock()
        self.config = config or ConversationConfig()

    def selector_config(self, **overrides) -> SelectorConfig:
        """Selector settings from the conversation config, with overrides."""
        values = {
            "items_per_row": self.config.items_per_row,
            "rows_per_page": self.config.rows_per_page,
            "timeout": self.config.selector_timeout_seconds,
        }
        values.update(overrides)
        return SelectorConfig(**values)

    async def start(self, user_id: int, view: Optional[MessageView] = None) -> Conversation:
        """
        Lock the user, open their private channel and post the anchor message.

        Args:
            user_id: Discord user id
            view: Initial anchor content, a placeholder if None

        Returns:
            The conversation; use it as an async context manager

        Raises:
            ConversationLocked: The user already has a conversation
            NoPrivateChannel: The private channel could not be opened
            ChannelBlocked: The private channel rejected the anchor message
        """
        context = create_error_context(user_id=user_id, operation="start_conversation")
        if not self.lock.try_acquire(user_id):
            raise ConversationLocked(user_id, context=context)

        try:
            try:
                channel = await self.gateway.open_private_channel(user_id)
            except GatewayError as e:
                raise NoPrivateChannel(user_id, context=context, cause=e)

            try:
                message = await self.gateway.send_message(channel.id, view or PLACEHOLDER_VIEW)
            except GatewayError as e:
                raise ChannelBlocked(user_id, context=context, cause=e)
        except BaseException:
            self.lock.release(user_id)
            raise

        logger.debug(f"Conversation with user {user_id} started")
        return Conversation(self, user_id, channel, message)

    @asynccontextmanager
    async def open(self, user_id: int,
                   view: Optional[MessageView] = None) -> AsyncIterator[Conversation]:
        """``start`` as an async context manager that ends the conversation on exit."""
        conversation = await self.start(user_id, view)
        async with conversation:
            yield conversation

    @property
    def active_count(self) -> int:
        return len(self.lock)
