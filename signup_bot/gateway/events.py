"""
Inbound interaction events and the filters collectors match them with.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple


class EventKind(Enum):
    """Kind of an inbound platform event."""
    BUTTON = "button"
    SELECT = "select"
    REACTION = "reaction"
    MESSAGE = "message"


@dataclass(frozen=True)
class InteractionEvent:
    """A platform event reduced to what flows and collectors need.

    ``custom_id`` is set for buttons and select menus, ``emoji`` for
    reactions and ``content`` for plain messages.
    """
    kind: EventKind
    user_id: int
    channel_id: int
    message_id: Optional[int] = None
    guild_id: Optional[int] = None
    custom_id: Optional[str] = None
    values: Tuple[str, ...] = ()
    emoji: Optional[str] = None
    content: Optional[str] = None
    raw: Any = field(default=None, compare=False, repr=False)

    @property
    def key(self) -> Optional[str]:
        """The value a collector matches identifiers against."""
        return _KEY_BY_KIND[self.kind](self)

    @property
    def in_private_channel(self) -> bool:
        return self.guild_id is None

    @classmethod
    def button(cls, user_id: int, channel_id: int, message_id: int, custom_id: str,
               guild_id: Optional[int] = None, raw: Any = None) -> 'InteractionEvent':
        return cls(EventKind.BUTTON, user_id, channel_id, message_id, guild_id,
                   custom_id=custom_id, raw=raw)

    @classmethod
    def reaction(cls, user_id: int, channel_id: int, message_id: int, emoji: str,
                 guild_id: Optional[int] = None, raw: Any = None) -> 'InteractionEvent':
        return cls(EventKind.REACTION, user_id, channel_id, message_id, guild_id,
                   emoji=emoji, raw=raw)

    @classmethod
    def message(cls, user_id: int, channel_id: int, content: str,
                message_id: Optional[int] = None, guild_id: Optional[int] = None,
                raw: Any = None) -> 'InteractionEvent':
        return cls(EventKind.MESSAGE, user_id, channel_id, message_id, guild_id,
                   content=content, raw=raw)


_KEY_BY_KIND: Dict[EventKind, Callable[[InteractionEvent], Optional[str]]] = {
    EventKind.BUTTON: lambda event: event.custom_id,
    EventKind.SELECT: lambda event: event.custom_id,
    EventKind.REACTION: lambda event: event.emoji,
    EventKind.MESSAGE: lambda event: None,
}


class TimedOut:
    """Result of a wait that ended without a matching event."""

    _instance: Optional['TimedOut'] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "TIMED_OUT"


TIMED_OUT = TimedOut()


@dataclass(frozen=True)
class CollectorFilter:
    """Which events a single wait accepts, and for how long it waits.

    Unset fields match anything. ``custom_ids`` is compared with
    ``InteractionEvent.key``. ``timeout`` is in seconds; None waits forever.
    """
    author_id: Optional[int] = None
    channel_id: Optional[int] = None
    message_id: Optional[int] = None
    kinds: FrozenSet[EventKind] = frozenset()
    custom_ids: Optional[FrozenSet[str]] = None
    predicate: Optional[Callable[[InteractionEvent], bool]] = None
    timeout: Optional[float] = 60.0

    def matches(self, event: InteractionEvent) -> bool:
        if self.kinds and event.kind not in self.kinds:
            return False
        if self.author_id is not None and event.user_id != self.author_id:
            return False
        if self.channel_id is not None and event.channel_id != self.channel_id:
            return False
        if self.message_id is not None and event.message_id != self.message_id:
            return False
        if self.custom_ids is not None and event.key not in self.custom_ids:
            return False
        if self.predicate is not None and not self.predicate(event):
            return False
        return True
