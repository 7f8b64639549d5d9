"""
Board state: which channel holds which day and which message shows which training.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from .base import BaseModel


@dataclass
class BoardMessage(BaseModel):
    """One training message on the board."""
    message_id: int
    channel_id: int
    training_id: int
    day: date
    fingerprint: str


@dataclass
class BoardState(BaseModel):
    """In-memory mapping of the board, persisted by the BoardRepository."""
    category_id: Optional[int] = None
    channels: Dict[date, int] = field(default_factory=dict)
    messages: Dict[int, BoardMessage] = field(default_factory=dict)

    def message_for_training(self, training_id: int) -> Optional[BoardMessage]:
        for message in self.messages.values():
            if message.training_id == training_id:
                return message
        return None

    def messages_for_day(self, day: date) -> List[BoardMessage]:
        """Messages of a day in the order they were posted."""
        return sorted(
            (m for m in self.messages.values() if m.day == day),
            key=lambda m: m.message_id
        )

    def tracked_training_ids(self) -> List[int]:
        return sorted(m.training_id for m in self.messages.values())

    def reset(self) -> None:
        self.channels.clear()
        self.messages.clear()
