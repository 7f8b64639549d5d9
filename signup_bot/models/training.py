"""
Training and boss models.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from .base import BaseModel


class TrainingState(Enum):
    """Lifecycle of a training."""
    CREATED = "created"
    OPEN = "open"
    CLOSED = "closed"
    STARTED = "started"
    FINISHED = "finished"

    @property
    def is_active(self) -> bool:
        """Active trainings are shown on the board."""
        return self in ACTIVE_STATES

    @property
    def emoji(self) -> str:
        return STATE_EMOJIS[self]


ACTIVE_STATES = (TrainingState.OPEN, TrainingState.CLOSED, TrainingState.STARTED)

STATE_EMOJIS = {
    TrainingState.CREATED: "🚧",
    TrainingState.OPEN: "🟢",
    TrainingState.CLOSED: "🔒",
    TrainingState.STARTED: "🏃",
    TrainingState.FINISHED: "❌",
}


def title_sort_value(title: str) -> int:
    """Higher values are listed first within a day."""
    if "Beginner" in title:
        return 10
    if "Intermediate" in title:
        return 8
    if "Practice" in title:
        return 6
    return 0


@dataclass(frozen=True)
class Training(BaseModel):
    """A scheduled training users sign up for. ``date`` is in UTC."""
    id: int
    title: str
    date: datetime
    state: TrainingState = TrainingState.CREATED
    tier_id: Optional[int] = None

    @property
    def day(self) -> date:
        return self.date.date()

    @property
    def is_active(self) -> bool:
        return self.state.is_active

    @property
    def is_open(self) -> bool:
        return self.state is TrainingState.OPEN

    def board_sort_key(self):
        """Order of trainings on the board: by day, then title weight, then time."""
        return (self.day, -title_sort_value(self.title), self.date, self.id)


@dataclass(frozen=True)
class TrainingBoss(BaseModel):
    id: int
    repr: str
    name: str
    wing: int
    position: int
    emoji: str
    url: Optional[str] = None

    def sort_key(self):
        return (self.wing, self.position)
