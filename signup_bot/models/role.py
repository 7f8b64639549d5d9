"""
Training role and tier models.
"""

from dataclasses import dataclass, field
from typing import Tuple

from .base import BaseModel


@dataclass(frozen=True)
class Role(BaseModel):
    """A role users can pick when signing up, e.g. healer or DPS.

    ``priority`` ranges from 0 to 4; lower values are listed first.
    """
    id: int
    title: str
    repr: str
    emoji: str
    priority: int = 2
    active: bool = True

    def sort_key(self):
        return (self.priority, self.title)

    @property
    def label(self) -> str:
        return f"{self.emoji} {self.title}".strip()


@dataclass(frozen=True)
class Tier(BaseModel):
    """A named access requirement backed by one or more Discord roles."""
    id: int
    name: str
    discord_role_ids: Tuple[int, ...] = field(default_factory=tuple)
