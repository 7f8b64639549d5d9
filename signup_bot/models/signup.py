"""
Sign-up model.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .base import BaseModel


@dataclass(frozen=True)
class Signup(BaseModel):
    """A user's registration for one training."""
    id: int
    user_id: int
    training_id: int
    comment: Optional[str] = None
    role_ids: Tuple[int, ...] = field(default_factory=tuple)
    boss_preference_ids: Tuple[int, ...] = field(default_factory=tuple)
