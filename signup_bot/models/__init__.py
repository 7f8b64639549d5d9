"""
Data models module for Signup Bot.

Domain records are immutable snapshots loaded from the repositories.
"""

from .base import BaseModel
from .training import (
    Training, TrainingState, TrainingBoss, ACTIVE_STATES, title_sort_value
)
from .user import User, GW2_ACCOUNT_PATTERN, is_valid_gw2_id
from .role import Role, Tier
from .signup import Signup
from .board import BoardState, BoardMessage

__all__ = [
    'BaseModel',
    'Training',
    'TrainingState',
    'TrainingBoss',
    'ACTIVE_STATES',
    'title_sort_value',
    'User',
    'GW2_ACCOUNT_PATTERN',
    'is_valid_gw2_id',
    'Role',
    'Tier',
    'Signup',
    'BoardState',
    'BoardMessage',
]
