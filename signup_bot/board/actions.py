"""
Custom ids of the buttons shown on board messages.

Training buttons carry the training id: ``training:<action>:<id>``.
"""

from enum import Enum
from typing import Optional, Tuple

TRAINING_PREFIX = "training"
OVERVIEW_PREFIX = "overview"


class ButtonAction(Enum):
    JOIN = "join"
    EDIT = "edit"
    LEAVE = "leave"
    COMMENT = "comment"
    LIST = "list"
    REGISTER_INFO = "register"

    @property
    def needs_training(self) -> bool:
        return self not in (ButtonAction.LIST, ButtonAction.REGISTER_INFO)


def action_id(action: ButtonAction, training_id: Optional[int] = None) -> str:
    if action.needs_training:
        if training_id is None:
            raise ValueError(f"{action.name} needs a training id")
        return f"{TRAINING_PREFIX}:{action.value}:{training_id}"
    return f"{OVERVIEW_PREFIX}:{action.value}"


def parse_action(custom_id: str) -> Optional[Tuple[ButtonAction, Optional[int]]]:
    """Inverse of ``action_id``; None for ids that are not board buttons."""
    parts = custom_id.split(":")
    try:
        if len(parts) == 3 and parts[0] == TRAINING_PREFIX:
            action = ButtonAction(parts[1])
            if action.needs_training:
                return action, int(parts[2])
        elif len(parts) == 2 and parts[0] == OVERVIEW_PREFIX:
            action = ButtonAction(parts[1])
            if not action.needs_training:
                return action, None
    except ValueError:
        return None
    return None
