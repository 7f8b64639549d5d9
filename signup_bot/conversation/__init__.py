"""
Private conversations and the input collection workflows built on them.
"""

from .session_lock import SessionLock
from .collector import EventCollector, InteractionStream
from .confirm import ConfirmOutcome, confirm_abort, confirm_abort_row, CONFIRM_ID, ABORT_ID
from .selector import (
    PagedSelector, SelectorConfig, SelectorItem, SelectionState, SelectionResult, SelectorOutcome,
    ITEM_PREFIX, PAGE_PREV_ID, PAGE_NEXT_ID
)
from .conversation import Conversation, ConversationManager

__all__ = [
    'SessionLock',
    'EventCollector',
    'InteractionStream',
    'ConfirmOutcome',
    'confirm_abort',
    'confirm_abort_row',
    'CONFIRM_ID',
    'ABORT_ID',
    'PagedSelector',
    'SelectorConfig',
    'SelectorItem',
    'SelectionState',
    'SelectionResult',
    'SelectorOutcome',
    'ITEM_PREFIX',
    'PAGE_PREV_ID',
    'PAGE_NEXT_ID',
    'Conversation',
    'ConversationManager',
]
