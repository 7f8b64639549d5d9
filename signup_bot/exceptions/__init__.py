"""
Exception hierarchy for Signup Bot.
"""

from .base import (
    SignupBotException, UnexpectedError, ConfigurationError, ErrorContext,
    create_error_context, handle_unexpected_error
)
from .conversation import (
    FlowOutcome, ConversationLocked, ConversationTimedOut, ConversationAborted,
    NotRegistered, TrainingNotOpen, NotSignedUp, AlreadySignedUp,
    TierRequirementFailed, InvalidInput, PermissionDenied,
    ConversationError, NoPrivateChannel, ChannelBlocked
)
from .gateway import GatewayError, GatewayForbidden, GatewayNotFound
from .storage import RepositoryError, NotFoundError, BoardError, BoardNotConfigured

__all__ = [
    'SignupBotException',
    'UnexpectedError',
    'ConfigurationError',
    'ErrorContext',
    'create_error_context',
    'handle_unexpected_error',

    # Control outcomes
    'FlowOutcome',
    'ConversationLocked',
    'ConversationTimedOut',
    'ConversationAborted',
    'NotRegistered',
    'TrainingNotOpen',
    'NotSignedUp',
    'AlreadySignedUp',
    'TierRequirementFailed',
    'InvalidInput',
    'PermissionDenied',

    # Transient faults
    'ConversationError',
    'NoPrivateChannel',
    'ChannelBlocked',
    'GatewayError',
    'GatewayForbidden',
    'GatewayNotFound',
    'RepositoryError',
    'NotFoundError',
    'BoardError',
    'BoardNotConfigured',
]
