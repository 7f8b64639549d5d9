"""
Conversation and sign-up flow exceptions.

Most of these are control outcomes: they end a flow with an informational
reply and are not failures.
"""

from typing import Optional

from .base import SignupBotException, ErrorContext


class FlowOutcome(SignupBotException):
    """A flow ended early for an expected, user-facing reason."""

    control_outcome = True

    def __init__(self, user_message: str, error_code: str,
                 context: Optional[ErrorContext] = None):
        super().__init__(
            message=user_message,
            error_code=error_code,
            context=context,
            user_message=user_message
        )


class ConversationLocked(FlowOutcome):
    """The user already has an active conversation."""

    def __init__(self, user_id: int, context: Optional[ErrorContext] = None):
        super().__init__(
            "You already have an active conversation. Finish or abort it first.",
            "CONVERSATION_LOCKED",
            context
        )
        self.user_id = user_id


class ConversationTimedOut(FlowOutcome):
    def __init__(self, context: Optional[ErrorContext] = None):
        super().__init__("Timed out ⏱️", "CONVERSATION_TIMED_OUT", context)


class ConversationAborted(FlowOutcome):
    def __init__(self, context: Optional[ErrorContext] = None):
        super().__init__("Aborted ❌", "CONVERSATION_ABORTED", context)


class NotRegistered(FlowOutcome):
    def __init__(self, context: Optional[ErrorContext] = None):
        super().__init__(
            "Not yet registered. Please use `/register` first.",
            "NOT_REGISTERED",
            context
        )


class TrainingNotOpen(FlowOutcome):
    def __init__(self, training_id: int, context: Optional[ErrorContext] = None):
        super().__init__(
            "This training is not open for sign up right now.",
            "TRAINING_NOT_OPEN",
            context
        )
        self.training_id = training_id


class NotSignedUp(FlowOutcome):
    def __init__(self, context: Optional[ErrorContext] = None):
        super().__init__("You are not signed up for this training.", "NOT_SIGNED_UP", context)


class AlreadySignedUp(FlowOutcome):
    def __init__(self, context: Optional[ErrorContext] = None):
        super().__init__(
            "You are already signed up for this training. Use Edit to change your roles.",
            "ALREADY_SIGNED_UP",
            context
        )


class TierRequirementFailed(FlowOutcome):
    def __init__(self, tier_name: str, context: Optional[ErrorContext] = None):
        super().__init__(
            f"Tier requirement not passed! Required tier: {tier_name}",
            "TIER_REQUIREMENT_FAILED",
            context
        )
        self.tier_name = tier_name


class PermissionDenied(FlowOutcome):
    def __init__(self, context: Optional[ErrorContext] = None):
        super().__init__(
            "You are not allowed to use this command.",
            "PERMISSION_DENIED",
            context
        )


class InvalidInput(FlowOutcome):
    """User supplied input failed validation."""

    def __init__(self, user_message: str, context: Optional[ErrorContext] = None):
        super().__init__(user_message, "INVALID_INPUT", context)


class ConversationError(SignupBotException):
    """A conversation could not be set up."""


class NoPrivateChannel(ConversationError):
    def __init__(self, user_id: int, context: Optional[ErrorContext] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(
            message=f"Could not open a private channel with user {user_id}",
            error_code="NO_PRIVATE_CHANNEL",
            context=context,
            user_message="Failed to open a private channel with you.",
            retryable=True,
            cause=cause
        )
        self.user_id = user_id


class ChannelBlocked(ConversationError):
    def __init__(self, user_id: int, context: Optional[ErrorContext] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(
            message=f"Private channel with user {user_id} rejected a message",
            error_code="CHANNEL_BLOCKED",
            context=context,
            user_message="Could not send you a private message. Please check your privacy settings.",
            retryable=True,
            cause=cause
        )
        self.user_id = user_id
