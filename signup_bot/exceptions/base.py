"""
Base exception classes for Signup Bot.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class ErrorContext:
    """Where an error happened."""
    user_id: Optional[int] = None
    guild_id: Optional[int] = None
    channel_id: Optional[int] = None
    training_id: Optional[int] = None
    operation: Optional[str] = None
    additional: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "user_id": self.user_id,
            "guild_id": self.guild_id,
            "channel_id": self.channel_id,
            "training_id": self.training_id,
            "operation": self.operation,
            "timestamp": self.timestamp.isoformat(),
        }
        data.update(self.additional)
        return {k: v for k, v in data.items() if v is not None}


def create_error_context(**kwargs) -> ErrorContext:
    """Build an ErrorContext, moving unknown keys into ``additional``."""
    known = {"user_id", "guild_id", "channel_id", "training_id", "operation"}
    context = ErrorContext(**{k: v for k, v in kwargs.items() if k in known})
    context.additional = {k: v for k, v in kwargs.items() if k not in known}
    return context


class SignupBotException(Exception):
    """Base exception for every error raised by the bot.

    Attributes:
        message: Internal description, goes to logs
        error_code: Stable identifier for the error kind
        context: Where the error happened
        user_message: Text safe to show to the Discord user
        retryable: Whether repeating the operation may succeed
        cause: Underlying exception, if any
    """

    # Control outcomes end a flow normally and are never reported as failures
    control_outcome = False

    def __init__(self,
                 message: str,
                 error_code: str,
                 context: Optional[ErrorContext] = None,
                 user_message: Optional[str] = None,
                 retryable: bool = False,
                 cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or ErrorContext()
        self.user_message = user_message
        self.retryable = retryable
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.get_user_response(),
            "retryable": self.retryable,
            "control_outcome": self.control_outcome,
            "context": self.context.to_dict(),
            "cause": repr(self.cause) if self.cause else None,
        }

    def to_log_string(self) -> str:
        """Single line representation for log output."""
        parts = [f"[{self.error_code}] {self.message}"]
        context = self.context.to_dict()
        context.pop("timestamp", None)
        if context:
            parts.append(" ".join(f"{k}={v}" for k, v in context.items()))
        if self.cause is not None:
            parts.append(f"cause={type(self.cause).__name__}: {self.cause}")
        return " | ".join(parts)

    def get_user_response(self) -> str:
        """Text for the user, falling back to a generic apology."""
        if self.user_message:
            return self.user_message
        return "Unexpected error 😵 The issue was reported, please try again later."


class UnexpectedError(SignupBotException):
    """Wraps exceptions that are not part of the bot's own hierarchy."""

    def __init__(self, cause: BaseException, context: Optional[ErrorContext] = None):
        super().__init__(
            message=f"{type(cause).__name__}: {cause}",
            error_code="UNEXPECTED_ERROR",
            context=context,
            cause=cause
        )


class ConfigurationError(SignupBotException):
    """Invalid or missing configuration."""

    def __init__(self, message: str, error_code: str = "CONFIGURATION_ERROR",
                 context: Optional[ErrorContext] = None,
                 user_message: Optional[str] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message, error_code, context, user_message, cause=cause)


def handle_unexpected_error(error: BaseException,
                            context: Optional[ErrorContext] = None) -> SignupBotException:
    """Return ``error`` unchanged if it is already a SignupBotException, wrap it otherwise."""
    if isinstance(error, SignupBotException):
        return error
    return UnexpectedError(error, context)
