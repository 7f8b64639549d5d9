"""
Repository and board exceptions.
"""

from typing import Optional

from .base import SignupBotException, ErrorContext


class RepositoryError(SignupBotException):
    def __init__(self, message: str, error_code: str = "REPOSITORY_ERROR",
                 context: Optional[ErrorContext] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message, error_code, context, retryable=True, cause=cause)


class NotFoundError(RepositoryError):
    """A mutation targeted a row that does not exist."""

    def __init__(self, entity: str, key, context: Optional[ErrorContext] = None):
        super().__init__(f"{entity} {key!r} not found", "NOT_FOUND", context)
        self.entity = entity
        self.key = key
        self.user_message = f"{entity} `{key}` not found."


class BoardError(SignupBotException):
    def __init__(self, message: str, error_code: str = "BOARD_ERROR",
                 context: Optional[ErrorContext] = None,
                 user_message: Optional[str] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message, error_code, context, user_message, cause=cause)


class BoardNotConfigured(BoardError):
    def __init__(self, context: Optional[ErrorContext] = None):
        super().__init__(
            "Board category is not set",
            "BOARD_NOT_CONFIGURED",
            context,
            user_message="The board category is not configured. Use `/config board_category` first."
        )
