"""
Chat platform exceptions.
"""

from typing import Optional

from .base import SignupBotException, ErrorContext


class GatewayError(SignupBotException):
    """A call to the chat platform failed."""

    def __init__(self, operation: str, details: str,
                 context: Optional[ErrorContext] = None,
                 cause: Optional[BaseException] = None,
                 error_code: str = "GATEWAY_ERROR",
                 retryable: bool = True):
        super().__init__(
            message=f"{operation} failed: {details}",
            error_code=error_code,
            context=context,
            retryable=retryable,
            cause=cause
        )
        self.operation = operation


class GatewayForbidden(GatewayError):
    def __init__(self, operation: str, details: str = "forbidden",
                 context: Optional[ErrorContext] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(operation, details, context, cause,
                         error_code="GATEWAY_FORBIDDEN", retryable=False)


class GatewayNotFound(GatewayError):
    def __init__(self, operation: str, details: str = "not found",
                 context: Optional[ErrorContext] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(operation, details, context, cause,
                         error_code="GATEWAY_NOT_FOUND", retryable=False)
