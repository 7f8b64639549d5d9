"""
/config commands.
"""

from ..exceptions import ConfigurationError, create_error_context
from .base import FlowContext, LogTrace, Responder


async def set_board_category(ctx: FlowContext, responder: Responder, invoker_id: int,
                             trace: LogTrace, *, category_id: int) -> None:
    await ctx.board.set_category(category_id)
    trace.step(f"Board category set to {category_id}")
    await responder.info(
        f"Board category set to <#{category_id}>. Run `/board reset` to rebuild the board there."
    )


async def set_log_channel(ctx: FlowContext, responder: Responder, invoker_id: int,
                          trace: LogTrace, *, channel_id: int) -> None:
    if ctx.oplog is None:
        raise ConfigurationError(
            "Operator log is not available",
            error_code="OPLOG_UNAVAILABLE",
            context=create_error_context(user_id=invoker_id, operation="set_log_channel")
        )
    await ctx.oplog.set_channel(channel_id)
    trace.step(f"Log channel set to {channel_id}")
    await responder.info(f"Log channel set to <#{channel_id}>.")
