"""
/board commands.
"""

from .base import FlowContext, LogTrace, Responder


async def reset_board(ctx: FlowContext, responder: Responder, invoker_id: int,
                      trace: LogTrace) -> None:
    report = await ctx.board.full_reset()
    trace.step(f"Board reset: {report.summary()}")
    await responder.info(
        f"Board rebuilt: {report.channels_created} channel(s), {report.messages_created} message(s)."
    )


async def refresh_board(ctx: FlowContext, responder: Responder, invoker_id: int,
                        trace: LogTrace) -> None:
    report = await ctx.board.refresh()
    trace.step(f"Board refreshed: {report.summary()}")
    await responder.info(f"Board refreshed: {report.summary()}.")
