"""
Board button flows.

``BUTTON_HANDLERS`` maps every board button action to its flow; the bot calls
``handle_board_button`` for component interactions no collector claimed.
"""

import logging
from functools import partial
from typing import Awaitable, Callable, Dict, Optional

from ..board.actions import ButtonAction, parse_action
from ..gateway.base import Responder
from ..flow_logging import FlowInfo, FlowKind, FlowResult, LogTrace, run_flow
from .context import FlowContext
from .overview import list_signups, register_info
from .signup import comment_signup, edit_signup, join_training, leave_training

logger = logging.getLogger(__name__)

ButtonHandler = Callable[[FlowContext, Responder, int, Optional[int], LogTrace], Awaitable[None]]

BUTTON_HANDLERS: Dict[ButtonAction, ButtonHandler] = {
    ButtonAction.JOIN: join_training,
    ButtonAction.EDIT: edit_signup,
    ButtonAction.LEAVE: leave_training,
    ButtonAction.COMMENT: comment_signup,
    ButtonAction.LIST: list_signups,
    ButtonAction.REGISTER_INFO: register_info,
}


async def handle_board_button(ctx: FlowContext, responder: Responder,
                              user_id: int, custom_id: str) -> Optional[FlowResult]:
    """
    Run the flow of a board button.

    Returns:
        The flow result, None if ``custom_id`` is not a board button
    """
    parsed = parse_action(custom_id)
    if parsed is None:
        return None
    action, training_id = parsed

    name = action.name.replace("_", " ").title()
    if training_id is not None:
        name = f"{name} training {training_id}"
    handler = BUTTON_HANDLERS[action]
    return await run_flow(
        FlowInfo(FlowKind.BUTTON, name, user_id),
        partial(handler, ctx, responder, user_id, training_id),
        oplog=ctx.oplog,
        responder=responder
    )


__all__ = [
    'FlowContext',
    'BUTTON_HANDLERS',
    'handle_board_button',
]
