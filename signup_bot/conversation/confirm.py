"""
Confirm/Abort micro-workflow.
"""

from enum import Enum
from typing import Optional, Tuple

from ..gateway.base import ChatGateway, MessageRef
from ..gateway.events import CollectorFilter, EventKind, TIMED_OUT
from ..gateway.view import ButtonSpec, ButtonStyle, MessageView

CONFIRM_ID = "confirm"
ABORT_ID = "abort"


class ConfirmOutcome(Enum):
    CONFIRMED = "confirmed"
    ABORTED = "aborted"
    TIMED_OUT = "timed_out"


def confirm_abort_row(confirm_label: str = "Confirm",
                      abort_label: str = "Abort") -> Tuple[ButtonSpec, ...]:
    """The canonical Confirm/Abort button row."""
    return (
        ButtonSpec(CONFIRM_ID, confirm_label, ButtonStyle.SUCCESS, emoji="✅"),
        ButtonSpec(ABORT_ID, abort_label, ButtonStyle.DANGER, emoji="❌"),
    )


async def confirm_abort(gateway: ChatGateway,
                        message: MessageRef,
                        author_id: int,
                        view: MessageView,
                        timeout: Optional[float] = 60.0) -> ConfirmOutcome:
    """Show ``view`` with a Confirm/Abort row on ``message`` and wait for the author's choice.

    Args:
        gateway: Chat gateway used to edit the message and wait
        message: Message that carries the buttons
        author_id: Only this user's clicks count
        view: Content shown above the buttons
        timeout: Seconds to wait for a click

    Returns:
        CONFIRMED, ABORTED or TIMED_OUT
    """
    await gateway.edit_message(message, view.with_rows(confirm_abort_row()))

    event = await gateway.await_interaction(CollectorFilter(
        author_id=author_id,
        message_id=message.id,
        kinds=frozenset({EventKind.BUTTON}),
        custom_ids=frozenset({CONFIRM_ID, ABORT_ID}),
        timeout=timeout
    ))

    if event is TIMED_OUT:
        return ConfirmOutcome.TIMED_OUT
    if event.custom_id == CONFIRM_ID:
        return ConfirmOutcome.CONFIRMED
    return ConfirmOutcome.ABORTED
