"""
Flow boundary and operator log channel.

Every button, command and scheduled job runs through ``run_flow``. It
records the steps taken, turns exceptions into replies and posts a summary to
the operator log channel.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from .data.base import ConfigRepository
from .exceptions import SignupBotException, create_error_context, handle_unexpected_error
from .gateway.base import ChatGateway, Responder
from .gateway.view import EmbedField, EmbedSpec, MessageView

logger = logging.getLogger(__name__)

LOG_CHANNEL_KEY = "log_channel_id"
MAX_TRACE_STEPS = 25

COLOR_SUCCESS = 0x2ECC71
COLOR_INFO = 0x3498DB
COLOR_FAILURE = 0xE74C3C


class FlowKind(Enum):
    BUTTON = "Button"
    COMMAND = "Slash Command"
    EVENT = "Event"
    AUTOMATIC = "Automatic"


class FlowResult(Enum):
    SUCCESS = "success"
    INFO = "info"
    FAILURE = "failure"


@dataclass(frozen=True)
class FlowInfo:
    kind: FlowKind
    name: str
    user_id: Optional[int] = None

    def describe(self) -> str:
        who = f" by user {self.user_id}" if self.user_id is not None else ""
        return f"{self.kind.value} '{self.name}'{who}"


class LogTrace:
    """Ordered list of the steps a flow went through."""

    def __init__(self, info: FlowInfo):
        self.info = info
        self.steps: List[str] = []

    def step(self, text: str) -> None:
        self.steps.append(text)
        logger.debug(f"[{self.info.name}] {text}")

    def render(self) -> str:
        steps = self.steps[-MAX_TRACE_STEPS:]
        skipped = len(self.steps) - len(steps)
        lines = [f"{skipped + i + 1}. {s}" for i, s in enumerate(steps)]
        if skipped:
            lines.insert(0, f"... {skipped} earlier step(s)")
        return "\n".join(lines) or "No steps recorded"


class OperatorLog:
    """Posts flow summaries to the configured log channel."""

    def __init__(self, gateway: ChatGateway, config: ConfigRepository):
        self.gateway = gateway
        self.config = config

    async def channel_id(self) -> Optional[int]:
        value = await self.config.get_value(LOG_CHANNEL_KEY)
        return int(value) if value else None

    async def set_channel(self, channel_id: int) -> None:
        await self.config.set_value(LOG_CHANNEL_KEY, str(channel_id))

    async def report(self, trace: LogTrace, result: FlowResult,
                     error: Optional[SignupBotException] = None) -> None:
        channel_id = await self.channel_id()
        if channel_id is None:
            return

        info = trace.info
        color = {
            FlowResult.SUCCESS: COLOR_SUCCESS,
            FlowResult.INFO: COLOR_INFO,
            FlowResult.FAILURE: COLOR_FAILURE,
        }[result]
        fields = [EmbedField("Kind", info.kind.value, inline=True)]
        if info.user_id is not None:
            fields.append(EmbedField("User", f"<@{info.user_id}>", inline=True))
        fields.append(EmbedField("Trace", f"```\n{trace.render()[:1000]}\n```"))
        if error is not None:
            fields.append(EmbedField("Error", f"`{error.to_log_string()[:1000]}`"))

        view = MessageView(embeds=(EmbedSpec(
            title=f"{info.name} ({result.value})",
            fields=tuple(fields),
            color=color
        ),))
        try:
            await self.gateway.send_message(channel_id, view)
        except SignupBotException as e:
            logger.warning(f"Could not post to the log channel: {e.to_log_string()}")


async def run_flow(info: FlowInfo,
                   flow: Callable[[LogTrace], Awaitable[None]],
                   oplog: Optional[OperatorLog] = None,
                   responder: Optional[Responder] = None,
                   report_success: bool = True) -> FlowResult:
    """Run ``flow`` and handle whatever it raises.

    Control outcomes reply with their message and are reported as info.
    Other bot errors and unexpected exceptions reply with an apology and are
    reported as failures. Cancellation propagates.

    Returns:
        How the flow ended
    """
    trace = LogTrace(info)
    try:
        await flow(trace)
    except SignupBotException as e:
        if e.control_outcome:
            logger.info(f"{info.describe()} ended: {e.error_code}")
            await _reply(responder, e.get_user_response(), failed=False)
            await _report(oplog, trace, FlowResult.INFO, e)
            return FlowResult.INFO
        logger.error(f"{info.describe()} failed: {e.to_log_string()}")
        await _reply(responder, e.get_user_response(), failed=True)
        await _report(oplog, trace, FlowResult.FAILURE, e)
        return FlowResult.FAILURE
    except Exception as e:
        error = handle_unexpected_error(
            e, create_error_context(user_id=info.user_id, operation=info.name)
        )
        logger.exception(f"{info.describe()} failed unexpectedly: {error.to_log_string()}")
        await _reply(responder, error.get_user_response(), failed=True)
        await _report(oplog, trace, FlowResult.FAILURE, error)
        return FlowResult.FAILURE

    if report_success:
        await _report(oplog, trace, FlowResult.SUCCESS)
    return FlowResult.SUCCESS


async def _reply(responder: Optional[Responder], text: str, failed: bool) -> None:
    if responder is None:
        return
    try:
        if failed:
            await responder.error(text)
        else:
            await responder.info(text)
    except SignupBotException as e:
        logger.warning(f"Could not reply to the user: {e.to_log_string()}")


async def _report(oplog: Optional[OperatorLog], trace: LogTrace, result: FlowResult,
                  error: Optional[SignupBotException] = None) -> None:
    if oplog is None:
        return
    try:
        await oplog.report(trace, result, error)
    except SignupBotException as e:
        logger.warning(f"Could not report flow '{trace.info.name}': {e.to_log_string()}")
