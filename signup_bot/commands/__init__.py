"""
Slash command handlers.

``COMMAND_TABLE`` is the single list of commands. Keys are the full command
path (``"training add"``); the Discord command tree is built from it.
"""

from typing import Dict

from ..exceptions import ConfigurationError, PermissionDenied, create_error_context
from ..flow_logging import FlowInfo, FlowKind, FlowResult, LogTrace, run_flow
from .base import CommandSpec, FlowContext, Responder
from .board import refresh_board, reset_board
from .bosses import add_boss, list_bosses, remove_boss
from .guild_config import set_board_category, set_log_channel
from .register import register, unregister
from .roles import add_role, list_roles, remove_role, set_training_roles
from .tiers import add_tier, add_tier_role, list_tiers, remove_tier, remove_tier_role
from .training import (
    add_training, delete_training, download_signups, list_trainings, set_training_bosses,
    set_training_state, set_trainings_state, training_info
)

COMMAND_TABLE: Dict[str, CommandSpec] = {
    "register": CommandSpec(register, "Register your Guild Wars 2 account", admin=False),
    "unregister": CommandSpec(unregister, "Delete your registration and sign-ups", admin=False),

    "training add": CommandSpec(add_training, "Create a training"),
    "training state": CommandSpec(set_training_state, "Change the state of a training"),
    "training set": CommandSpec(set_trainings_state, "Change the state of trainings by day or ids"),
    "training list": CommandSpec(list_trainings, "List trainings"),
    "training delete": CommandSpec(delete_training, "Finish a training and remove it from the board"),
    "training bosses": CommandSpec(set_training_bosses, "Set the boss pool of a training"),
    "training info": CommandSpec(training_info, "Show the sign-ups of a training"),
    "training download": CommandSpec(download_signups, "Download the sign-ups of a training as CSV"),

    "role add": CommandSpec(add_role, "Create a training role"),
    "role remove": CommandSpec(remove_role, "Remove a training role"),
    "role list": CommandSpec(list_roles, "List training roles"),
    "training_roles set": CommandSpec(set_training_roles, "Set the roles offered by a training"),

    "tier add": CommandSpec(add_tier, "Create a tier"),
    "tier remove": CommandSpec(remove_tier, "Delete a tier"),
    "tier add_role": CommandSpec(add_tier_role, "Accept a Discord role for a tier"),
    "tier remove_role": CommandSpec(remove_tier_role, "Stop accepting a Discord role for a tier"),
    "tier list": CommandSpec(list_tiers, "List tiers"),

    "boss add": CommandSpec(add_boss, "Create a boss"),
    "boss remove": CommandSpec(remove_boss, "Delete a boss"),
    "boss list": CommandSpec(list_bosses, "List bosses"),

    "config board_category": CommandSpec(set_board_category, "Set the category the board lives in"),
    "config log_channel": CommandSpec(set_log_channel, "Set the operator log channel"),

    "board reset": CommandSpec(reset_board, "Delete and rebuild the board"),
    "board refresh": CommandSpec(refresh_board, "Apply pending changes to the board"),
}


async def require_staff(ctx: FlowContext, invoker_id: int, trace: LogTrace) -> None:
    """Admin commands need the admin or squadmaker role when those are configured."""
    staff_roles = [r for r in (ctx.config.admin_role_id, ctx.config.squadmaker_role_id) if r]
    if not staff_roles:
        return
    if not await ctx.gateway.member_has_any_role(invoker_id, staff_roles):
        raise PermissionDenied(context=create_error_context(user_id=invoker_id, operation="require_staff"))
    trace.step("Staff role present")


async def run_command(ctx: FlowContext, responder: Responder, name: str,
                      invoker_id: int, /, **arguments) -> FlowResult:
    """Run a command from the table through the flow boundary."""
    spec = COMMAND_TABLE.get(name)
    if spec is None:
        raise ConfigurationError(
            f"Unknown command '{name}'",
            error_code="UNKNOWN_COMMAND",
            context=create_error_context(user_id=invoker_id, operation=name)
        )

    async def flow(trace: LogTrace) -> None:
        if spec.admin:
            await require_staff(ctx, invoker_id, trace)
        await spec.handler(ctx, responder, invoker_id, trace, **arguments)

    return await run_flow(
        FlowInfo(FlowKind.COMMAND, f"/{name}", invoker_id),
        flow,
        oplog=ctx.oplog,
        responder=responder
    )


__all__ = [
    'COMMAND_TABLE',
    'CommandSpec',
    'run_command',
]
