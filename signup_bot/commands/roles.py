"""
/role and /training_roles commands.
"""

from ..exceptions import InvalidInput, NotFoundError
from ..models.role import Role
from .base import FlowContext, LogTrace, Responder, code_list, parse_reprs


async def add_role(ctx: FlowContext, responder: Responder, invoker_id: int, trace: LogTrace,
                   *, title: str, repr: str, emoji: str, priority: int = 2) -> None:
    if not 0 <= priority <= 4:
        raise InvalidInput("Priority must be between 0 and 4.")
    role = await ctx.repos.roles.create_role(title.strip(), repr.strip(), emoji.strip(), priority)
    trace.step(f"Created role {role.repr}")
    await responder.info(f"Role {role.label} (`{role.repr}`) created.")


async def remove_role(ctx: FlowContext, responder: Responder, invoker_id: int, trace: LogTrace,
                      *, repr: str) -> None:
    role = await ctx.repos.roles.deactivate(repr)
    trace.step(f"Deactivated role {role.repr}")
    await responder.info(f"Role `{role.repr}` removed.")


async def list_roles(ctx: FlowContext, responder: Responder, invoker_id: int,
                     trace: LogTrace) -> None:
    roles = sorted(await ctx.repos.roles.list_active_roles(), key=Role.sort_key)
    lines = [f"{r.priority} {r.repr:<12} {r.label}" for r in roles]
    await responder.info(code_list(lines, "No roles."))


async def set_training_roles(ctx: FlowContext, responder: Responder, invoker_id: int,
                             trace: LogTrace, *, training_id: int, roles: str) -> None:
    role_ids = []
    for key in parse_reprs(roles):
        role = await ctx.repos.roles.get_by_repr(key)
        if role is None:
            raise NotFoundError("Role", key)
        role_ids.append(role.id)
    if await ctx.repos.trainings.get_training(training_id) is None:
        raise NotFoundError("Training", training_id)
    await ctx.repos.roles.set_training_roles(training_id, role_ids)
    trace.step(f"Training {training_id} has {len(role_ids)} role(s)")
    await responder.info(f"Training `{training_id}` offers {len(role_ids)} role(s).")
