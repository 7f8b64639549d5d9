"""
/tier commands.
"""

from ..exceptions import NotFoundError
from ..models.role import Tier
from .base import FlowContext, LogTrace, Responder


async def _require_tier(ctx: FlowContext, name: str) -> Tier:
    tier = await ctx.repos.tiers.get_by_name(name)
    if tier is None:
        raise NotFoundError("Tier", name)
    return tier


async def add_tier(ctx: FlowContext, responder: Responder, invoker_id: int, trace: LogTrace,
                   *, name: str) -> None:
    tier = await ctx.repos.tiers.create_tier(name.strip())
    trace.step(f"Created tier {tier.name}")
    await responder.info(f"Tier `{tier.name}` created.")


async def remove_tier(ctx: FlowContext, responder: Responder, invoker_id: int, trace: LogTrace,
                      *, name: str) -> None:
    await ctx.repos.tiers.delete_tier(name)
    trace.step(f"Deleted tier {name}")
    await responder.info(f"Tier `{name}` deleted.")


async def add_tier_role(ctx: FlowContext, responder: Responder, invoker_id: int, trace: LogTrace,
                        *, name: str, discord_role_id: int) -> None:
    tier = await _require_tier(ctx, name)
    await ctx.repos.tiers.add_discord_role(tier.id, discord_role_id)
    trace.step(f"Tier {tier.name} accepts role {discord_role_id}")
    await responder.info(f"Tier `{tier.name}` now accepts <@&{discord_role_id}>.")


async def remove_tier_role(ctx: FlowContext, responder: Responder, invoker_id: int,
                           trace: LogTrace, *, name: str, discord_role_id: int) -> None:
    tier = await _require_tier(ctx, name)
    await ctx.repos.tiers.remove_discord_role(tier.id, discord_role_id)
    trace.step(f"Tier {tier.name} no longer accepts role {discord_role_id}")
    await responder.info(f"Tier `{tier.name}` no longer accepts <@&{discord_role_id}>.")


async def list_tiers(ctx: FlowContext, responder: Responder, invoker_id: int,
                     trace: LogTrace) -> None:
    tiers = await ctx.repos.tiers.list_tiers()
    if not tiers:
        await responder.info("No tiers.")
        return
    lines = [
        f"**{t.name}**: " + (" ".join(f"<@&{r}>" for r in t.discord_role_ids) or "no roles")
        for t in tiers
    ]
    await responder.info("\n".join(lines))
