"""
/boss commands.
"""

from typing import Optional

from ..exceptions import InvalidInput
from ..models.training import TrainingBoss
from .base import FlowContext, LogTrace, Responder, code_list


async def add_boss(ctx: FlowContext, responder: Responder, invoker_id: int, trace: LogTrace,
                   *, repr: str, name: str, wing: int, position: int, emoji: str,
                   url: Optional[str] = None) -> None:
    if wing < 1 or position < 1:
        raise InvalidInput("Wing and position start at 1.")
    boss = await ctx.repos.bosses.create_boss(repr.strip(), name.strip(), wing, position, emoji.strip(), url)
    trace.step(f"Created boss {boss.repr}")
    await responder.info(f"Boss {boss.emoji} {boss.name} (`{boss.repr}`) created.")


async def remove_boss(ctx: FlowContext, responder: Responder, invoker_id: int, trace: LogTrace,
                      *, repr: str) -> None:
    await ctx.repos.bosses.delete_boss(repr)
    trace.step(f"Deleted boss {repr}")
    await responder.info(f"Boss `{repr}` deleted.")


async def list_bosses(ctx: FlowContext, responder: Responder, invoker_id: int,
                      trace: LogTrace) -> None:
    bosses = sorted(await ctx.repos.bosses.list_bosses(), key=TrainingBoss.sort_key)
    lines = [f"W{b.wing}.{b.position} {b.repr:<10} {b.name}" for b in bosses]
    await responder.info(code_list(lines, "No bosses."))
