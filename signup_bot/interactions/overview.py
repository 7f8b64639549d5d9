"""
General board buttons: the user's sign-up list and registration help.
"""

from typing import Optional

from ..gateway.base import Responder
from ..gateway.view import EmbedSpec, MessageView
from ..models.training import Training
from ..flow_logging import LogTrace
from .context import FlowContext, require_user

REGISTER_HELP = (
    "To sign up for trainings you need to register your Guild Wars 2 account once.\n"
    "Use `/register <account name>`, e.g. `/register Some Name.1234`.\n"
    "You can remove your data at any time with `/unregister`."
)


async def list_signups(ctx: FlowContext, responder: Responder, discord_id: int,
                       training_id: Optional[int], trace: LogTrace) -> None:
    """Reply with the user's sign-ups for active trainings."""
    user = await require_user(ctx, discord_id, trace)
    signups = await ctx.repos.signups.list_for_user(user.id)

    entries = []
    for signup in signups:
        training = await ctx.repos.trainings.get_training(signup.training_id)
        if training is None or not training.is_active:
            continue
        roles = await ctx.repos.roles.get_roles(signup.role_ids)
        entries.append((training, roles, signup.comment))
    trace.step(f"Found {len(entries)} active sign-up(s)")

    if not entries:
        await responder.info("You are not signed up for any training.")
        return

    embed = EmbedSpec(title=f"Sign-ups of {user.gw2_id}")
    for training, roles, comment in sorted(entries, key=lambda e: Training.board_sort_key(e[0])):
        value = f"<t:{int(training.date.timestamp())}:F>\n" + (" ".join(r.emoji for r in roles) or "-")
        if comment:
            value += f"\n💬 {comment}"
        embed = embed.with_field(f"{training.state.emoji} {training.title}", value)
    await responder.info("Your sign-ups:", MessageView(embeds=(embed,)))


async def register_info(ctx: FlowContext, responder: Responder, discord_id: int,
                        training_id: Optional[int], trace: LogTrace) -> None:
    trace.step("Sent registration help")
    await responder.info(REGISTER_HELP)
