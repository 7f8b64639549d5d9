"""
/register and /unregister.
"""

from ..exceptions import InvalidInput, NotRegistered, create_error_context
from ..gateway.view import MessageView
from ..interactions.context import require_confirmed
from ..models.user import is_valid_gw2_id
from .base import FlowContext, LogTrace, Responder


async def register(ctx: FlowContext, responder: Responder, invoker_id: int,
                   trace: LogTrace, *, gw2_account: str) -> None:
    gw2_account = gw2_account.strip()
    if not is_valid_gw2_id(gw2_account):
        raise InvalidInput(
            f"`{gw2_account}` is not a valid Guild Wars 2 account name, e.g. `Some Name.1234`.",
            context=create_error_context(user_id=invoker_id, operation="register")
        )
    user = await ctx.repos.users.upsert_user(invoker_id, gw2_account)
    trace.step(f"Registered as {user.gw2_id}")
    await responder.info(f"Registered as `{user.gw2_id}` ✅")


async def unregister(ctx: FlowContext, responder: Responder, invoker_id: int,
                     trace: LogTrace) -> None:
    """Delete the user and their sign-ups after a private confirmation."""
    user = await ctx.repos.users.get_by_discord_id(invoker_id)
    if user is None:
        raise NotRegistered(context=create_error_context(user_id=invoker_id, operation="unregister"))

    async with ctx.conversations.open(invoker_id) as conversation:
        await responder.info(f"Let's continue in private: {conversation.link}")
        await require_confirmed(conversation, MessageView.info(
            "This deletes your registration and all of your sign-ups.",
            title="Unregister?"
        ))
        training_ids = [s.training_id for s in await ctx.repos.signups.list_for_user(user.id)]
        await ctx.repos.users.delete_by_discord_id(invoker_id)
        trace.step(f"Deleted user and {len(training_ids)} sign-up(s)")
        await conversation.show(MessageView.info("Your data was deleted.", title="Unregistered"))

    for training_id in training_ids:
        await ctx.board.update_training(training_id)
