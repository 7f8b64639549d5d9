"""
Join, Edit, Leave and Comment flows started from board buttons.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ..board.render import training_embed
from ..conversation.conversation import Conversation
from ..conversation.selector import SelectionResult, SelectorItem, SelectorOutcome
from ..exceptions import (
    AlreadySignedUp, ConversationAborted, ConversationTimedOut, InvalidInput, NotSignedUp,
    create_error_context
)
from ..gateway.base import Responder
from ..gateway.view import EmbedSpec, MessageView
from ..models.role import Role
from ..models.signup import Signup
from ..models.training import Training, TrainingBoss
from ..flow_logging import LogTrace
from .context import (
    FlowContext, check_tier, end_conversation, require_confirmed, require_open_training,
    require_user
)

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 200


@dataclass(frozen=True)
class SignupChoice:
    role_ids: Tuple[int, ...]
    boss_ids: Tuple[int, ...] = ()


def role_items(roles: Iterable[Role]) -> List[SelectorItem]:
    return [
        SelectorItem(str(role.id), role.title, role.emoji or None)
        for role in sorted(roles, key=Role.sort_key)
    ]


def boss_items(bosses: Iterable[TrainingBoss]) -> List[SelectorItem]:
    return [
        SelectorItem(str(boss.id), boss.name, boss.emoji or None)
        for boss in sorted(bosses, key=TrainingBoss.sort_key)
    ]


def summary_view(training: Training, roles: List[Role], bosses: List[TrainingBoss]) -> MessageView:
    embed = EmbedSpec(title="Please confirm your sign-up", description=training.title)
    embed = embed.with_field("Roles", "\n".join(role.label for role in roles) or "-")
    if bosses:
        embed = embed.with_field("Boss preference", " ".join(b.emoji for b in bosses) or "-")
    return MessageView(embeds=(training_embed(training), embed))


async def _collect_choice(ctx: FlowContext, conversation: Conversation, training: Training,
                          trace: LogTrace, current: Optional[Signup] = None) -> SignupChoice:
    """Role selector, then boss preference selector if the training has bosses."""
    roles = await ctx.repos.roles.roles_for_training(training.id)
    if not roles:
        raise InvalidInput(
            "This training has no roles to choose from yet.",
            context=create_error_context(training_id=training.id, operation="collect_roles")
        )
    header = (training_embed(training),)

    result = await conversation.select(
        role_items(roles),
        ctx.conversations.selector_config(
            min_select=1,
            title="Select your roles",
            description="Pick every role you are able to play.",
            header=header
        ),
        pre_selected=[str(r) for r in current.role_ids] if current else ()
    )
    await _raise_unless_finished(conversation, result)
    role_ids = tuple(int(r) for r in result.selected)
    trace.step(f"Selected roles {list(role_ids)}")

    bosses = await ctx.repos.trainings.bosses_for_training(training.id)
    boss_ids: Tuple[int, ...] = ()
    if bosses:
        result = await conversation.select(
            boss_items(bosses),
            ctx.conversations.selector_config(
                min_select=0,
                title="Boss preference",
                description="Which bosses would you like to train? Pick none if you have no preference.",
                header=header
            ),
            pre_selected=[str(b) for b in current.boss_preference_ids] if current else ()
        )
        await _raise_unless_finished(conversation, result)
        boss_ids = tuple(int(b) for b in result.selected)
        trace.step(f"Selected boss preferences {list(boss_ids)}")

    return SignupChoice(role_ids, boss_ids)


async def _raise_unless_finished(conversation: Conversation, result: SelectionResult) -> None:
    context = create_error_context(user_id=conversation.user_id, operation="select")
    if result.outcome is SelectorOutcome.TIMED_OUT:
        await end_conversation(conversation, ConversationTimedOut(context=context))
    if result.outcome is SelectorOutcome.ABORTED:
        await end_conversation(conversation, ConversationAborted(context=context))


async def _save_choice(ctx: FlowContext, conversation: Conversation, user_id: int,
                       training: Training, choice: SignupChoice, trace: LogTrace) -> None:
    roles = await ctx.repos.roles.get_roles(choice.role_ids)
    bosses = [
        boss for boss in await ctx.repos.trainings.bosses_for_training(training.id)
        if boss.id in choice.boss_ids
    ]
    await require_confirmed(conversation, summary_view(training, roles, bosses))
    trace.step("Confirmed")

    await ctx.repos.signups.upsert_signup(user_id, training.id, choice.role_ids, choice.boss_ids)
    trace.step("Sign-up saved")
    await conversation.show(MessageView.info(
        f"You are signed up for **{training.title}** ✅", title="Saved"
    ))


async def join_training(ctx: FlowContext, responder: Responder, discord_id: int,
                        training_id: int, trace: LogTrace) -> None:
    """
    Sign a user up for an open training.

    Checks registration, training state, an existing sign-up and the tier,
    then collects roles and boss preferences in a private conversation.
    """
    user = await require_user(ctx, discord_id, trace)
    training = await require_open_training(ctx, training_id, trace)
    if await ctx.repos.signups.get_signup(user.id, training.id) is not None:
        raise AlreadySignedUp(context=create_error_context(
            user_id=discord_id, training_id=training_id, operation="join"
        ))
    await check_tier(ctx, discord_id, training, trace)

    async with ctx.conversations.open(discord_id) as conversation:
        await responder.info(f"Let's continue in private: {conversation.link}")
        trace.step("Conversation started")
        choice = await _collect_choice(ctx, conversation, training, trace)
        await _save_choice(ctx, conversation, user.id, training, choice, trace)

    await ctx.board.update_training(training.id)
    trace.step("Board updated")


async def edit_signup(ctx: FlowContext, responder: Responder, discord_id: int,
                      training_id: int, trace: LogTrace) -> None:
    """Like join, with the current roles and boss preferences pre-selected."""
    user = await require_user(ctx, discord_id, trace)
    training = await require_open_training(ctx, training_id, trace)
    current = await ctx.repos.signups.get_signup(user.id, training.id)
    if current is None:
        raise NotSignedUp(context=create_error_context(
            user_id=discord_id, training_id=training_id, operation="edit"
        ))

    async with ctx.conversations.open(discord_id) as conversation:
        await responder.info(f"Let's continue in private: {conversation.link}")
        trace.step("Conversation started")
        choice = await _collect_choice(ctx, conversation, training, trace, current=current)
        await _save_choice(ctx, conversation, user.id, training, choice, trace)

    await ctx.board.update_training(training.id)
    trace.step("Board updated")


async def leave_training(ctx: FlowContext, responder: Responder, discord_id: int,
                         training_id: int, trace: LogTrace) -> None:
    user = await require_user(ctx, discord_id, trace)
    training = await require_open_training(ctx, training_id, trace)
    if await ctx.repos.signups.get_signup(user.id, training.id) is None:
        raise NotSignedUp(context=create_error_context(
            user_id=discord_id, training_id=training_id, operation="leave"
        ))

    await ctx.repos.signups.delete_signup(user.id, training.id)
    trace.step("Sign-up removed")
    await responder.info(f"You are no longer signed up for **{training.title}**.")

    await ctx.board.update_training(training.id)
    trace.step("Board updated")


async def comment_signup(ctx: FlowContext, responder: Responder, discord_id: int,
                         training_id: int, trace: LogTrace) -> None:
    """Store a free text comment on an existing sign-up, collected in private."""
    user = await require_user(ctx, discord_id, trace)
    training = await require_open_training(ctx, training_id, trace)
    signup = await ctx.repos.signups.get_signup(user.id, training.id)
    if signup is None:
        raise NotSignedUp(context=create_error_context(
            user_id=discord_id, training_id=training_id, operation="comment"
        ))

    prompt = MessageView(embeds=(
        training_embed(training),
        EmbedSpec(
            title="Comment",
            description=(
                f"Send your comment as a message here (max {MAX_COMMENT_LENGTH} characters).\n"
                f"Current comment: {signup.comment or '-'}"
            )
        ),
    ))
    async with ctx.conversations.open(discord_id, prompt) as conversation:
        await responder.info(f"Let's continue in private: {conversation.link}")
        text = await conversation.await_reply()
        if text is None:
            await end_conversation(conversation, ConversationTimedOut(
                context=create_error_context(user_id=discord_id, operation="comment")
            ))
        text = text.strip()
        if not text or len(text) > MAX_COMMENT_LENGTH:
            await end_conversation(conversation, InvalidInput(
                f"Comments must be 1 to {MAX_COMMENT_LENGTH} characters long.",
                context=create_error_context(user_id=discord_id, operation="comment")
            ))
        await ctx.repos.signups.set_comment(user.id, training.id, text)
        trace.step("Comment saved")
        await conversation.show(MessageView.info(f"Comment saved: {text}", title="Saved"))
