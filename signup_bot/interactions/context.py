"""
Shared dependencies of board button flows and commands.
"""

from dataclasses import dataclass
from typing import Optional

from ..board.reconciler import BoardReconciler
from ..config.settings import BotConfig
from ..conversation.conversation import Conversation, ConversationManager
from ..conversation.confirm import ConfirmOutcome
from ..data.repositories import Repositories
from ..exceptions import (
    ConversationAborted, ConversationTimedOut, FlowOutcome, NotRegistered, TrainingNotOpen,
    TierRequirementFailed, create_error_context
)
from ..gateway.base import ChatGateway
from ..gateway.view import MessageView
from ..models.training import Training
from ..models.user import User
from ..flow_logging import LogTrace, OperatorLog


@dataclass
class FlowContext:
    gateway: ChatGateway
    repos: Repositories
    conversations: ConversationManager
    board: BoardReconciler
    config: BotConfig
    oplog: Optional[OperatorLog] = None


async def require_user(ctx: FlowContext, discord_id: int, trace: LogTrace) -> User:
    user = await ctx.repos.users.get_by_discord_id(discord_id)
    if user is None:
        raise NotRegistered(context=create_error_context(user_id=discord_id, operation="require_user"))
    trace.step(f"User {user.gw2_id} is registered")
    return user


async def require_open_training(ctx: FlowContext, training_id: int, trace: LogTrace) -> Training:
    training = await ctx.repos.trainings.get_training(training_id)
    if training is None or not training.is_open:
        raise TrainingNotOpen(
            training_id, context=create_error_context(training_id=training_id, operation="require_open")
        )
    trace.step(f"Training {training.id} '{training.title}' is open")
    return training


async def check_tier(ctx: FlowContext, discord_id: int, training: Training, trace: LogTrace) -> None:
    """Raise TierRequirementFailed unless the user holds a role of the training's tier."""
    tier = await ctx.repos.tiers.tier_for_training(training.id)
    if tier is None:
        trace.step("No tier required")
        return
    if not await ctx.gateway.member_has_any_role(discord_id, tier.discord_role_ids):
        raise TierRequirementFailed(
            tier.name,
            context=create_error_context(
                user_id=discord_id, training_id=training.id, operation="check_tier"
            )
        )
    trace.step(f"Tier '{tier.name}' passed")


async def end_conversation(conversation: Conversation, outcome: FlowOutcome) -> None:
    """Show the outcome on the anchor message and raise it."""
    await conversation.show(MessageView.info(outcome.get_user_response()))
    raise outcome


async def require_confirmed(conversation: Conversation, view: MessageView) -> None:
    """ConfirmAbort step; raises on abort or timeout."""
    outcome = await conversation.confirm(view)
    context = create_error_context(user_id=conversation.user_id, operation="confirm")
    if outcome is ConfirmOutcome.TIMED_OUT:
        await end_conversation(conversation, ConversationTimedOut(context=context))
    if outcome is ConfirmOutcome.ABORTED:
        await end_conversation(conversation, ConversationAborted(context=context))
