"""
Content of the board: channel names and one message per training.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from ..models.role import Tier
from ..models.training import Training, TrainingBoss, TrainingState
from ..gateway.view import ButtonSpec, ButtonStyle, EmbedSpec, MessageView
from .actions import ButtonAction, action_id


@dataclass(frozen=True)
class TrainingDetails:
    """A training together with the data shown next to it."""
    training: Training
    signup_count: int = 0
    tier: Optional[Tier] = None
    bosses: Tuple[TrainingBoss, ...] = ()


def channel_name(day: date) -> str:
    """e.g. ``2026-10-18-sun``"""
    return f"{day.isoformat()}-{day.strftime('%a').lower()}"


def _details_text(details: TrainingDetails) -> str:
    training = details.training
    timestamp = int(training.date.timestamp())
    lines = [f"`     Time    `   <t:{timestamp}:t> (<t:{timestamp}:R>)"]

    if details.tier is not None and details.tier.discord_role_ids:
        mentions = " ".join(f"<@&{role_id}>" for role_id in details.tier.discord_role_ids)
        lines.append(f"`Tier required`   {mentions}")
    elif details.tier is not None:
        lines.append(f"`Tier required`   {details.tier.name}")
    else:
        lines.append("`Tier required`   None")

    lines.append(f"`Sign-up count`   {details.signup_count}")

    if details.bosses:
        label = "`     Boss    `" if len(details.bosses) == 1 else "`  Boss Pool  `"
        emojis = " ".join(boss.emoji for boss in sorted(details.bosses, key=TrainingBoss.sort_key))
        lines.append(f"{label}   {emojis}")

    return "\n".join(lines)


def training_buttons(training_id: int) -> Tuple[ButtonSpec, ...]:
    return (
        ButtonSpec(action_id(ButtonAction.JOIN, training_id), "Join", ButtonStyle.SUCCESS, emoji="✅"),
        ButtonSpec(action_id(ButtonAction.EDIT, training_id), "Edit", ButtonStyle.PRIMARY, emoji="📝"),
        ButtonSpec(action_id(ButtonAction.LEAVE, training_id), "Leave", ButtonStyle.DANGER, emoji="❌"),
        ButtonSpec(action_id(ButtonAction.COMMENT, training_id), "Comment", ButtonStyle.SECONDARY, emoji="💬"),
    )


def overview_buttons() -> Tuple[ButtonSpec, ...]:
    return (
        ButtonSpec(action_id(ButtonAction.LIST), "My sign-ups", ButtonStyle.SECONDARY, emoji="📜"),
        ButtonSpec(action_id(ButtonAction.REGISTER_INFO), "How to register", ButtonStyle.SECONDARY, emoji="❓"),
    )


def training_embed(training: Training) -> EmbedSpec:
    """Short embed identifying a training, used in private conversations."""
    return EmbedSpec(
        title=f"{training.state.emoji}    {training.title}",
        description=f"<t:{int(training.date.timestamp())}:F>"
    )


def render_training(details: TrainingDetails) -> MessageView:
    """The board message of one training.

    Sign-up buttons are only shown while the training is open.
    """
    training = details.training
    embed = EmbedSpec(
        title=f"{training.state.emoji}    **{training.title}**",
        description=_details_text(details),
        footer=f"Training id: {training.id}"
    )
    rows = []
    if training.state is TrainingState.OPEN:
        rows.append(training_buttons(training.id))
    rows.append(overview_buttons())
    return MessageView(embeds=(embed,), rows=tuple(rows))
