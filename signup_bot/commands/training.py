"""
/training commands: create trainings and move them through their lifecycle.
"""

import csv
import io
import logging
from collections import Counter
from typing import Dict, Optional

from ..exceptions import GatewayNotFound, InvalidInput, NotFoundError, create_error_context
from ..gateway import EmbedSpec, MessageView
from ..models.training import Training, TrainingState
from .base import (
    FlowContext, LogTrace, Responder, code_list, parse_datetime, parse_day, parse_ids, parse_reprs
)

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Gw2 Account", "Discord Account", "Discord Ping", "Training Name", "Roles", "Comment"]


def parse_state(state: str, invoker_id: int, operation: str) -> TrainingState:
    try:
        return TrainingState(state)
    except ValueError:
        raise InvalidInput(
            f"Unknown state `{state}`.",
            context=create_error_context(user_id=invoker_id, operation=operation)
        )


async def get_training_or_fail(ctx: FlowContext, training_id: int) -> Training:
    training = await ctx.repos.trainings.get_training(training_id)
    if training is None:
        raise NotFoundError("Training", training_id)
    return training


async def add_training(ctx: FlowContext, responder: Responder, invoker_id: int, trace: LogTrace,
                       *, title: str, date: str, tier: Optional[str] = None) -> None:
    when = parse_datetime(date)
    tier_id = None
    if tier:
        found = await ctx.repos.tiers.get_by_name(tier)
        if found is None:
            raise NotFoundError("Tier", tier)
        tier_id = found.id
    training = await ctx.repos.trainings.create_training(title.strip(), when, tier_id)
    trace.step(f"Created training {training.id}")
    await responder.info(
        f"Training `{training.id}` **{training.title}** created in state `{training.state.value}`."
    )


async def set_training_state(ctx: FlowContext, responder: Responder, invoker_id: int,
                             trace: LogTrace, *, training_id: int, state: str) -> None:
    new_state = parse_state(state, invoker_id, "training_state")
    training = await ctx.repos.trainings.set_state(training_id, new_state)
    trace.step(f"Training {training_id} is now {new_state.value}")
    action = await ctx.board.update_training(training_id)
    trace.step(f"Board message {action.value}")
    await responder.info(f"Training `{training.id}` is now {new_state.emoji} `{new_state.value}`.")


async def set_trainings_state(ctx: FlowContext, responder: Responder, invoker_id: int,
                              trace: LogTrace, *, state: str, day: Optional[str] = None,
                              ids: Optional[str] = None) -> None:
    """Change the state of every training on a day and/or in a list of ids."""
    new_state = parse_state(state, invoker_id, "training_set")
    if not day and not ids:
        raise InvalidInput("Pick the trainings with `day`, `ids` or both.")

    selected: Dict[int, Training] = {}
    if day:
        wanted = parse_day(day)
        for training in await ctx.repos.trainings.list_trainings():
            if training.day == wanted:
                selected[training.id] = training
    for training_id in parse_ids(ids):
        if training_id not in selected:
            selected[training_id] = await get_training_or_fail(ctx, training_id)

    if not selected:
        await responder.info(f"No trainings on `{day}`.")
        return

    for training_id in sorted(selected):
        await ctx.repos.trainings.set_state(training_id, new_state)
        action = await ctx.board.update_training(training_id)
        trace.step(f"Training {training_id} is now {new_state.value}, board message {action.value}")
    listed = ", ".join(f"`{training_id}`" for training_id in sorted(selected))
    await responder.info(
        f"{len(selected)} training(s) now {new_state.emoji} `{new_state.value}`: {listed}."
    )


async def training_info(ctx: FlowContext, responder: Responder, invoker_id: int,
                        trace: LogTrace, *, training_id: int) -> None:
    """Roster of a training: sign-ups per role and every sign-up with roles and comment."""
    training = await get_training_or_fail(ctx, training_id)
    signups = await ctx.repos.signups.list_for_training(training_id)
    users = {u.id: u for u in await ctx.repos.users.get_users([s.user_id for s in signups])}
    offered = await ctx.repos.roles.roles_for_training(training_id)
    signed_role_ids = {role_id for s in signups for role_id in s.role_ids}
    # sign-ups may hold roles that were removed from the training since
    extra = await ctx.repos.roles.get_roles(signed_role_ids - {r.id for r in offered})
    roles = {r.id: r for r in offered + extra}

    counts = Counter(role_id for s in signups for role_id in s.role_ids)
    role_lines = [f"{role.label}: {counts[role.id]}" for role in offered + extra]

    roster = []
    for signup in signups:
        user = users.get(signup.user_id)
        name = user.gw2_id if user else f"user {signup.user_id}"
        reprs = ", ".join(roles[r].repr for r in signup.role_ids if r in roles) or "-"
        line = f"{name} [{reprs}]"
        if signup.comment:
            line += f" {signup.comment}"
        roster.append(line)

    tier = await ctx.repos.tiers.tier_for_training(training_id)
    embed = EmbedSpec(
        title=training.title,
        description=(
            f"{training.state.emoji} `{training.state.value}` on {training.date:%Y-%m-%d %H:%M} UTC\n"
            f"Tier: {tier.name if tier else 'none'}"
        ),
        footer=f"Training id: {training.id}"
    ).with_field(
        f"Sign-ups: {len(signups)}", "\n".join(role_lines) or "No roles.", inline=False
    )
    trace.step(f"Listed {len(signups)} sign-up(s)")
    await responder.info(code_list(roster, "No sign-ups yet."), MessageView(embeds=(embed,)))


async def download_signups(ctx: FlowContext, responder: Responder, invoker_id: int,
                           trace: LogTrace, *, training_id: int) -> None:
    """Sign-ups of a training as a CSV file, one row per sign-up."""
    training = await get_training_or_fail(ctx, training_id)
    signups = await ctx.repos.signups.list_for_training(training_id)
    users = {u.id: u for u in await ctx.repos.users.get_users([s.user_id for s in signups])}
    roles = {r.id: r for r in await ctx.repos.roles.get_roles(
        sorted({role_id for s in signups for role_id in s.role_ids})
    )}

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_COLUMNS)
    rows = 0
    for signup in signups:
        if not signup.role_ids:
            logger.warning(f"Sign-up {signup.id} of training {training_id} has no roles, skipped")
            continue
        user = users[signup.user_id]
        try:
            account = await ctx.gateway.user_name(user.discord_id)
        except GatewayNotFound:
            account = str(user.discord_id)
        writer.writerow([
            user.gw2_id,
            account,
            f"<@{user.discord_id}>",
            training.title,
            ", ".join(roles[r].repr for r in signup.role_ids if r in roles),
            signup.comment or "none",
        ])
        rows += 1

    trace.step(f"Exported {rows} sign-up(s)")
    await responder.file(
        f"{rows} sign-up(s) of training `{training.id}` **{training.title}**.",
        "signups.csv",
        buffer.getvalue().encode("utf-8")
    )


async def list_trainings(ctx: FlowContext, responder: Responder, invoker_id: int,
                         trace: LogTrace, *, state: Optional[str] = None) -> None:
    states = [parse_state(state, invoker_id, "training_list")] if state else None
    trainings = await ctx.repos.trainings.list_trainings(states)
    lines = [
        f"{t.id:>4} {t.state.emoji} {t.date:%Y-%m-%d %H:%M} {t.title}"
        for t in trainings
    ]
    await responder.info(code_list(lines, "No trainings."))


async def delete_training(ctx: FlowContext, responder: Responder, invoker_id: int,
                          trace: LogTrace, *, training_id: int) -> None:
    await ctx.repos.trainings.deactivate(training_id)
    trace.step(f"Training {training_id} finished")
    await ctx.board.update_training(training_id)
    await responder.info(f"Training `{training_id}` removed from the board.")


async def set_training_bosses(ctx: FlowContext, responder: Responder, invoker_id: int,
                              trace: LogTrace, *, training_id: int, bosses: str = "") -> None:
    boss_ids = []
    for key in parse_reprs(bosses):
        boss = await ctx.repos.bosses.get_by_repr(key)
        if boss is None:
            raise NotFoundError("Boss", key)
        boss_ids.append(boss.id)
    await get_training_or_fail(ctx, training_id)
    await ctx.repos.trainings.set_bosses(training_id, boss_ids)
    trace.step(f"Training {training_id} has {len(boss_ids)} boss(es)")
    await ctx.board.update_training(training_id)
    await responder.info(f"Boss pool of training `{training_id}` set ({len(boss_ids)} boss(es)).")
