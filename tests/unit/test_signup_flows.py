"""
Tests for the board button flows: Join, Edit, Leave, Comment and the overview buttons.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from signup_bot.config import ConversationConfig
from signup_bot.conversation import ABORT_ID, CONFIRM_ID, ConversationManager
from signup_bot.flow_logging import FlowResult
from signup_bot.interactions import handle_board_button
from signup_bot.interactions.overview import REGISTER_HELP
from signup_bot.models import TrainingState

USER = 42
CATEGORY_ID = 500


async def seed(ctx, tier_roles=None, bosses=False):
    """A registered user and one open training with two roles on a built board."""
    repos = ctx.repos
    user = await repos.users.upsert_user(USER, "Some Name.1234")
    tier_id = None
    if tier_roles is not None:
        tier = await repos.tiers.create_tier("Tier 1")
        for role_id in tier_roles:
            await repos.tiers.add_discord_role(tier.id, role_id)
        tier_id = tier.id
    training = await repos.trainings.create_training(
        "Raid Night", datetime(2026, 10, 20, 18, 0, tzinfo=timezone.utc), tier_id
    )
    training = await repos.trainings.set_state(training.id, TrainingState.OPEN)
    heal = await repos.roles.create_role("Healer", "heal", "💚", priority=1)
    dps = await repos.roles.create_role("DPS", "dps", "⚔️", priority=3)
    await repos.roles.set_training_roles(training.id, [heal.id, dps.id])
    boss_ids = []
    if bosses:
        for repr, name, position, emoji in (("vg", "Vale Guardian", 1, "💎"), ("sab", "Sabetha", 3, "🔥")):
            boss = await repos.bosses.create_boss(repr, name, 1, position, emoji)
            boss_ids.append(boss.id)
        await repos.trainings.set_bosses(training.id, boss_ids)

    await ctx.board.set_category(CATEGORY_ID)
    await ctx.board.full_reset()
    return user, training, heal, dps, boss_ids


def board_description(ctx, training_id):
    entry = ctx.board.state.message_for_training(training_id)
    return ctx.gateway.messages[entry.message_id].view.embeds[0].description


def press(ctx, responder, action, training_id=None):
    custom_id = f"training:{action}:{training_id}" if training_id is not None else f"overview:{action}"
    return asyncio.create_task(handle_board_button(ctx, responder, USER, custom_id))


class TestJoin:

    @pytest.mark.asyncio
    async def test_join_saves_signup_and_updates_board(self, ctx, responder):
        user, training, heal, dps, _ = await seed(ctx)
        task = press(ctx, responder, "join", training.id)

        await ctx.gateway.click(USER, f"item:{dps.id}")
        await ctx.gateway.click(USER, CONFIRM_ID)
        await ctx.gateway.click(USER, CONFIRM_ID)

        assert await asyncio.wait_for(task, 5) is FlowResult.SUCCESS
        signup = await ctx.repos.signups.get_signup(user.id, training.id)
        assert signup.role_ids == (dps.id,)
        assert "Let's continue in private" in responder.texts[0]
        assert "`Sign-up count`   1" in board_description(ctx, training.id)
        assert ctx.gateway.anchor(USER).view.embeds[0].title == "Saved"
        assert ctx.conversations.active_count == 0

    @pytest.mark.asyncio
    async def test_join_with_boss_preference(self, ctx, responder):
        user, training, heal, _, boss_ids = await seed(ctx, bosses=True)
        task = press(ctx, responder, "join", training.id)

        await ctx.gateway.click(USER, f"item:{heal.id}")
        await ctx.gateway.click(USER, CONFIRM_ID)
        await ctx.gateway.click(USER, f"item:{boss_ids[1]}")
        await ctx.gateway.click(USER, CONFIRM_ID)
        await ctx.gateway.click(USER, CONFIRM_ID)

        assert await asyncio.wait_for(task, 5) is FlowResult.SUCCESS
        signup = await ctx.repos.signups.get_signup(user.id, training.id)
        assert signup.role_ids == (heal.id,)
        assert signup.boss_preference_ids == (boss_ids[1],)

    @pytest.mark.asyncio
    async def test_abort_saves_nothing(self, ctx, responder):
        user, training, _, dps, _ = await seed(ctx)
        task = press(ctx, responder, "join", training.id)

        await ctx.gateway.click(USER, f"item:{dps.id}")
        await ctx.gateway.click(USER, ABORT_ID)

        assert await asyncio.wait_for(task, 5) is FlowResult.INFO
        assert await ctx.repos.signups.get_signup(user.id, training.id) is None
        assert ctx.gateway.anchor(USER).view.embeds[0].description == "Aborted ❌"
        assert responder.texts[-1] == "Aborted ❌"
        assert USER not in ctx.conversations.lock

    @pytest.mark.asyncio
    async def test_abort_at_summary_saves_nothing(self, ctx, responder):
        user, training, _, dps, _ = await seed(ctx)
        task = press(ctx, responder, "join", training.id)

        await ctx.gateway.click(USER, f"item:{dps.id}")
        await ctx.gateway.click(USER, CONFIRM_ID)
        await ctx.gateway.click(USER, ABORT_ID)

        assert await asyncio.wait_for(task, 5) is FlowResult.INFO
        assert await ctx.repos.signups.get_signup(user.id, training.id) is None

    @pytest.mark.asyncio
    async def test_timeout_releases_lock(self, ctx, responder):
        _, training, _, _, _ = await seed(ctx)
        ctx.conversations = ConversationManager(ctx.gateway, config=ConversationConfig(
            selector_timeout_seconds=0.05
        ))

        result = await asyncio.wait_for(press(ctx, responder, "join", training.id), 5)

        assert result is FlowResult.INFO
        assert responder.texts[-1] == "Timed out ⏱️"
        assert ctx.conversations.active_count == 0

    @pytest.mark.asyncio
    async def test_second_conversation_is_refused(self, ctx, responder):
        _, training, _, _, _ = await seed(ctx)
        ctx.conversations.lock.try_acquire(USER)

        result = await press(ctx, responder, "join", training.id)

        assert result is FlowResult.INFO
        assert "already have an active conversation" in responder.texts[-1]
        # The running conversation keeps its lock
        assert USER in ctx.conversations.lock

    @pytest.mark.asyncio
    async def test_unregistered_user(self, ctx, responder):
        _, training, _, _, _ = await seed(ctx)
        await ctx.repos.users.delete_by_discord_id(USER)

        assert await press(ctx, responder, "join", training.id) is FlowResult.INFO
        assert responder.texts == ["Not yet registered. Please use `/register` first."]
        assert ctx.gateway.anchor(USER) is None

    @pytest.mark.asyncio
    async def test_closed_training(self, ctx, responder):
        _, training, _, _, _ = await seed(ctx)
        await ctx.repos.trainings.set_state(training.id, TrainingState.CLOSED)

        assert await press(ctx, responder, "join", training.id) is FlowResult.INFO
        assert responder.texts == ["This training is not open for sign up right now."]

    @pytest.mark.asyncio
    async def test_already_signed_up(self, ctx, responder):
        user, training, heal, _, _ = await seed(ctx)
        await ctx.repos.signups.upsert_signup(user.id, training.id, [heal.id])

        assert await press(ctx, responder, "join", training.id) is FlowResult.INFO
        assert "already signed up" in responder.texts[-1]

    @pytest.mark.asyncio
    async def test_tier_requirement(self, ctx, responder):
        _, training, _, _, _ = await seed(ctx, tier_roles=[77])

        assert await press(ctx, responder, "join", training.id) is FlowResult.INFO
        assert responder.texts == ["Tier requirement not passed! Required tier: Tier 1"]

        ctx.gateway.member_roles[USER] = {77}
        task = press(ctx, responder, "join", training.id)
        await ctx.gateway.click(USER, ABORT_ID)
        assert await asyncio.wait_for(task, 5) is FlowResult.INFO
        assert responder.texts[-1] == "Aborted ❌"

    @pytest.mark.asyncio
    async def test_private_channel_failure_is_a_failure(self, ctx, responder):
        _, training, _, _, _ = await seed(ctx)
        ctx.gateway.no_private_channel.add(USER)

        assert await press(ctx, responder, "join", training.id) is FlowResult.FAILURE
        assert responder.errors == ["Failed to open a private channel with you."]
        assert USER not in ctx.conversations.lock


class TestEdit:

    @pytest.mark.asyncio
    async def test_edit_starts_from_current_choice(self, ctx, responder):
        user, training, heal, dps, boss_ids = await seed(ctx, bosses=True)
        await ctx.repos.signups.upsert_signup(user.id, training.id, [heal.id], [boss_ids[0]])
        task = press(ctx, responder, "edit", training.id)

        await ctx.gateway.click(USER, f"item:{dps.id}")
        await ctx.gateway.click(USER, CONFIRM_ID)
        await ctx.gateway.click(USER, CONFIRM_ID)
        await ctx.gateway.click(USER, CONFIRM_ID)

        assert await asyncio.wait_for(task, 5) is FlowResult.SUCCESS
        signup = await ctx.repos.signups.get_signup(user.id, training.id)
        assert signup.role_ids == (heal.id, dps.id)
        assert signup.boss_preference_ids == (boss_ids[0],)

    @pytest.mark.asyncio
    async def test_edit_needs_signup(self, ctx, responder):
        _, training, _, _, _ = await seed(ctx)
        assert await press(ctx, responder, "edit", training.id) is FlowResult.INFO
        assert responder.texts == ["You are not signed up for this training."]


class TestLeave:

    @pytest.mark.asyncio
    async def test_leave_removes_signup(self, ctx, responder):
        user, training, heal, _, _ = await seed(ctx)
        await ctx.repos.signups.upsert_signup(user.id, training.id, [heal.id])
        await ctx.board.update_training(training.id)

        assert await press(ctx, responder, "leave", training.id) is FlowResult.SUCCESS
        assert await ctx.repos.signups.get_signup(user.id, training.id) is None
        assert "`Sign-up count`   0" in board_description(ctx, training.id)

    @pytest.mark.asyncio
    async def test_leave_without_signup(self, ctx, responder):
        _, training, _, _, _ = await seed(ctx)
        assert await press(ctx, responder, "leave", training.id) is FlowResult.INFO


class TestComment:

    @pytest.mark.asyncio
    async def test_comment_is_saved(self, ctx, responder):
        user, training, heal, _, _ = await seed(ctx)
        await ctx.repos.signups.upsert_signup(user.id, training.id, [heal.id])
        task = press(ctx, responder, "comment", training.id)

        await ctx.gateway.reply(USER, "  Might be 10 minutes late  ")

        assert await asyncio.wait_for(task, 5) is FlowResult.SUCCESS
        signup = await ctx.repos.signups.get_signup(user.id, training.id)
        assert signup.comment == "Might be 10 minutes late"

    @pytest.mark.asyncio
    async def test_overlong_comment_is_rejected(self, ctx, responder):
        user, training, heal, _, _ = await seed(ctx)
        await ctx.repos.signups.upsert_signup(user.id, training.id, [heal.id])
        task = press(ctx, responder, "comment", training.id)

        await ctx.gateway.reply(USER, "x" * 201)

        assert await asyncio.wait_for(task, 5) is FlowResult.INFO
        assert (await ctx.repos.signups.get_signup(user.id, training.id)).comment is None
        assert "1 to 200 characters" in responder.texts[-1]


class TestOverviewButtons:

    @pytest.mark.asyncio
    async def test_list_signups(self, ctx, responder):
        user, training, heal, _, _ = await seed(ctx)
        await ctx.repos.signups.upsert_signup(user.id, training.id, [heal.id])
        await ctx.repos.signups.set_comment(user.id, training.id, "bringing food")

        assert await press(ctx, responder, "list") is FlowResult.SUCCESS
        text, view = responder.infos[-1]
        field = view.embeds[0].fields[0]
        assert field.name == "🟢 Raid Night"
        assert "💚" in field.value
        assert "bringing food" in field.value

    @pytest.mark.asyncio
    async def test_list_without_signups(self, ctx, responder):
        await seed(ctx)
        await press(ctx, responder, "list")
        assert responder.texts == ["You are not signed up for any training."]

    @pytest.mark.asyncio
    async def test_register_info(self, ctx, responder):
        assert await press(ctx, responder, "register") is FlowResult.SUCCESS
        assert responder.texts == [REGISTER_HELP]

    @pytest.mark.asyncio
    async def test_unknown_custom_id(self, ctx, responder):
        assert await handle_board_button(ctx, responder, USER, "something:else") is None
        assert responder.infos == []
