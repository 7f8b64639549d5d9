"""
Tests for the board: rendering, custom ids, reconciliation and the refresh job.
"""

from datetime import date, datetime, timezone

import pytest

from signup_bot.board import (
    BoardAction, BoardReconciler, BoardScheduler, ButtonAction, TrainingDetails, action_id,
    channel_name, parse_action, render_training, status_text
)
from signup_bot.exceptions import BoardNotConfigured
from signup_bot.models import Tier, Training, TrainingBoss, TrainingState

CATEGORY_ID = 500


def at(day, hour, minute=0):
    return datetime(2026, 10, day, hour, minute, tzinfo=timezone.utc)


async def open_training(repos, title, when):
    training = await repos.trainings.create_training(title, when)
    return await repos.trainings.set_state(training.id, TrainingState.OPEN)


async def seed_week(repos):
    """Five open trainings on three days, returned in board order."""
    raid = await open_training(repos, "Raid Night", at(20, 18))
    beginner = await open_training(repos, "Beginner Training", at(20, 20))
    intermediate = await open_training(repos, "Intermediate Training", at(22, 19))
    practice = await open_training(repos, "Practice Run", at(22, 19))
    late = await open_training(repos, "Late Beginner Training", at(24, 21))
    return [beginner, raid, intermediate, practice, late]


def footers(trainings):
    return [f"Training id: {t.id}" for t in trainings]


class TestActions:

    def test_training_ids_round_trip_through_parse(self):
        assert action_id(ButtonAction.JOIN, 7) == "training:join:7"
        assert parse_action("training:comment:12") == (ButtonAction.COMMENT, 12)
        assert parse_action(action_id(ButtonAction.LIST)) == (ButtonAction.LIST, None)
        assert parse_action("overview:register") == (ButtonAction.REGISTER_INFO, None)

    def test_foreign_ids_are_not_board_buttons(self):
        assert parse_action("confirm") is None
        assert parse_action("item:3") is None
        assert parse_action("training:join:abc") is None
        assert parse_action("training:list:3") is None
        assert parse_action("overview:join") is None

    def test_training_action_needs_id(self):
        with pytest.raises(ValueError):
            action_id(ButtonAction.LEAVE)


class TestRender:

    def test_channel_name(self):
        assert channel_name(date(2026, 10, 18)) == "2026-10-18-sun"

    def test_open_training_has_signup_buttons(self):
        training = Training(3, "Raid Night", at(20, 18), TrainingState.OPEN)
        view = render_training(TrainingDetails(training, signup_count=4))

        embed = view.embeds[0]
        assert embed.title == "🟢    **Raid Night**"
        assert embed.footer == "Training id: 3"
        assert "`Sign-up count`   4" in embed.description
        assert "`Tier required`   None" in embed.description
        assert [b.custom_id for b in view.rows[0]] == [
            "training:join:3", "training:edit:3", "training:leave:3", "training:comment:3"
        ]
        assert [b.custom_id for b in view.rows[1]] == ["overview:list", "overview:register"]

    def test_closed_training_keeps_only_general_buttons(self):
        training = Training(3, "Raid Night", at(20, 18), TrainingState.CLOSED)
        view = render_training(TrainingDetails(training))
        assert len(view.rows) == 1
        assert view.rows[0][0].custom_id == "overview:list"

    def test_tier_and_boss_pool(self):
        training = Training(3, "Raid Night", at(20, 18), TrainingState.OPEN)
        bosses = (
            TrainingBoss(2, "sab", "Sabetha", 1, 3, "🔥"),
            TrainingBoss(1, "vg", "Vale Guardian", 1, 1, "💎"),
        )
        view = render_training(TrainingDetails(
            training, tier=Tier(1, "Tier 1", (77, 78)), bosses=bosses
        ))
        description = view.embeds[0].description
        assert "<@&77> <@&78>" in description
        assert "`  Boss Pool  `   💎 🔥" in description

    def test_fingerprint_tracks_content(self):
        training = Training(3, "Raid Night", at(20, 18), TrainingState.OPEN)
        first = render_training(TrainingDetails(training, signup_count=1))
        same = render_training(TrainingDetails(training, signup_count=1))
        other = render_training(TrainingDetails(training, signup_count=2))
        assert first.fingerprint() == same.fingerprint()
        assert first.fingerprint() != other.fingerprint()


class TestFullReset:

    @pytest.mark.asyncio
    async def test_requires_category(self, gateway, repos):
        reconciler = BoardReconciler(gateway, repos)
        with pytest.raises(BoardNotConfigured):
            await reconciler.full_reset()

    @pytest.mark.asyncio
    async def test_builds_ordered_board(self, gateway, repos):
        ordered = await seed_week(repos)
        await repos.trainings.create_training("Draft", at(21, 18))
        reconciler = BoardReconciler(gateway, repos)
        await reconciler.set_category(CATEGORY_ID)

        report = await reconciler.full_reset()

        assert report.channels_created == 3
        assert report.messages_created == 5
        assert gateway.channel_names() == [
            "2026-10-20-tue", "2026-10-22-thu", "2026-10-24-sat"
        ]
        assert gateway.board_footers() == [
            footers(ordered[0:2]), footers(ordered[2:4]), footers(ordered[4:5])
        ]

    @pytest.mark.asyncio
    async def test_reset_twice_gives_the_same_board(self, gateway, repos):
        await seed_week(repos)
        reconciler = BoardReconciler(gateway, repos)
        await reconciler.set_category(CATEGORY_ID)

        await reconciler.full_reset()
        first = gateway.board_footers()
        report = await reconciler.full_reset()

        assert gateway.board_footers() == first
        assert report.channels_deleted == 3
        assert len(gateway.channels) == 3
        assert len(gateway.messages) == 5

    @pytest.mark.asyncio
    async def test_reset_removes_foreign_channels(self, gateway, repos):
        await seed_week(repos)
        stray = await gateway.create_channel(CATEGORY_ID, "old-board")
        reconciler = BoardReconciler(gateway, repos)
        await reconciler.set_category(CATEGORY_ID)

        await reconciler.full_reset()

        assert stray.id not in gateway.channels
        assert "old-board" not in gateway.channel_names()

    @pytest.mark.asyncio
    async def test_reset_after_category_change_removes_the_old_board(self, gateway, repos):
        await seed_week(repos)
        reconciler = BoardReconciler(gateway, repos)
        await reconciler.set_category(CATEGORY_ID)
        await reconciler.full_reset()

        await reconciler.set_category(600)
        await reconciler.full_reset()

        assert gateway.channel_names(CATEGORY_ID) == []
        assert gateway.channel_names(600) == [
            "2026-10-20-tue", "2026-10-22-thu", "2026-10-24-sat"
        ]
        assert len(gateway.messages) == 5

    @pytest.mark.asyncio
    async def test_state_is_persisted(self, gateway, repos):
        await seed_week(repos)
        reconciler = BoardReconciler(gateway, repos)
        await reconciler.set_category(CATEGORY_ID)
        await reconciler.full_reset()

        reloaded = BoardReconciler(gateway, repos)
        await reloaded.load()
        assert reloaded.category_id == CATEGORY_ID
        assert reloaded.state.channels == reconciler.state.channels
        assert reloaded.state.messages == reconciler.state.messages


class TestTargetedUpdates:

    async def built_board(self, gateway, repos):
        ordered = await seed_week(repos)
        reconciler = BoardReconciler(gateway, repos)
        await reconciler.set_category(CATEGORY_ID)
        await reconciler.full_reset()
        return reconciler, ordered

    @pytest.mark.asyncio
    async def test_unchanged_training_is_not_edited(self, gateway, repos):
        reconciler, ordered = await self.built_board(gateway, repos)
        edits = gateway.edited

        assert await reconciler.update_training(ordered[0].id) is BoardAction.UNCHANGED
        assert gateway.edited == edits

    @pytest.mark.asyncio
    async def test_signup_count_change_edits_in_place(self, gateway, repos):
        reconciler, ordered = await self.built_board(gateway, repos)
        user = await repos.users.upsert_user(42, "Some Name.1234")
        role = await repos.roles.create_role("Healer", "heal", "💚")
        await repos.signups.upsert_signup(user.id, ordered[1].id, [role.id])
        before = reconciler.state.message_for_training(ordered[1].id).message_id

        assert await reconciler.update_training(ordered[1].id) is BoardAction.EDITED

        assert reconciler.state.message_for_training(ordered[1].id).message_id == before
        assert "`Sign-up count`   1" in gateway.messages[before].view.embeds[0].description

    @pytest.mark.asyncio
    async def test_deactivation_removes_only_that_message(self, gateway, repos):
        reconciler, ordered = await self.built_board(gateway, repos)
        kept = reconciler.state.message_for_training(ordered[3].id).message_id
        sent = gateway.sent

        await repos.trainings.deactivate(ordered[2].id)
        assert await reconciler.update_training(ordered[2].id) is BoardAction.DELETED

        assert gateway.sent == sent
        assert kept in gateway.messages
        assert gateway.board_footers() == [
            footers(ordered[0:2]), footers(ordered[3:4]), footers(ordered[4:5])
        ]

    @pytest.mark.asyncio
    async def test_last_training_of_a_day_removes_the_channel(self, gateway, repos):
        reconciler, ordered = await self.built_board(gateway, repos)

        await repos.trainings.deactivate(ordered[4].id)
        await reconciler.update_training(ordered[4].id)

        assert gateway.channel_names() == ["2026-10-20-tue", "2026-10-22-thu"]
        assert date(2026, 10, 24) not in reconciler.state.channels
        assert await reconciler.update_training(ordered[4].id) is BoardAction.ABSENT

    @pytest.mark.asyncio
    async def test_new_day_channel_is_inserted_in_order(self, gateway, repos):
        reconciler, ordered = await self.built_board(gateway, repos)
        extra = await open_training(repos, "Raid Night", at(21, 18))

        assert await reconciler.update_training(extra.id) is BoardAction.CREATED

        assert gateway.channel_names() == [
            "2026-10-20-tue", "2026-10-21-wed", "2026-10-22-thu", "2026-10-24-sat"
        ]
        assert gateway.board_footers()[1] == footers([extra])

    @pytest.mark.asyncio
    async def test_appended_training_keeps_existing_messages(self, gateway, repos):
        reconciler, ordered = await self.built_board(gateway, repos)
        existing = [m.message_id for m in reconciler.state.messages_for_day(date(2026, 10, 24))]
        extra = await open_training(repos, "Raid Night", at(24, 22))

        await reconciler.update_training(extra.id)

        day = [m.message_id for m in reconciler.state.messages_for_day(date(2026, 10, 24))]
        assert day[:1] == existing
        assert gateway.board_footers()[2] == footers([ordered[4], extra])

    @pytest.mark.asyncio
    async def test_training_sorting_first_reposts_its_day(self, gateway, repos):
        reconciler, ordered = await self.built_board(gateway, repos)
        extra = await open_training(repos, "Beginner Training", at(24, 8))

        await reconciler.update_training(extra.id)

        assert gateway.board_footers()[2] == footers([extra, ordered[4]])
        assert len(reconciler.state.messages_for_day(date(2026, 10, 24))) == 2

    @pytest.mark.asyncio
    async def test_closing_removes_signup_buttons(self, gateway, repos):
        reconciler, ordered = await self.built_board(gateway, repos)
        await repos.trainings.set_state(ordered[0].id, TrainingState.CLOSED)

        assert await reconciler.update_training(ordered[0].id) is BoardAction.EDITED

        message_id = reconciler.state.message_for_training(ordered[0].id).message_id
        view = gateway.messages[message_id].view
        assert [b.custom_id for b in view.rows[0]] == ["overview:list", "overview:register"]

    @pytest.mark.asyncio
    async def test_vanished_message_is_posted_again(self, gateway, repos):
        reconciler, ordered = await self.built_board(gateway, repos)
        old = reconciler.state.message_for_training(ordered[4].id).message_id
        del gateway.messages[old]
        await repos.trainings.set_state(ordered[4].id, TrainingState.CLOSED)

        assert await reconciler.update_training(ordered[4].id) is BoardAction.CREATED

        new = reconciler.state.message_for_training(ordered[4].id).message_id
        assert new != old
        assert new in gateway.messages

    @pytest.mark.asyncio
    async def test_new_first_day_goes_before_every_channel(self, gateway, repos):
        reconciler, ordered = await self.built_board(gateway, repos)
        extra = await open_training(repos, "Raid Night", at(19, 18))

        await reconciler.update_training(extra.id)

        assert gateway.channel_names() == [
            "2026-10-19-mon", "2026-10-20-tue", "2026-10-22-thu", "2026-10-24-sat"
        ]

    @pytest.mark.asyncio
    async def test_deleted_day_channel_is_recreated_on_update(self, gateway, repos):
        reconciler, ordered = await self.built_board(gateway, repos)
        await gateway.delete_channel(reconciler.state.channels[date(2026, 10, 22)])
        user = await repos.users.upsert_user(42, "Some Name.1234")
        role = await repos.roles.create_role("Healer", "heal", "💚")
        await repos.signups.upsert_signup(user.id, ordered[2].id, [role.id])

        assert await reconciler.update_training(ordered[2].id) is BoardAction.CREATED

        assert gateway.channel_names() == ["2026-10-20-tue", "2026-10-22-thu", "2026-10-24-sat"]
        assert gateway.board_footers() == [
            footers(ordered[0:2]), footers(ordered[2:4]), footers(ordered[4:5])
        ]
        channel_id = reconciler.state.channels[date(2026, 10, 22)]
        assert channel_id in gateway.channels
        assert {m.channel_id for m in reconciler.state.messages_for_day(date(2026, 10, 22))} == {channel_id}

    @pytest.mark.asyncio
    async def test_without_category_nothing_is_posted(self, gateway, repos):
        training = await open_training(repos, "Raid Night", at(20, 18))
        reconciler = BoardReconciler(gateway, repos)

        assert await reconciler.update_training(training.id) is BoardAction.ABSENT
        assert gateway.sent == 0


class TestRefresh:

    @pytest.mark.asyncio
    async def test_without_category_is_a_noop(self, gateway, repos):
        await seed_week(repos)
        report = await BoardReconciler(gateway, repos).refresh()
        assert report.messages_created == 0
        assert gateway.sent == 0

    @pytest.mark.asyncio
    async def test_refresh_after_reset_changes_nothing(self, gateway, repos):
        await seed_week(repos)
        reconciler = BoardReconciler(gateway, repos)
        await reconciler.set_category(CATEGORY_ID)
        await reconciler.full_reset()
        sent, edited = gateway.sent, gateway.edited

        report = await reconciler.refresh()

        assert report.messages_unchanged == 5
        assert (gateway.sent, gateway.edited) == (sent, edited)

    @pytest.mark.asyncio
    async def test_refresh_applies_pending_changes(self, gateway, repos):
        ordered = await seed_week(repos)
        reconciler = BoardReconciler(gateway, repos)
        await reconciler.set_category(CATEGORY_ID)
        await reconciler.full_reset()

        await repos.trainings.deactivate(ordered[4].id)
        await repos.trainings.set_state(ordered[0].id, TrainingState.CLOSED)
        added = await open_training(repos, "Raid Night", at(23, 18))

        report = await reconciler.refresh()

        assert report.messages_deleted == 1
        assert report.messages_edited == 1
        assert report.messages_created == 1
        assert gateway.channel_names() == [
            "2026-10-20-tue", "2026-10-22-thu", "2026-10-23-fri"
        ]
        assert gateway.board_footers()[2] == footers([added])

    @pytest.mark.asyncio
    async def test_refresh_recreates_a_deleted_day_channel(self, gateway, repos):
        ordered = await seed_week(repos)
        reconciler = BoardReconciler(gateway, repos)
        await reconciler.set_category(CATEGORY_ID)
        await reconciler.full_reset()
        await gateway.delete_channel(reconciler.state.channels[date(2026, 10, 24)])
        added = await open_training(repos, "Raid Night", at(24, 22))

        report = await reconciler.refresh()

        assert report.channels_created == 1
        assert report.messages_created == 2
        assert gateway.channel_names() == ["2026-10-20-tue", "2026-10-22-thu", "2026-10-24-sat"]
        assert gateway.board_footers()[2] == footers([ordered[4], added])

    @pytest.mark.asyncio
    async def test_refresh_inserts_a_middle_day_in_order(self, gateway, repos):
        await seed_week(repos)
        reconciler = BoardReconciler(gateway, repos)
        await reconciler.set_category(CATEGORY_ID)
        await reconciler.full_reset()
        await open_training(repos, "Raid Night", at(21, 18))

        await reconciler.refresh()

        assert gateway.channel_names() == [
            "2026-10-20-tue", "2026-10-21-wed", "2026-10-22-thu", "2026-10-24-sat"
        ]

    @pytest.mark.asyncio
    async def test_rescheduled_training_moves_to_its_new_day(self, gateway, repos):
        ordered = await seed_week(repos)
        reconciler = BoardReconciler(gateway, repos)
        await reconciler.set_category(CATEGORY_ID)
        await reconciler.full_reset()

        await repos.trainings.connection.execute(
            "UPDATE trainings SET date = ? WHERE id = ?",
            (at(22, 21).isoformat(), ordered[0].id)
        )
        assert await reconciler.update_training(ordered[0].id) is BoardAction.MOVED

        assert gateway.board_footers() == [
            footers(ordered[1:2]), footers([ordered[0], ordered[2], ordered[3]]), footers(ordered[4:5])
        ]


class TestBoardScheduler:

    def test_status_text(self):
        assert status_text(0) == "0 trainings available"
        assert status_text(1) == "1 training available"
        assert status_text(3) == "3 trainings available"

    @pytest.mark.asyncio
    async def test_run_once_refreshes_and_sets_status(self, gateway, repos):
        ordered = await seed_week(repos)
        await repos.trainings.set_state(ordered[0].id, TrainingState.CLOSED)
        reconciler = BoardReconciler(gateway, repos)
        await reconciler.set_category(CATEGORY_ID)
        scheduler = BoardScheduler(reconciler, gateway, repos.trainings)

        await scheduler.run_once()

        assert len(gateway.messages) == 5
        assert gateway.status == "4 trainings available"

    @pytest.mark.asyncio
    async def test_start_and_stop(self, gateway, repos):
        scheduler = BoardScheduler(BoardReconciler(gateway, repos), gateway, repos.trainings,
                                   interval_seconds=3600)
        await scheduler.start()
        try:
            assert scheduler.is_running
            assert scheduler.scheduler.get_job("board_refresh") is not None
            await scheduler.start()
        finally:
            await scheduler.stop(wait=False)
        assert not scheduler.is_running
