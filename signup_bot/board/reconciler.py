"""
Keeps the board in the board category in sync with the active trainings.

The board has one channel per day that holds at least one active training,
ordered by day, and one message per active training inside it, in
``Training.board_sort_key`` order. The mapping between days, channels,
messages and trainings is the BoardState, persisted after every change.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from itertools import groupby
from typing import List, Optional

from ..data.repositories import Repositories
from ..exceptions import BoardNotConfigured, GatewayNotFound, create_error_context
from ..gateway.base import ChatGateway, MessageRef
from ..gateway.view import MessageView
from ..models.board import BoardMessage, BoardState
from ..models.training import Training
from .render import TrainingDetails, channel_name, render_training

logger = logging.getLogger(__name__)


class BoardAction(Enum):
    """What ``update_training`` did to a training's message."""
    CREATED = "created"
    EDITED = "edited"
    UNCHANGED = "unchanged"
    MOVED = "moved"
    DELETED = "deleted"
    ABSENT = "absent"


@dataclass
class ReconcileReport:
    channels_created: int = 0
    channels_deleted: int = 0
    messages_created: int = 0
    messages_edited: int = 0
    messages_deleted: int = 0
    messages_unchanged: int = 0

    def record(self, action: BoardAction) -> None:
        if action is BoardAction.CREATED:
            self.messages_created += 1
        elif action is BoardAction.EDITED:
            self.messages_edited += 1
        elif action is BoardAction.UNCHANGED:
            self.messages_unchanged += 1
        elif action is BoardAction.DELETED:
            self.messages_deleted += 1
        elif action is BoardAction.MOVED:
            self.messages_deleted += 1
            self.messages_created += 1

    def summary(self) -> str:
        return (
            f"channels +{self.channels_created}/-{self.channels_deleted}, "
            f"messages +{self.messages_created}/~{self.messages_edited}/-{self.messages_deleted}, "
            f"{self.messages_unchanged} unchanged"
        )


class BoardReconciler:
    """Applies minimal changes to bring the board in line with the repository.

    All public operations hold one lock, so at most one reconciliation runs
    at a time.
    """

    def __init__(self, gateway: ChatGateway, repos: Repositories):
        self.gateway = gateway
        self.repos = repos
        self.state = BoardState()
        self._loaded = False
        self._lock = asyncio.Lock()
        self._report: Optional[ReconcileReport] = None

    async def load(self) -> None:
        """Read the persisted board state."""
        async with self._lock:
            self.state = await self.repos.board.load_state()
            self._loaded = True
            logger.info(
                f"Board state loaded: {len(self.state.channels)} channels, "
                f"{len(self.state.messages)} messages"
            )

    @property
    def category_id(self) -> Optional[int]:
        return self.state.category_id

    async def set_category(self, category_id: int) -> None:
        """Set the category the board lives in. Takes effect on the next reset."""
        async with self._lock:
            await self._ensure_loaded()
            self.state.category_id = category_id
            await self.repos.board.save_category(category_id)

    async def full_reset(self) -> ReconcileReport:
        """
        Delete every channel in the board category, plus any channel still
        tracked from an earlier category, and rebuild the board.

        Returns:
            Counts of what was created and deleted

        Raises:
            BoardNotConfigured: No board category is set
        """
        async with self._lock:
            await self._ensure_loaded()
            category_id = self._require_category("board_full_reset")
            report = self._report = ReconcileReport()
            try:
                listed = [c.id for c in await self.gateway.list_category_channels(category_id)]
                # Channels of a previous board category are tracked but not listed
                stale = [c for c in self.state.channels.values() if c not in listed]
                for channel_id in listed + stale:
                    await self._delete_channel_quietly(channel_id)

                self.state.reset()
                await self.repos.board.clear()

                trainings = sorted(
                    await self.repos.trainings.list_active_trainings(),
                    key=Training.board_sort_key
                )
                for position, (day, group) in enumerate(groupby(trainings, key=lambda t: t.day)):
                    channel_id = await self._create_channel(day, position)
                    for training in group:
                        await self._post(training, channel_id)
                        report.messages_created += 1
            finally:
                self._report = None

            logger.info(f"Board reset: {report.summary()}")
            return report

    async def update_training(self, training_id: int) -> BoardAction:
        """
        Bring one training's message in line with the repository.

        Creates, edits, moves or deletes only that message, plus its day
        channel when the channel has to appear or becomes empty.
        """
        async with self._lock:
            await self._ensure_loaded()
            action = await self._update(training_id)
            if action is not BoardAction.UNCHANGED:
                logger.info(f"Board message of training {training_id}: {action.value}")
            return action

    async def refresh(self) -> ReconcileReport:
        """Update every active or tracked training and drop empty channels."""
        async with self._lock:
            await self._ensure_loaded()
            report = self._report = ReconcileReport()
            try:
                if self.state.category_id is None:
                    logger.debug("Board refresh skipped: no category configured")
                    return report

                active = sorted(
                    await self.repos.trainings.list_active_trainings(),
                    key=Training.board_sort_key
                )
                active_ids = {t.id for t in active}

                await self._forget_missing_channels(self.state.category_id)

                # Removals first
                for training_id in self.state.tracked_training_ids():
                    if training_id not in active_ids:
                        report.record(await self._update(training_id))

                for training in active:
                    report.record(await self._update(training.id))

                for day in sorted(self.state.channels):
                    if not self.state.messages_for_day(day):
                        await self._drop_channel(day)
            finally:
                self._report = None

            if report.messages_created or report.messages_edited or report.messages_deleted:
                logger.info(f"Board refreshed: {report.summary()}")
            return report

    async def _forget_missing_channels(self, category_id: int) -> None:
        """Forget day channels that are no longer in the board category.

        Their trainings are posted again by the rest of the refresh.
        """
        present = {c.id for c in await self.gateway.list_category_channels(category_id)}
        for day, channel_id in sorted(self.state.channels.items()):
            if channel_id not in present:
                logger.warning(f"Board channel {channel_id} for {day} is missing from the category")
                await self._delete_channel_quietly(channel_id)
                await self._forget_day(day)

    async def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.state = await self.repos.board.load_state()
            self._loaded = True

    def _require_category(self, operation: str) -> int:
        if self.state.category_id is None:
            raise BoardNotConfigured(context=create_error_context(operation=operation))
        return self.state.category_id

    async def _update(self, training_id: int) -> BoardAction:
        training = await self.repos.trainings.get_training(training_id)
        entry = self.state.message_for_training(training_id)

        if training is None or not training.is_active:
            if entry is None:
                return BoardAction.ABSENT
            await self._remove(entry)
            return BoardAction.DELETED

        if self.state.category_id is None:
            logger.debug(f"Board not configured, training {training_id} not posted")
            return BoardAction.ABSENT
        view = await self._render(training)

        moved = False
        if entry is not None and entry.day != training.day:
            await self._remove(entry)
            entry = None
            moved = True

        if entry is not None:
            fingerprint = view.fingerprint()
            if entry.fingerprint == fingerprint:
                return BoardAction.UNCHANGED
            try:
                await self.gateway.edit_message(MessageRef(entry.channel_id, entry.message_id), view)
            except GatewayNotFound:
                logger.warning(f"Board message {entry.message_id} vanished, posting it again")
                await self._forget_message(entry)
            else:
                entry.fingerprint = fingerprint
                await self.repos.board.save_message(entry)
                return BoardAction.EDITED

        await self._insert(training, view)
        return BoardAction.MOVED if moved else BoardAction.CREATED

    async def _insert(self, training: Training, view: MessageView) -> None:
        """Post a training's message in its day channel, keeping the day ordered.

        A tracked day channel that no longer exists is recreated with every
        active training of that day.
        """
        day = training.day
        channel_id = self.state.channels.get(day)
        if channel_id is None:
            channel_id = await self._add_day_channel(day)
            await self._post(training, channel_id, view)
            return

        try:
            await self._insert_in_day(training, view, channel_id)
        except GatewayNotFound:
            logger.warning(f"Board channel {channel_id} for {day} is gone, recreating it")
            await self._forget_day(day)
            channel_id = await self._add_day_channel(day)
            await self._repost_day(day, channel_id, await self._active_on(day))

    async def _insert_in_day(self, training: Training, view: MessageView, channel_id: int) -> None:
        day = training.day
        day_trainings = await self._active_on(day)
        tracked = {m.training_id for m in self.state.messages_for_day(day)}
        wanted = [t.id for t in day_trainings if t.id in tracked or t.id == training.id]
        posted = [m.training_id for m in self.state.messages_for_day(day)] + [training.id]

        if wanted == posted:
            await self._post(training, channel_id, view)
        else:
            await self._repost_day(day, channel_id, day_trainings)

    async def _active_on(self, day: date) -> List[Training]:
        return sorted(
            (t for t in await self.repos.trainings.list_active_trainings() if t.day == day),
            key=Training.board_sort_key
        )

    async def _repost_day(self, day: date, channel_id: int, trainings: List[Training]) -> None:
        logger.debug(f"Reposting {len(trainings)} board messages for {day}")
        for entry in self.state.messages_for_day(day):
            await self._delete_message_quietly(entry)
            await self._forget_message(entry)
        for training in trainings:
            await self._post(training, channel_id)

    async def _render(self, training: Training) -> MessageView:
        details = TrainingDetails(
            training=training,
            signup_count=await self.repos.signups.count_for_training(training.id),
            tier=await self.repos.tiers.tier_for_training(training.id),
            bosses=tuple(await self.repos.trainings.bosses_for_training(training.id))
        )
        return render_training(details)

    async def _post(self, training: Training, channel_id: int,
                    view: Optional[MessageView] = None) -> BoardMessage:
        if view is None:
            view = await self._render(training)
        ref = await self.gateway.send_message(channel_id, view)
        entry = BoardMessage(
            message_id=ref.id,
            channel_id=channel_id,
            training_id=training.id,
            day=training.day,
            fingerprint=view.fingerprint()
        )
        self.state.messages[ref.id] = entry
        await self.repos.board.save_message(entry)
        return entry

    async def _remove(self, entry: BoardMessage) -> None:
        """Delete a training's message and its channel if that empties the day."""
        await self._delete_message_quietly(entry)
        await self._forget_message(entry)
        if not self.state.messages_for_day(entry.day):
            await self._drop_channel(entry.day)

    async def _forget_message(self, entry: BoardMessage) -> None:
        self.state.messages.pop(entry.message_id, None)
        await self.repos.board.delete_message(entry.message_id)

    async def _forget_day(self, day: date) -> None:
        """Drop a day channel and its messages from the state without touching the platform."""
        self.state.channels.pop(day, None)
        for entry in self.state.messages_for_day(day):
            await self._forget_message(entry)
        await self.repos.board.delete_channel(day)

    async def _add_day_channel(self, day: date) -> int:
        """Create a day channel and move it right after the closest earlier day."""
        earlier = [self.state.channels[d] for d in sorted(self.state.channels, reverse=True) if d < day]
        channel_id = await self._create_channel(day)
        for after_channel_id in earlier:
            try:
                await self.gateway.move_channel(channel_id, after_channel_id)
                return channel_id
            except GatewayNotFound:
                logger.debug(f"Board channel {after_channel_id} is gone, trying an earlier day")
        await self.gateway.move_channel(channel_id)
        return channel_id

    async def _create_channel(self, day: date, position: Optional[int] = None) -> int:
        category_id = self._require_category("board_create_channel")
        channel = await self.gateway.create_channel(category_id, channel_name(day), position)
        self.state.channels[day] = channel.id
        await self.repos.board.save_channel(day, channel.id)
        if self._report is not None:
            self._report.channels_created += 1
        logger.debug(f"Created board channel {channel.id} for {day}")
        return channel.id

    async def _drop_channel(self, day: date) -> None:
        channel_id = self.state.channels.pop(day, None)
        if channel_id is None:
            return
        await self._delete_channel_quietly(channel_id)
        await self.repos.board.delete_channel(day)
        logger.debug(f"Deleted board channel {channel_id} for {day}")

    async def _delete_channel_quietly(self, channel_id: int) -> None:
        try:
            await self.gateway.delete_channel(channel_id)
        except GatewayNotFound:
            logger.debug(f"Board channel {channel_id} was already gone")
            return
        if self._report is not None:
            self._report.channels_deleted += 1

    async def _delete_message_quietly(self, entry: BoardMessage) -> None:
        try:
            await self.gateway.delete_message(MessageRef(entry.channel_id, entry.message_id))
        except GatewayNotFound:
            logger.debug(f"Board message {entry.message_id} was already gone")
