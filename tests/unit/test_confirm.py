"""
Tests for the Confirm/Abort step.
"""

import asyncio

import pytest

from signup_bot.conversation import ABORT_ID, CONFIRM_ID, ConfirmOutcome, confirm_abort
from signup_bot.gateway import InteractionEvent, MessageView


async def start_confirm(gateway, timeout=2.0):
    message = await gateway.send_message(5, MessageView.info("Loading..."))
    task = asyncio.create_task(confirm_abort(
        gateway, message, 1, MessageView.info("Are you sure?"), timeout=timeout
    ))
    return message, task


class TestConfirmAbort:

    @pytest.mark.asyncio
    async def test_confirm(self, gateway):
        message, task = await start_confirm(gateway)
        await gateway.click(1, CONFIRM_ID, message_id=message.id)

        assert await task is ConfirmOutcome.CONFIRMED
        row = gateway.messages[message.id].view.rows[-1]
        assert [b.custom_id for b in row] == [CONFIRM_ID, ABORT_ID]

    @pytest.mark.asyncio
    async def test_abort(self, gateway):
        message, task = await start_confirm(gateway)
        await gateway.click(1, ABORT_ID, message_id=message.id)
        assert await task is ConfirmOutcome.ABORTED

    @pytest.mark.asyncio
    async def test_timeout(self, gateway):
        _, task = await start_confirm(gateway, timeout=0.05)
        assert await task is ConfirmOutcome.TIMED_OUT
        assert len(gateway.collector) == 0

    @pytest.mark.asyncio
    async def test_other_users_and_messages_are_ignored(self, gateway):
        message, task = await start_confirm(gateway)
        await asyncio.sleep(0.01)

        assert gateway.collector.dispatch(InteractionEvent.button(2, 5, message.id, CONFIRM_ID)) == 0
        assert gateway.collector.dispatch(InteractionEvent.button(1, 5, message.id + 1, CONFIRM_ID)) == 0
        assert gateway.collector.dispatch(InteractionEvent.button(1, 5, message.id, "item:1")) == 0

        await gateway.click(1, ABORT_ID, message_id=message.id)
        assert await task is ConfirmOutcome.ABORTED
