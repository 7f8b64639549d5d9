"""
Tests for the paged multi-select workflow.
"""

import asyncio

import pytest

from signup_bot.conversation import (
    ABORT_ID, CONFIRM_ID, PAGE_NEXT_ID, PAGE_PREV_ID, PagedSelector, SelectionState,
    SelectorConfig, SelectorItem, SelectorOutcome
)
from signup_bot.gateway import ButtonStyle, InteractionEvent, MessageView


def items(count):
    return [SelectorItem(str(i), f"Item {i}") for i in range(count)]


def button_ids(view):
    return [[b.custom_id for b in row] for row in view.rows]


class TestSelectionState:

    def test_empty_domain_is_rejected(self):
        with pytest.raises(ValueError):
            SelectionState([], 4)

    def test_pages_wrap_around(self):
        state = SelectionState([str(i) for i in range(10)], 4)
        assert state.page_count == 3
        assert state.page_items() == ("0", "1", "2", "3")

        state.prev_page()
        assert state.page == 2
        assert state.page_items() == ("8", "9")
        state.next_page()
        assert state.page == 0

    def test_toggle_and_bounds(self):
        state = SelectionState(["a", "b", "c"], 4, min_select=1, max_select=2)
        assert not state.can_confirm()
        state.toggle("c")
        state.toggle("a")
        assert state.can_confirm()
        assert state.selected_in_order() == ("a", "c")
        state.toggle("b")
        assert not state.can_confirm()
        state.toggle("b")
        assert state.selected == {"a", "c"}

    def test_unknown_preselection_is_dropped(self):
        state = SelectionState(["a", "b"], 4, selected=["b", "zz"])
        assert state.selected == {"b"}

    def test_min_above_domain_is_rejected(self):
        with pytest.raises(ValueError):
            SelectionState(["a"], 4, min_select=2)


class TestSelectorConfig:

    def test_controls_need_a_free_row(self):
        with pytest.raises(ValueError):
            SelectorConfig(rows_per_page=5)

    def test_max_below_min(self):
        with pytest.raises(ValueError):
            SelectorConfig(min_select=2, max_select=1)


class TestPagedSelector:

    async def start(self, gateway, count, config=None, pre_selected=()):
        message = await gateway.send_message(5, MessageView.info("Loading..."))
        selector = PagedSelector(
            gateway, message, 1, items(count),
            config or SelectorConfig(items_per_row=2, rows_per_page=2, timeout=2.0),
            pre_selected
        )
        return message, selector, asyncio.create_task(selector.run())

    @pytest.mark.asyncio
    async def test_single_page_has_no_navigation(self, gateway):
        message, _, task = await self.start(gateway, 3)
        await gateway.click(1, "item:1", message_id=message.id)
        await gateway.click(1, CONFIRM_ID, message_id=message.id)

        result = await task
        assert result.finished
        assert result.selected == ("1",)
        assert button_ids(gateway.messages[message.id].view)[-1] == [CONFIRM_ID, ABORT_ID]

    @pytest.mark.asyncio
    async def test_layout_and_paging(self, gateway):
        message, selector, task = await self.start(gateway, 10)
        await gateway.click(1, "item:0", message_id=message.id)
        await gateway.click(1, PAGE_NEXT_ID, message_id=message.id)
        await gateway.click(1, "item:5", message_id=message.id)

        # Wait for the re-render after the toggle
        for _ in range(100):
            if "5" in selector.state.selected:
                break
            await asyncio.sleep(0.01)
        view = selector.render()
        assert button_ids(view) == [
            ["item:4", "item:5"],
            ["item:6", "item:7"],
            [PAGE_PREV_ID, PAGE_NEXT_ID, CONFIRM_ID, ABORT_ID],
        ]
        assert view.rows[0][1].style is ButtonStyle.SUCCESS
        assert view.rows[0][0].style is ButtonStyle.SECONDARY
        assert view.embeds[-1].footer == "Page 2/3"

        await gateway.click(1, CONFIRM_ID, message_id=message.id)
        result = await task
        assert result.selected == ("0", "5")

    @pytest.mark.asyncio
    async def test_confirm_below_minimum_shows_notice(self, gateway):
        message, _, task = await self.start(gateway, 3)
        await gateway.click(1, CONFIRM_ID, message_id=message.id)
        await gateway.click(1, "item:2", message_id=message.id)

        assert not task.done()
        await gateway.click(1, CONFIRM_ID, message_id=message.id)
        result = await task
        assert result.selected == ("2",)

    @pytest.mark.asyncio
    async def test_notice_shown_after_invalid_confirm(self, gateway):
        message, _, task = await self.start(gateway, 3)
        await gateway.click(1, CONFIRM_ID, message_id=message.id)

        notice_seen = False
        for _ in range(100):
            fields = gateway.messages[message.id].view.embeds[-1].fields
            if any("Select at least 1." in f.value for f in fields):
                notice_seen = True
                break
            await asyncio.sleep(0.01)
        assert notice_seen

        await gateway.click(1, ABORT_ID, message_id=message.id)
        assert (await task).outcome is SelectorOutcome.ABORTED

    @pytest.mark.asyncio
    async def test_zero_minimum_confirms_empty(self, gateway):
        config = SelectorConfig(min_select=0, timeout=2.0)
        message, _, task = await self.start(gateway, 2, config)
        await gateway.click(1, CONFIRM_ID, message_id=message.id)
        result = await task
        assert result.finished
        assert result.selected == ()

    @pytest.mark.asyncio
    async def test_pre_selected_items_can_be_removed(self, gateway):
        message, _, task = await self.start(gateway, 3, pre_selected=["0", "2"])
        await gateway.click(1, "item:0", message_id=message.id)
        await gateway.click(1, CONFIRM_ID, message_id=message.id)
        assert (await task).selected == ("2",)

    @pytest.mark.asyncio
    async def test_timeout(self, gateway):
        config = SelectorConfig(timeout=0.05)
        _, _, task = await self.start(gateway, 3, config)
        result = await task
        assert result.outcome is SelectorOutcome.TIMED_OUT
        assert result.selected == ()

    @pytest.mark.asyncio
    async def test_items_of_other_pages_are_not_accepted(self, gateway):
        message, _, task = await self.start(gateway, 10)
        await gateway.click(1, "item:1", message_id=message.id)

        await asyncio.sleep(0.05)
        event = InteractionEvent.button(1, 5, message.id, "item:9")
        assert gateway.collector.dispatch(event) == 0

        await gateway.click(1, ABORT_ID, message_id=message.id)
        assert (await task).outcome is SelectorOutcome.ABORTED
