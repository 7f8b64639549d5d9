"""
Paged multi-select workflow.

Items are shown as toggle buttons, a page at a time, with Confirm/Abort and
page navigation controls on the last row. Every input re-renders the whole
message from the current SelectionState.
"""

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..gateway.base import ChatGateway, MessageRef
from ..gateway.events import CollectorFilter, EventKind, InteractionEvent, TIMED_OUT
from ..gateway.view import (
    ButtonSpec, ButtonStyle, EmbedSpec, MessageView, MAX_BUTTONS_PER_ROW, MAX_ROWS, chunk_buttons
)
from .confirm import CONFIRM_ID, ABORT_ID

logger = logging.getLogger(__name__)

ITEM_PREFIX = "item:"
PAGE_PREV_ID = "page_prev"
PAGE_NEXT_ID = "page_next"


@dataclass(frozen=True)
class SelectorItem:
    id: str
    label: str
    emoji: Optional[str] = None


@dataclass
class SelectorConfig:
    """Layout, bounds and timeout of a selector.

    ``max_select`` defaults to the size of the domain. ``timeout`` applies to
    each wait for input.
    """
    items_per_row: int = 4
    rows_per_page: int = 3
    min_select: int = 1
    max_select: Optional[int] = None
    timeout: Optional[float] = 180.0
    title: str = "Select"
    description: Optional[str] = None
    header: Tuple[EmbedSpec, ...] = ()

    def __post_init__(self):
        if not 1 <= self.items_per_row <= MAX_BUTTONS_PER_ROW:
            raise ValueError(f"items_per_row must be between 1 and {MAX_BUTTONS_PER_ROW}")
        # The last row is reserved for the controls
        if not 1 <= self.rows_per_page <= MAX_ROWS - 1:
            raise ValueError(f"rows_per_page must be between 1 and {MAX_ROWS - 1}")
        if self.min_select < 0:
            raise ValueError("min_select must not be negative")
        if self.max_select is not None and self.max_select < self.min_select:
            raise ValueError("max_select must not be smaller than min_select")

    @property
    def items_per_page(self) -> int:
        return self.items_per_row * self.rows_per_page


class SelectionState:
    """Selected subset and current page of a fixed, ordered item domain."""

    def __init__(self, domain: Sequence[str], items_per_page: int,
                 min_select: int = 1, max_select: Optional[int] = None,
                 selected: Iterable[str] = ()):
        if not domain:
            raise ValueError("Nothing to select from")
        if len(set(domain)) != len(domain):
            raise ValueError("Item ids must be unique")
        self.domain: Tuple[str, ...] = tuple(domain)
        self.items_per_page = items_per_page
        self.min_select = min_select
        self.max_select = len(self.domain) if max_select is None else max_select
        if self.min_select > len(self.domain):
            raise ValueError("min_select exceeds the number of items")
        known = set(self.domain)
        self.selected = {item for item in selected if item in known}
        self.page = 0

    @property
    def page_count(self) -> int:
        return math.ceil(len(self.domain) / self.items_per_page)

    def page_items(self) -> Tuple[str, ...]:
        start = self.page * self.items_per_page
        return self.domain[start:start + self.items_per_page]

    def toggle(self, item: str) -> None:
        if item not in self.domain:
            raise ValueError(f"Unknown item {item!r}")
        if item in self.selected:
            self.selected.remove(item)
        else:
            self.selected.add(item)

    def next_page(self) -> None:
        self.page = (self.page + 1) % self.page_count

    def prev_page(self) -> None:
        self.page = (self.page - 1) % self.page_count

    def can_confirm(self) -> bool:
        return self.min_select <= len(self.selected) <= self.max_select

    def selected_in_order(self) -> Tuple[str, ...]:
        return tuple(item for item in self.domain if item in self.selected)


class SelectorOutcome(Enum):
    FINISHED = "finished"
    ABORTED = "aborted"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class SelectionResult:
    outcome: SelectorOutcome
    selected: Tuple[str, ...] = ()

    @property
    def finished(self) -> bool:
        return self.outcome is SelectorOutcome.FINISHED


class PagedSelector:
    """Multi-select over ``items`` on an existing message."""

    def __init__(self, gateway: ChatGateway, message: MessageRef, author_id: int,
                 items: Sequence[SelectorItem], config: Optional[SelectorConfig] = None,
                 pre_selected: Iterable[str] = ()):
        self.gateway = gateway
        self.message = message
        self.author_id = author_id
        self.config = config or SelectorConfig()
        self.items: Dict[str, SelectorItem] = {item.id: item for item in items}
        self.state = SelectionState(
            [item.id for item in items],
            self.config.items_per_page,
            self.config.min_select,
            self.config.max_select,
            pre_selected
        )
        self._handlers: Dict[str, Callable[[], Optional[SelectionResult]]] = {
            CONFIRM_ID: self._on_confirm,
            ABORT_ID: self._on_abort,
            PAGE_PREV_ID: self._on_prev,
            PAGE_NEXT_ID: self._on_next,
        }
        self._notice: Optional[str] = None

    def render(self) -> MessageView:
        state = self.state
        embed = EmbedSpec(title=self.config.title, description=self.config.description)

        chosen = [self._label(item) for item in state.selected_in_order()]
        embed = embed.with_field(
            f"Selected ({len(chosen)})", "\n".join(chosen) if chosen else "None"
        )
        if self._notice:
            embed = embed.with_field("⚠️ Notice", self._notice)
        if state.page_count > 1:
            embed = replace(embed, footer=f"Page {state.page + 1}/{state.page_count}")

        buttons = []
        for item_id in state.page_items():
            item = self.items[item_id]
            buttons.append(ButtonSpec(
                ITEM_PREFIX + item_id,
                item.label,
                ButtonStyle.SUCCESS if item_id in state.selected else ButtonStyle.SECONDARY,
                emoji=item.emoji
            ))

        controls: List[ButtonSpec] = []
        if state.page_count > 1:
            controls.append(ButtonSpec(PAGE_PREV_ID, "Previous", ButtonStyle.PRIMARY, emoji="◀️"))
            controls.append(ButtonSpec(PAGE_NEXT_ID, "Next", ButtonStyle.PRIMARY, emoji="▶️"))
        controls.append(ButtonSpec(CONFIRM_ID, "Confirm", ButtonStyle.SUCCESS, emoji="✅"))
        controls.append(ButtonSpec(ABORT_ID, "Abort", ButtonStyle.DANGER, emoji="❌"))

        rows = chunk_buttons(buttons, self.config.items_per_row) + (tuple(controls),)
        return MessageView(embeds=self.config.header + (embed,), rows=rows)

    async def run(self) -> SelectionResult:
        """Run until the user confirms a valid selection, aborts, or stops answering."""
        while True:
            await self.gateway.edit_message(self.message, self.render())
            self._notice = None

            event = await self.gateway.await_interaction(self._filter())
            if event is TIMED_OUT:
                logger.debug(f"Selector for user {self.author_id} timed out")
                return SelectionResult(SelectorOutcome.TIMED_OUT)

            result = self._handle(event)
            if result is not None:
                return result

    def _handle(self, event: InteractionEvent) -> Optional[SelectionResult]:
        key = event.custom_id
        if key.startswith(ITEM_PREFIX):
            self.state.toggle(key[len(ITEM_PREFIX):])
            return None
        return self._handlers[key]()

    def _on_confirm(self) -> Optional[SelectionResult]:
        if self.state.can_confirm():
            return SelectionResult(SelectorOutcome.FINISHED, self.state.selected_in_order())
        self._notice = self._bounds_notice()
        return None

    def _on_abort(self) -> SelectionResult:
        return SelectionResult(SelectorOutcome.ABORTED)

    def _on_prev(self) -> None:
        self.state.prev_page()

    def _on_next(self) -> None:
        self.state.next_page()

    def _filter(self) -> CollectorFilter:
        ids = {ITEM_PREFIX + item for item in self.state.page_items()}
        ids.update((CONFIRM_ID, ABORT_ID))
        if self.state.page_count > 1:
            ids.update((PAGE_PREV_ID, PAGE_NEXT_ID))
        return CollectorFilter(
            author_id=self.author_id,
            message_id=self.message.id,
            kinds=frozenset({EventKind.BUTTON}),
            custom_ids=frozenset(ids),
            timeout=self.config.timeout
        )

    def _bounds_notice(self) -> str:
        low, high = self.state.min_select, self.state.max_select
        if low == high:
            return f"Select exactly {low}."
        if len(self.state.selected) < low:
            return f"Select at least {low}."
        return f"Select at most {high}."

    def _label(self, item_id: str) -> str:
        item = self.items[item_id]
        return f"{item.emoji} {item.label}" if item.emoji else item.label
