"""
Waiters for inbound interaction events.

The platform client hands every inbound event to ``EventCollector.dispatch``.
Flows wait for events with ``wait_for`` (single-shot) or ``stream``
(streaming). Listeners are registered only while a wait is in flight.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Union

from ..gateway.events import CollectorFilter, InteractionEvent, TimedOut, TIMED_OUT

logger = logging.getLogger(__name__)


class _Listener:
    __slots__ = ("filter", "offer")

    def __init__(self, filter: CollectorFilter, offer: Callable[[InteractionEvent], bool]):
        self.filter = filter
        self.offer = offer


class EventCollector:
    """Routes inbound events to the waits currently registered."""

    def __init__(self):
        self._listeners: List[_Listener] = []

    def __len__(self) -> int:
        """Number of registered listeners."""
        return len(self._listeners)

    def dispatch(self, event: InteractionEvent) -> int:
        """Offer ``event`` to every listener in registration order.

        Returns:
            Number of listeners that accepted the event
        """
        accepted = 0
        for listener in list(self._listeners):
            if listener.offer(event):
                accepted += 1
        return accepted

    async def wait_for(self, filter: CollectorFilter) -> Union[InteractionEvent, TimedOut]:
        """
        Wait for the first event matching ``filter``.

        Args:
            filter: Scope, predicate and timeout of the wait

        Returns:
            The matching event, or TIMED_OUT once ``filter.timeout`` elapsed
        """
        future = asyncio.get_running_loop().create_future()

        def offer(event: InteractionEvent) -> bool:
            if future.done():
                return False
            try:
                matched = filter.matches(event)
            except Exception as e:
                # A broken predicate fails the waiting operation, not the dispatcher
                future.set_exception(e)
                return False
            if matched:
                future.set_result(event)
            return matched

        listener = self._register(filter, offer)
        try:
            return await asyncio.wait_for(future, filter.timeout)
        except asyncio.TimeoutError:
            return TIMED_OUT
        finally:
            self._deregister(listener)

    def stream(self, filter: CollectorFilter) -> 'InteractionStream':
        """Start a new stream of events matching ``filter``.

        ``filter.timeout`` is the deadline of the whole stream.
        """
        return InteractionStream(self, filter)

    def _register(self, filter: CollectorFilter,
                  offer: Callable[[InteractionEvent], bool]) -> _Listener:
        listener = _Listener(filter, offer)
        self._listeners.append(listener)
        return listener

    def _deregister(self, listener: _Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass


class InteractionStream:
    """Async iterator over matching events.

    Iteration ends when the deadline passes (``timed_out`` is then True) or
    after ``close``. Closing deregisters the listener and drops buffered
    events. Use it as an async context manager so it is closed on every
    exit path::

        async with collector.stream(filter) as events:
            async for event in events:
                ...
    """

    def __init__(self, collector: EventCollector, filter: CollectorFilter):
        self._collector = collector
        self._filter = filter
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._deadline: Optional[float] = (
            self._loop.time() + filter.timeout if filter.timeout is not None else None
        )
        self._error: Optional[BaseException] = None
        self._closed = False
        self.timed_out = False
        self._listener = collector._register(filter, self._offer)

    @property
    def closed(self) -> bool:
        return self._closed

    def _offer(self, event: InteractionEvent) -> bool:
        if self._closed:
            return False
        try:
            matched = self._filter.matches(event)
        except Exception as e:
            self._error = e
            self._queue.put_nowait(None)
            return False
        if matched:
            self._queue.put_nowait(event)
        return matched

    def __aiter__(self) -> 'InteractionStream':
        return self

    async def __anext__(self) -> InteractionEvent:
        if self._closed:
            raise StopAsyncIteration
        if self._queue.empty():
            remaining = None
            if self._deadline is not None:
                remaining = self._deadline - self._loop.time()
                if remaining <= 0:
                    self._expire()
            try:
                item = await asyncio.wait_for(self._queue.get(), remaining)
            except asyncio.TimeoutError:
                self._expire()
            except BaseException:
                self.close()
                raise
        else:
            item = self._queue.get_nowait()

        if item is None:
            error, self._error = self._error, None
            self.close()
            raise error
        return item

    def _expire(self) -> None:
        self.timed_out = True
        self.close()
        raise StopAsyncIteration

    def close(self) -> None:
        """Stop the stream. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._collector._deregister(self._listener)
        while not self._queue.empty():
            self._queue.get_nowait()

    async def __aenter__(self) -> 'InteractionStream':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __del__(self):
        if not getattr(self, "_closed", True):
            self.close()
