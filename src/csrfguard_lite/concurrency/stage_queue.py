"""FIFO admission queue with a single active slot.

Same shape as the ReadWriteLock built on threading.Condition, but for
coroutines and with strict arrival order:

    queue = StageQueue("csrf")

    async with queue.admit():
        ...   # at most one coroutine in here at a time

Why not asyncio.Lock? Ordering. When the holder releases, the slot is
handed straight to the oldest waiter by resolving its future while
``_active`` stays True, so a coroutine arriving in the same loop tick
cannot barge in ahead of the queue. The Nth arrival starts only after
the (N-1)th has released.

Cancellation:
    - a waiter cancelled before its turn is dropped from the queue
    - a waiter cancelled after the slot was handed to it passes the slot
      on, so a cancelled task never leaves the queue wedged
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator

log = logging.getLogger(__name__)


class StageQueue:
    """Single-slot FIFO admission control for one stage.

    Args:
        name: Label used in debug logs.
    """

    def __init__(self, name: str = "stage") -> None:
        self._name = name
        self._waiters: deque[asyncio.Future[None]] = deque()
        self._active = False
        self._admitted = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def active(self) -> bool:
        """True while some activation holds the slot."""
        return self._active

    @property
    def pending(self) -> int:
        """Activations waiting for the slot (not counting the holder)."""
        return sum(1 for fut in self._waiters if not fut.done())

    @property
    def admitted(self) -> int:
        """Total activations that have entered the slot."""
        return self._admitted

    async def acquire(self) -> None:
        """Enter the slot, suspending behind earlier arrivals if needed."""
        if not self._active and not self._waiters:
            self._active = True
            self._admitted += 1
            return

        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        log.debug("%s: queued behind %d activation(s)", self._name, len(self._waiters))
        try:
            await fut
        except asyncio.CancelledError:
            if fut.done() and not fut.cancelled():
                # Slot was already handed to us; give it to the next one.
                self._hand_off()
            else:
                try:
                    self._waiters.remove(fut)
                except ValueError:
                    pass
            raise
        self._admitted += 1

    def release(self) -> None:
        """Leave the slot and wake the oldest live waiter, if any."""
        if not self._active:
            raise RuntimeError(f"{self._name}: release() without an active holder")
        self._hand_off()

    def _hand_off(self) -> None:
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                fut.set_result(None)  # _active stays True: ownership moves
                return
        self._active = False

    @asynccontextmanager
    async def admit(self) -> AsyncIterator[None]:
        """Hold the slot for the body of an ``async with`` block."""
        await self.acquire()
        try:
            yield
        finally:
            self.release()
