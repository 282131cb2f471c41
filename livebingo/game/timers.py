"""Cancelable timer contexts used by the round scheduler."""

from __future__ import annotations

import asyncio
import heapq
import itertools
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerContext(Protocol):
    """Clock plus one-shot timers; both share the same notion of time."""

    def now(self) -> datetime: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioTimers:
    """Timers backed by an asyncio event loop (cooperative, single thread)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)


class _ManualHandle:
    def __init__(self, due: datetime, seq: int, callback: Callable[[], None]) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: "_ManualHandle") -> bool:
        return (self.due, self.seq) < (other.due, other.seq)


class ManualTimers:
    """Virtual clock whose timers fire only when :meth:`advance` is called.

    Used to simulate rounds deterministically (tests, replays).
    """

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._queue: list[_ManualHandle] = []
        self._seq = itertools.count()

    def now(self) -> datetime:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        due = self._now + timedelta(seconds=max(0.0, delay))
        handle = _ManualHandle(due, next(self._seq), callback)
        heapq.heappush(self._queue, handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for h in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every timer that falls due in order."""
        target = self._now + timedelta(seconds=seconds)
        while self._queue and self._queue[0].due <= target:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = max(self._now, handle.due)
            handle.callback()
        self._now = target


__all__ = ["AsyncioTimers", "ManualTimers", "TimerContext", "TimerHandle"]
