"""Timer-driven round progression: auto-start, periodic draws and finalization."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..config import DEFAULT_CONFIG, GameConfig
from .state import RoundStatus
from .timers import TimerContext, TimerHandle

logger = logging.getLogger(__name__)


def seconds_until(target: Optional[datetime], now: datetime) -> int:
    """Whole seconds from ``now`` until ``target``; never negative."""
    if target is None:
        return 0
    return max(0, math.floor((target - now).total_seconds()))


def format_countdown(seconds: int, *, with_hours: bool = True) -> str:
    """Render a countdown as ``HH:MM:SS`` or, without hours, ``M:SS``."""
    seconds = max(0, int(seconds))
    if not with_hours:
        return f"{seconds // 60}:{seconds % 60:02d}"
    hours, rest = divmod(seconds, 3600)
    return f"{hours:02d}:{rest // 60:02d}:{rest % 60:02d}"


class RoundScheduler:
    """Owns every timer of one round.

    The scheduler never touches storage itself; it calls back into the
    owner for each step:

    - ``start_round()`` performs ``waiting -> playing`` and returns whether
      the round actually started.
    - ``draw()`` draws and persists the next number, returning ``None``
      once the pool is exhausted.
    - ``finish()`` moves the round to ``finished``.
    - ``persist_auto_start(when)`` records a new auto-start deadline.

    Installing a timer always cancels the previous timer of the same kind,
    and :meth:`teardown` cancels all of them, so no stale callback can
    fire after a reschedule or after the round ends.
    """

    def __init__(
        self,
        timers: TimerContext,
        *,
        start_round: Callable[[], bool],
        draw: Callable[[], Optional[int]],
        finish: Callable[[], None],
        persist_auto_start: Optional[Callable[[datetime], None]] = None,
        config: GameConfig = DEFAULT_CONFIG,
    ) -> None:
        self._timers = timers
        self._start_round = start_round
        self._draw = draw
        self._finish = finish
        self._persist_auto_start = persist_auto_start
        self.config = config

        self.status = RoundStatus.WAITING
        self.auto_start_at: Optional[datetime] = None
        self.next_draw_at: Optional[datetime] = None
        self._start_handle: Optional[TimerHandle] = None
        self._draw_handle: Optional[TimerHandle] = None
        self._finish_handle: Optional[TimerHandle] = None
        self._closed = False

    # -------- timer bookkeeping --------
    @staticmethod
    def _cancel(handle: Optional[TimerHandle]) -> None:
        if handle is not None:
            handle.cancel()

    def _install_start(self, delay: float) -> None:
        self._cancel(self._start_handle)
        self._start_handle = self._timers.call_later(delay, self._fire_start)

    def _install_draw(self, delay: float) -> None:
        self._cancel(self._draw_handle)
        self.next_draw_at = self._timers.now() + timedelta(seconds=delay)
        self._draw_handle = self._timers.call_later(delay, self._fire_draw)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def auto_start_pending(self) -> bool:
        return self._start_handle is not None

    def seconds_until_next_draw(self) -> int:
        return seconds_until(self.next_draw_at, self._timers.now())

    def seconds_until_start(self) -> int:
        return seconds_until(self.auto_start_at, self._timers.now())

    # -------- inputs --------
    def on_room_update(
        self,
        status: "RoundStatus | str",
        current_players: int,
        auto_start_at: Optional[datetime] = None,
    ) -> None:
        """React to a room snapshot delivered by the change channel."""
        if self._closed:
            return
        status = RoundStatus(status)

        if status is RoundStatus.FINISHED:
            self.status = RoundStatus.FINISHED
            self.teardown()
            return

        if status is RoundStatus.PLAYING:
            if self.status is RoundStatus.WAITING:
                # started elsewhere, e.g. a manual admin start
                self._cancel(self._start_handle)
                self._start_handle = None
                self.on_round_started()
            return

        if current_players < self.config.min_participants:
            if self._start_handle is not None:
                logger.debug("Player count fell below minimum; auto-start cancelled")
            self._cancel(self._start_handle)
            self._start_handle = None
            self.auto_start_at = None
            return

        now = self._timers.now()
        grace = self.config.auto_start_grace_seconds
        if auto_start_at is None or auto_start_at <= now:
            # stale or missing schedule: push it out by a full grace window
            when = now + timedelta(seconds=grace)
            self.auto_start_at = when
            if self._persist_auto_start is not None:
                self._persist_auto_start(when)
            logger.info(f"Minimum players reached; round starts at {when.isoformat()}")
            self._install_start(grace)
        else:
            self.auto_start_at = auto_start_at
            self._install_start((auto_start_at - now).total_seconds())

    def on_round_started(self) -> None:
        """Begin the draw cadence after ``waiting -> playing``."""
        if self._closed or self.status is not RoundStatus.WAITING:
            return
        self.status = RoundStatus.PLAYING
        self.auto_start_at = None
        self._install_draw(self.config.first_draw_delay_seconds)

    def schedule_finish(self) -> None:
        """Finish the round after the bingo confirmation delay."""
        if self._closed or self._finish_handle is not None:
            return
        self._finish_handle = self._timers.call_later(
            self.config.bingo_finalize_delay_seconds, self._fire_finish
        )

    def teardown(self) -> None:
        """Cancel every timer; the scheduler ignores all further input."""
        for handle in (self._start_handle, self._draw_handle, self._finish_handle):
            self._cancel(handle)
        self._start_handle = self._draw_handle = self._finish_handle = None
        self.next_draw_at = None
        self._closed = True

    # -------- timer callbacks --------
    def _fire_start(self) -> None:
        self._start_handle = None
        if self._closed:
            return
        if self._start_round():
            self.on_round_started()
        else:
            logger.debug("Auto-start fired but the round was no longer waiting")

    def _fire_draw(self) -> None:
        self._draw_handle = None
        if self._closed:
            return
        try:
            number = self._draw()
        except Exception:
            logger.exception("Draw tick failed; retrying on the next interval")
            self._install_draw(self.config.draw_interval_seconds)
            raise
        if number is None:
            logger.info("Number pool exhausted; finishing round without a bingo")
            self.status = RoundStatus.FINISHED
            try:
                self._finish()
            finally:
                self.teardown()
            return
        if not self._closed:
            self._install_draw(self.config.draw_interval_seconds)

    def _fire_finish(self) -> None:
        self._finish_handle = None
        if self._closed:
            return
        self.status = RoundStatus.FINISHED
        try:
            self._finish()
        finally:
            self.teardown()


__all__ = ["RoundScheduler", "format_countdown", "seconds_until"]
