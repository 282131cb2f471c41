"""Live room coordination: one scheduler and one change channel per room."""

from __future__ import annotations

import logging
import random
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Hashable, Iterator, Optional

from sqlalchemy.orm import Session, sessionmaker

from . import workflows
from .config import DEFAULT_CONFIG, GameConfig
from .game.scheduler import RoundScheduler, format_countdown
from .game.timers import TimerContext
from .models import BingoCard, BingoRoom, User
from .realtime import RoomChannel, RoomSnapshot

logger = logging.getLogger(__name__)


class JoinGuard:
    """Rejects a second join attempt while one is already in flight."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._in_flight: set[Hashable] = set()

    def acquire(self, key: Hashable) -> bool:
        with self._lock:
            if key in self._in_flight:
                return False
            self._in_flight.add(key)
            return True

    def release(self, key: Hashable) -> None:
        with self._lock:
            self._in_flight.discard(key)

    def in_flight(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._in_flight

    @contextmanager
    def attempt(self, key: Hashable) -> Iterator[bool]:
        """Yield whether this caller owns the attempt; releases it on exit."""
        acquired = self.acquire(key)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(key)


class LiveRoom:
    """Drives a single room's round from the waiting room to the final draw.

    Every state change is written through :mod:`livebingo.workflows` in its
    own transaction and then published on :attr:`channel` as a
    :class:`RoomSnapshot`. The scheduler listens on the same channel, so a
    change made elsewhere (a manual admin start, another client joining)
    drives the timers exactly like a local one.

    Parameters
    ----------
    session_factory : sessionmaker
        Factory producing sessions bound to the game database.
    room_id : int
        Room to drive.
    timers : TimerContext
        Clock and timers, e.g. :class:`~livebingo.game.timers.AsyncioTimers`.
    config : GameConfig, optional
        Round timings and funding settings.
    channel : RoomChannel, optional
        Shared channel; a private one is created when omitted.
    rng : random.Random, optional
        Random generator for draws and card issuance.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        room_id: int,
        *,
        timers: TimerContext,
        config: GameConfig = DEFAULT_CONFIG,
        channel: Optional[RoomChannel] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.Session = session_factory
        self.room_id = room_id
        self.timers = timers
        self.config = config
        self.rng = rng
        self.channel = channel or RoomChannel(room_id)
        self.join_guard = JoinGuard()
        self.scheduler = RoundScheduler(
            timers,
            start_round=self._start_round,
            draw=self._draw,
            finish=self._finish,
            persist_auto_start=self._persist_auto_start,
            config=config,
        )
        self._unsubscribe = self.channel.subscribe(self._on_snapshot)

    # -------- helpers --------
    def _load_room(self, session: Session) -> BingoRoom:
        room = session.get(BingoRoom, self.room_id)
        if room is None:
            raise LookupError(f"Room {self.room_id} does not exist")
        return room

    def _load_user(self, session: Session, user_id: int) -> User:
        return workflows.get_profile(session, user_id)

    def _on_snapshot(self, snapshot: RoomSnapshot) -> None:
        self.scheduler.on_room_update(
            snapshot.status, snapshot.current_players, snapshot.auto_start_at
        )

    def refresh(self) -> RoomSnapshot:
        """Publish the stored state of the room and return it."""
        with self.Session() as session:
            snapshot = RoomSnapshot.from_room(self._load_room(session))
        self.channel.publish(snapshot)
        return snapshot

    # -------- player actions --------
    def join(self, user_id: int) -> Optional[BingoCard]:
        """Buy a card for ``user_id``.

        Returns ``None`` if a join for the same user is already running.
        """
        key = (self.room_id, user_id)
        with self.join_guard.attempt(key) as acquired:
            if not acquired:
                logger.debug(f"Ignoring concurrent join of user {user_id}")
                return None
            with self.Session.begin() as session:
                room = self._load_room(session)
                user = self._load_user(session, user_id)
                card = workflows.enter_room(session, room, user, rng=self.rng)
        self.refresh()
        return card

    def leave(self, user_id: int) -> bool:
        with self.Session.begin() as session:
            room = self._load_room(session)
            user = self._load_user(session, user_id)
            compensated = workflows.leave_room(session, room, user, config=self.config)
        if compensated:
            self.refresh()
        return compensated

    def mark(self, user_id: int, index: int) -> workflows.MarkResult:
        """Mark a cell for ``user_id`` and award any tier it completes."""
        awards = []
        with self.Session.begin() as session:
            card = BingoCard.get_for_user(session, self.room_id, user_id)
            if card is None:
                return workflows.MarkResult(
                    marked=False, notice="You do not have a card in this room"
                )
            result = workflows.mark_number(session, card, index)
            if result.new_tiers:
                room = self._load_room(session)
                awards = workflows.check_for_winners(session, room, config=self.config)
        if workflows.has_bingo_award(awards):
            self.scheduler.schedule_finish()
        return result

    def start_now(self, admin_id: int) -> bool:
        """Manual start by an admin, bypassing the auto-start grace window."""
        with self.Session.begin() as session:
            room = self._load_room(session)
            admin = self._load_user(session, admin_id)
            started = workflows.start_game(
                session, room, actor=admin, now=self.timers.now(), config=self.config
            )
        if started:
            self.refresh()
        return started

    # -------- scheduler callbacks --------
    def _persist_auto_start(self, when: datetime) -> None:
        with self.Session.begin() as session:
            workflows.persist_auto_start(session, self._load_room(session), when)

    def _start_round(self) -> bool:
        with self.Session.begin() as session:
            started = workflows.start_game(
                session,
                self._load_room(session),
                now=self.timers.now(),
                config=self.config,
            )
        if started:
            self.refresh()
        return started

    def _draw(self) -> Optional[int]:
        awards = []
        with self.Session.begin() as session:
            room = self._load_room(session)
            number = workflows.draw_next_number(
                session, room, rng=self.rng, now=self.timers.now(), config=self.config
            )
            if number is not None:
                awards = workflows.check_for_winners(session, room, config=self.config)
        self.refresh()
        if workflows.has_bingo_award(awards):
            logger.info(f"Bingo in room {self.room_id}; finishing shortly")
            self.scheduler.schedule_finish()
        return number

    def _finish(self) -> None:
        with self.Session.begin() as session:
            workflows.end_game(session, self._load_room(session), now=self.timers.now())
        self.refresh()

    # -------- views --------
    def countdown(self) -> str:
        """Time left before the next event, formatted for display."""
        if self.scheduler.auto_start_pending:
            return format_countdown(self.scheduler.seconds_until_start())
        return format_countdown(self.scheduler.seconds_until_next_draw(), with_hours=False)

    def close(self) -> None:
        """Stop listening and cancel every pending timer."""
        self._unsubscribe()
        self.scheduler.teardown()


__all__ = ["JoinGuard", "LiveRoom"]
