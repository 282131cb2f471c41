"""In-process change channel delivering immutable room snapshots."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Optional

from .db.utils import as_utc, money
from .game.state import RoundStatus

if TYPE_CHECKING:
    from .models import BingoRoom

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoomSnapshot:
    """Read-only view of a room at one point in time."""

    room_id: int
    status: RoundStatus
    current_players: int
    max_players: int
    pool_size: int
    called_numbers: tuple[int, ...]
    current_number: Optional[int]
    prizes: dict[str, Decimal] = field(hash=False, compare=False)
    donations: Decimal = Decimal("0.00")
    auto_start_at: Optional[datetime] = None
    next_number_at: Optional[datetime] = None

    @classmethod
    def from_room(cls, room: "BingoRoom") -> "RoomSnapshot":
        return cls(
            room_id=room.id,
            status=RoundStatus(room.status),
            current_players=room.current_players,
            max_players=room.max_players,
            pool_size=room.pool_size,
            called_numbers=tuple(room.called_numbers or ()),
            current_number=room.current_number,
            prizes=dict(room.prizes),
            donations=money(room.donations or 0),
            auto_start_at=as_utc(room.auto_start_at),
            next_number_at=as_utc(room.next_number_at),
        )


Subscriber = Callable[[RoomSnapshot], None]


class RoomChannel:
    """Fan-out of :class:`RoomSnapshot` updates for one room.

    Delivery order is not trusted: a snapshot whose draw history is shorter
    than, or whose status is behind, the newest one already delivered is
    dropped.
    """

    def __init__(self, room_id: int) -> None:
        self.room_id = room_id
        self._subscribers: list[Subscriber] = []
        self._latest: Optional[RoomSnapshot] = None
        self._closed = False

    @property
    def latest(self) -> Optional[RoomSnapshot]:
        return self._latest

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _is_stale(self, snapshot: RoomSnapshot) -> bool:
        latest = self._latest
        if latest is None:
            return False
        if len(snapshot.called_numbers) < len(latest.called_numbers):
            return True
        order = list(RoundStatus)
        return order.index(snapshot.status) < order.index(latest.status)

    def publish(self, snapshot: RoomSnapshot) -> bool:
        """Deliver ``snapshot`` to every subscriber; returns ``False`` if dropped."""
        if self._closed:
            return False
        if snapshot.room_id != self.room_id:
            raise ValueError(
                f"Snapshot for room {snapshot.room_id} published on channel {self.room_id}"
            )
        if self._is_stale(snapshot):
            logger.debug(
                f"Dropping stale snapshot for room {self.room_id} "
                f"({len(snapshot.called_numbers)} numbers)"
            )
            return False
        self._latest = snapshot
        for callback in list(self._subscribers):
            callback(snapshot)
        return True

    def close(self) -> None:
        self._subscribers.clear()
        self._closed = True


__all__ = ["RoomChannel", "RoomSnapshot"]
