from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE, MONEY_TYPE
from ..db.utils import dt_iso, money
from ..game.draw import DrawState
from ..game.evaluator import TIER_BINGO, TIER_QUADRA, TIER_QUINA
from ..game.funding import PrizeTier
from ..game.state import RoundStatus

if TYPE_CHECKING:
    from .award import PrizeAward
    from .card import BingoCard
    from .chat import ChatMessage


class BingoRoom(Base):
    """A room hosting a single bingo round.

    Finished rooms are never reopened; the next round lives in a new row
    created by :func:`livebingo.workflows.open_next_round`.
    """

    def __init__(
        self,
        name: str,
        card_price: Decimal,
        max_players: int = 50,
        pool_size: int = 75,
        quadra_prize: Decimal = Decimal("0"),
        quina_prize: Decimal = Decimal("0"),
        bingo_prize: Decimal = Decimal("0"),
        status: str = RoundStatus.WAITING.value,
        created_at: Optional[datetime] = None,
    ):
        self.name = name
        self.card_price = money(card_price)
        self.max_players = max_players
        self.pool_size = pool_size
        self.quadra_prize = money(quadra_prize)
        self.quina_prize = money(quina_prize)
        self.bingo_prize = money(bingo_prize)
        self.status = status
        self.current_players = 0
        self.called_numbers = []
        self.current_number = None
        self.donations = Decimal("0.00")
        if created_at is not None:
            self.created_at = created_at

    __tablename__ = "bingo_rooms"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RoundStatus.WAITING.value
    )
    card_price: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    max_players: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    current_players: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pool_size: Mapped[int] = mapped_column(Integer, nullable=False, default=75)
    quadra_prize: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False, default=0)
    quina_prize: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False, default=0)
    bingo_prize: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False, default=0)
    called_numbers: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    current_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    donations: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False, default=0)
    auto_start_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    next_number_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    start_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    end_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    cards: Mapped[list["BingoCard"]] = relationship(
        back_populates="room", cascade="all, delete-orphan"
    )
    awards: Mapped[list["PrizeAward"]] = relationship(
        back_populates="room", cascade="all, delete-orphan"
    )
    messages: Mapped[list["ChatMessage"]] = relationship(
        back_populates="room",
        cascade="all, delete-orphan",
        order_by="ChatMessage.created_at",
    )

    __table_args__ = (
        CheckConstraint("status IN ('waiting','playing','finished')", name="status_enum"),
        CheckConstraint("current_players >= 0", name="players_non_negative"),
        CheckConstraint("current_players <= max_players", name="players_within_max"),
        CheckConstraint("pool_size >= 24", name="pool_size_min"),
        Index("ix_bingo_rooms_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<BingoRoom(id={self.id}, name='{self.name}', status='{self.status}', "
            f"players={self.current_players}/{self.max_players}, "
            f"called={len(self.called_numbers or [])})>"
        )

    @classmethod
    def get_for_update(cls, session: Session, room_id: int) -> Optional["BingoRoom"]:
        """Load a room with a row lock where the backend supports it."""
        return session.scalar(
            select(cls).where(cls.id == room_id).with_for_update()
        )

    @property
    def round_status(self) -> RoundStatus:
        return RoundStatus(self.status)

    @property
    def is_full(self) -> bool:
        return self.current_players >= self.max_players

    @property
    def prizes(self) -> dict[str, Decimal]:
        return {
            TIER_QUADRA: money(self.quadra_prize or 0),
            TIER_QUINA: money(self.quina_prize or 0),
            TIER_BINGO: money(self.bingo_prize or 0),
        }

    def prize_tiers(self) -> list[PrizeTier]:
        """The room's prizes as funding tiers, in quadra, quina, bingo order."""
        return [
            PrizeTier(name=name, amount=amount, level=level)
            for level, (name, amount) in enumerate(self.prizes.items(), start=1)
        ]

    def set_prizes(self, *, quadra, quina, bingo) -> None:
        self.quadra_prize = money(quadra)
        self.quina_prize = money(quina)
        self.bingo_prize = money(bingo)

    def draw_state(self) -> DrawState:
        """Rebuild the draw history as a :class:`DrawState`."""
        state = DrawState(self.pool_size, self.called_numbers or [])
        if self.round_status is RoundStatus.FINISHED:
            state.freeze()
        return state

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "card_price": str(money(self.card_price)),
            "max_players": self.max_players,
            "current_players": self.current_players,
            "pool_size": self.pool_size,
            "prizes": {k: str(v) for k, v in self.prizes.items()},
            "called_numbers": list(self.called_numbers or []),
            "current_number": self.current_number,
            "donations": str(money(self.donations or 0)),
            "auto_start_at": dt_iso(self.auto_start_at),
            "next_number_at": dt_iso(self.next_number_at),
            "start_time": dt_iso(self.start_time),
            "end_time": dt_iso(self.end_time),
            "created_at": dt_iso(self.created_at),
        }
