from datetime import datetime, timezone
import random
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    select,
    text,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE
from ..db.utils import dt_iso
from ..game.cards import FREE_VALUE, generate_card, validate_card
from ..game.evaluator import CardEvaluation, evaluate_card

if TYPE_CHECKING:
    from .award import PrizeAward
    from .room import BingoRoom
    from .user import User


class BingoCard(Base):
    """A 5x5 card held by one user in one room.

    ``numbers`` is stored row by row (index ``row * 5 + column``) with ``0``
    in the free centre cell. ``marked_positions`` never contains the free
    cell and only grows during a round.
    """

    def __init__(
        self,
        room_id: int,
        user_id: int,
        numbers: list[int],
        marked_positions: Optional[list[int]] = None,
        issued_at: Optional[datetime] = None,
    ):
        self.room_id = room_id
        self.user_id = user_id
        self.numbers = list(numbers)
        self.marked_positions = list(marked_positions or [])
        self.has_quadra = False
        self.has_quina = False
        self.has_bingo = False
        self.issued_at = issued_at or datetime.now(timezone.utc)

    __tablename__ = "bingo_cards"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    room_id: Mapped[int] = mapped_column(
        ForeignKey("bingo_rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    numbers: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    marked_positions: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    has_quadra: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    has_quina: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    has_bingo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    room: Mapped["BingoRoom"] = relationship(back_populates="cards")
    user: Mapped["User"] = relationship(back_populates="cards")
    awards: Mapped[list["PrizeAward"]] = relationship(
        back_populates="card", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("room_id", "user_id", name="uq_card_room_user"),
    )

    def __repr__(self) -> str:
        return (
            f"<BingoCard(id={self.id}, room_id={self.room_id}, user_id={self.user_id}, "
            f"marked={len(self.marked_positions or [])})>"
        )

    @classmethod
    def issue(
        cls,
        session: Session,
        room: "BingoRoom",
        user: "User",
        *,
        rng: Optional[random.Random] = None,
    ) -> "BingoCard":
        """Generate a fresh card for ``user`` in ``room`` and flush it.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        room : BingoRoom
            Room whose ``pool_size`` determines the number layout.
        user : User
            Card holder.
        rng : random.Random, optional
            Random generator to use; useful for deterministic tests.

        Returns
        -------
        BingoCard
            The newly created card (already added to the session).
        """
        numbers = generate_card(room.pool_size, rng=rng)
        validate_card(numbers, room.pool_size)
        card = cls(room_id=room.id, user_id=user.id, numbers=numbers)
        session.add(card)
        session.flush()
        return card

    @classmethod
    def get_for_user(
        cls, session: Session, room_id: int, user_id: int
    ) -> Optional["BingoCard"]:
        return session.scalar(
            select(cls).where(cls.room_id == room_id, cls.user_id == user_id)
        )

    def position_of(self, number: int) -> Optional[int]:
        """Cell index holding ``number``, or ``None`` if not on the card."""
        if number == FREE_VALUE:
            return None
        try:
            return list(self.numbers).index(number)
        except ValueError:
            return None

    def evaluation(self) -> CardEvaluation:
        return evaluate_card(self.marked_positions or [])

    def apply_evaluation(self, evaluation: CardEvaluation) -> None:
        """Store tier flags; once set, a flag stays set for the round."""
        self.has_quadra = bool(self.has_quadra) or evaluation.quadra
        self.has_quina = bool(self.has_quina) or evaluation.quina
        self.has_bingo = bool(self.has_bingo) or evaluation.bingo

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "room_id": self.room_id,
            "user_id": self.user_id,
            "numbers": list(self.numbers),
            "marked_positions": sorted(self.marked_positions or []),
            "has_quadra": bool(self.has_quadra),
            "has_quina": bool(self.has_quina),
            "has_bingo": bool(self.has_bingo),
            "issued_at": dt_iso(self.issued_at),
        }
