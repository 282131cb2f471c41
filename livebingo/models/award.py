from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE, MONEY_TYPE
from ..db.utils import dt_iso, money

if TYPE_CHECKING:
    from .card import BingoCard
    from .room import BingoRoom
    from .user import User


class PrizeAward(Base):
    """A prize tier won by a card.

    ``paid_to_player`` is ``False`` when the round was not funded enough
    to pay this tier; the amount is then retained by the house.
    """

    __tablename__ = "prize_awards"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    room_id: Mapped[int] = mapped_column(
        ForeignKey("bingo_rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    card_id: Mapped[int] = mapped_column(
        ForeignKey("bingo_cards.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tier: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    paid_to_player: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    awarded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    room: Mapped["BingoRoom"] = relationship(back_populates="awards")
    card: Mapped["BingoCard"] = relationship(back_populates="awards")
    user: Mapped["User"] = relationship()

    __table_args__ = (
        UniqueConstraint("card_id", "tier", name="uq_award_card_tier"),
        CheckConstraint("tier IN ('quadra','quina','bingo')", name="tier_enum"),
    )

    def __repr__(self) -> str:
        return (
            f"<PrizeAward(id={self.id}, room_id={self.room_id}, user_id={self.user_id}, "
            f"tier='{self.tier}', amount={self.amount}, paid={self.paid_to_player})>"
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "room_id": self.room_id,
            "card_id": self.card_id,
            "user_id": self.user_id,
            "username": self.user.username if self.user is not None else None,
            "tier": self.tier,
            "amount": str(money(self.amount)),
            "paid_to_player": bool(self.paid_to_player),
            "awarded_at": dt_iso(self.awarded_at),
        }
