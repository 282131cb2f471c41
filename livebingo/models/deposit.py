from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE, MONEY_TYPE
from ..db.utils import dt_iso, money

if TYPE_CHECKING:
    from .user import User

DEPOSIT_PENDING = "pending"
DEPOSIT_COMPLETED = "completed"
DEPOSIT_FAILED = "failed"


class Deposit(Base):
    """A wallet top-up; the bonus is credited together with the amount."""

    __tablename__ = "deposits"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    bonus_amount: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False, default=0)
    total_amount: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DEPOSIT_PENDING
    )
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False, default="pix")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user: Mapped["User"] = relationship(back_populates="deposits")

    __table_args__ = (
        CheckConstraint("status IN ('pending','completed','failed')", name="status_enum"),
        CheckConstraint("amount > 0", name="amount_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<Deposit(id={self.id}, user_id={self.user_id}, amount={self.amount}, "
            f"total={self.total_amount}, status='{self.status}')>"
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": str(money(self.amount)),
            "bonus_amount": str(money(self.bonus_amount)),
            "total_amount": str(money(self.total_amount)),
            "status": self.status,
            "payment_method": self.payment_method,
            "created_at": dt_iso(self.created_at),
        }
