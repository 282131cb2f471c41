from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import CheckConstraint, DateTime, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import Base
from .id_type import ID_TYPE, MONEY_TYPE
from ..db.utils import dt_iso, money
from ..errors import InsufficientBalanceError

if TYPE_CHECKING:
    from .card import BingoCard
    from .deposit import Deposit

ROLE_PLAYER = "player"
ROLE_ADMIN = "admin"


class User(Base):
    """A player profile with a wallet balance."""

    def __init__(
        self,
        username: str,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
        balance: Decimal = Decimal("0.00"),
        role: str = ROLE_PLAYER,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        """Create a new :class:`User` record.

        Parameters
        ----------
        username : str
            Public display name, unique across the platform.
        email : str, optional
            Login e-mail; stored lower-cased.
        full_name : str, optional
            Name shown on the profile page.
        balance : Decimal, default: 0
            Opening wallet balance.
        role : str, default: "player"
            ``"player"`` or ``"admin"``. Admin-only workflows check this
            value and nothing else.
        created_at : datetime, optional
            Explicit creation timestamp.
        updated_at : datetime, optional
            Explicit last update timestamp.
        """

        self.username = username
        self.email = email
        self.full_name = full_name
        self.balance = money(balance)
        self.role = role
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(
        String(100), unique=True, index=True, nullable=True
    )
    full_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    balance: Mapped[Decimal] = mapped_column(
        MONEY_TYPE, nullable=False, default=Decimal("0.00")
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_PLAYER)
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

    # relationships
    cards: Mapped[list["BingoCard"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    deposits: Mapped[list["Deposit"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("role IN ('player','admin')", name="role_enum"),
        CheckConstraint("balance >= 0", name="balance_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, username='{self.username}', "
            f"role='{self.role}', balance={self.balance})>"
        )

    @validates("email")
    def _normalize_email(self, _key: str, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = value.strip().lower()
        return normalized or None

    @classmethod
    def get_by_username(cls, session: Session, username: str) -> Optional["User"]:
        """Retrieve a user by username."""

        return session.scalar(select(cls).where(cls.username == username))

    @classmethod
    def get_by_email(cls, session: Session, email: str) -> Optional["User"]:
        """Retrieve a user by e-mail address (case-insensitive)."""

        return session.scalar(select(cls).where(cls.email == email.strip().lower()))

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def credit(self, amount) -> Decimal:
        """Add ``amount`` to the balance and return the new balance."""
        value = money(amount)
        if value < 0:
            raise ValueError("Credit amount must be non-negative")
        self.balance = money(self.balance or 0) + value
        return self.balance

    def debit(self, amount) -> Decimal:
        """Subtract ``amount`` from the balance and return the new balance.

        Raises
        ------
        InsufficientBalanceError
            If the balance does not cover ``amount``.
        """
        value = money(amount)
        if value < 0:
            raise ValueError("Debit amount must be non-negative")
        current = money(self.balance or 0)
        if current < value:
            raise InsufficientBalanceError(
                f"Balance {current} is insufficient for a debit of {value}"
            )
        self.balance = current - value
        return self.balance

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "full_name": self.full_name,
            "balance": str(money(self.balance or 0)),
            "role": self.role,
            "created_at": dt_iso(self.created_at),
            "updated_at": dt_iso(self.updated_at),
        }
