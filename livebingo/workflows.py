import logging
import math
import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .config import DEFAULT_CONFIG, GameConfig
from .db.utils import money
from .errors import (
    AuthorizationError,
    DepositError,
    InvalidMarkError,
    RoomFullError,
    RoundStateError,
)
from .game.draw import DrawSequencer
from .game.evaluator import CARD_SIZE, FREE_INDEX, TIER_BINGO, CardEvaluation
from .game.funding import FundingStatus, PrizeFundingCalculator
from .game.state import RoundStatus, transition
from .models import BingoCard, BingoRoom, ChatMessage, Deposit, PrizeAward, User
from .models.deposit import DEPOSIT_COMPLETED, DEPOSIT_FAILED, DEPOSIT_PENDING
from .models.user import ROLE_ADMIN, ROLE_PLAYER

logger = logging.getLogger(__name__)

# Share of the card sales assigned to each tier when a round starts.
PRIZE_POOL_SHARES = {
    "quadra": Decimal("0.10"),
    "quina": Decimal("0.25"),
    "bingo": Decimal("0.50"),
}
CHAT_HISTORY_LIMIT = 50


def _now() -> datetime:
    return datetime.now(timezone.utc)


def require_admin(user: Optional[User]) -> User:
    """Return ``user`` if it carries the admin role.

    Raises
    ------
    AuthorizationError
        If ``user`` is missing or is not an admin.
    """
    if user is None or user.role != ROLE_ADMIN:
        raise AuthorizationError("This operation requires an admin account")
    return user


# -------- profiles --------
def register_user(
    session: Session,
    username: str,
    *,
    email: Optional[str] = None,
    full_name: Optional[str] = None,
    role: str = ROLE_PLAYER,
) -> User:
    """Create a profile with a zero balance.

    Raises
    ------
    ValueError
        If the username is empty or already taken, or the role is unknown.
    """
    username = (username or "").strip()
    if not username:
        raise ValueError("A username is required")
    if role not in (ROLE_PLAYER, ROLE_ADMIN):
        raise ValueError(f"Unknown role '{role}'")
    if User.get_by_username(session, username) is not None:
        raise ValueError(f"Username '{username}' is already taken")

    user = User(username=username, email=email, full_name=full_name, role=role)
    session.add(user)
    session.flush()
    return user


def get_profile(session: Session, user_id: int) -> User:
    """Load a profile by id.

    Raises
    ------
    LookupError
        If no such user exists.
    """
    user = session.get(User, user_id)
    if user is None:
        raise LookupError(f"User {user_id} does not exist")
    return user


def update_profile(
    session: Session,
    user: User,
    *,
    username: Optional[str] = None,
    full_name: Optional[str] = None,
) -> User:
    """Update the editable profile fields of ``user``."""
    if username is not None:
        username = username.strip()
        if not username:
            raise ValueError("Username must not be empty")
        other = User.get_by_username(session, username)
        if other is not None and other.id != user.id:
            raise ValueError(f"Username '{username}' is already taken")
        user.username = username
    if full_name is not None:
        user.full_name = full_name.strip() or None
    session.flush()
    return user


# -------- deposits --------
def calculate_bonus(amount, percentage=DEFAULT_CONFIG.deposit_bonus_percentage) -> Decimal:
    """Bonus credited on top of a deposit of ``amount``."""
    return money(Decimal(str(amount)) * Decimal(str(percentage)) / Decimal(100))


def request_deposit(
    session: Session,
    user: User,
    amount,
    *,
    payment_method: str = "pix",
    config: GameConfig = DEFAULT_CONFIG,
) -> Deposit:
    """Record a pending deposit with its bonus.

    The balance is untouched until :func:`complete_deposit` confirms it.
    """
    value = money(amount)
    if value <= 0:
        raise DepositError("Deposit amount must be positive")
    bonus = calculate_bonus(value, config.deposit_bonus_percentage)
    deposit = Deposit(
        user_id=user.id,
        amount=value,
        bonus_amount=bonus,
        total_amount=value + bonus,
        status=DEPOSIT_PENDING,
        payment_method=payment_method,
    )
    session.add(deposit)
    session.flush()
    logger.debug(f"Deposit {deposit.id} of {value} requested by user {user.id}")
    return deposit


def complete_deposit(session: Session, deposit: Deposit) -> Deposit:
    """Confirm a pending deposit and credit ``total_amount`` to its owner.

    Payment confirmation is simulated; no gateway is contacted.
    """
    if deposit.status != DEPOSIT_PENDING:
        raise DepositError(f"Deposit {deposit.id} is already {deposit.status}")
    user = session.get(User, deposit.user_id, with_for_update=True)
    if user is None:
        raise DepositError(f"Deposit {deposit.id} has no owner")
    user.credit(deposit.total_amount)
    deposit.status = DEPOSIT_COMPLETED
    session.flush()
    logger.info(f"Deposit {deposit.id} completed; credited {deposit.total_amount}")
    return deposit


def fail_deposit(session: Session, deposit: Deposit) -> Deposit:
    if deposit.status != DEPOSIT_PENDING:
        raise DepositError(f"Deposit {deposit.id} is already {deposit.status}")
    deposit.status = DEPOSIT_FAILED
    session.flush()
    return deposit


def list_deposits(session: Session, user: User) -> list[Deposit]:
    """Deposit history of ``user``, newest first."""
    stmt = (
        select(Deposit)
        .where(Deposit.user_id == user.id)
        .order_by(Deposit.created_at.desc(), Deposit.id.desc())
    )
    return list(session.scalars(stmt).all())


# -------- room administration --------
def create_room(
    session: Session,
    admin: User,
    *,
    name: str,
    card_price=Decimal("10"),
    max_players: int = 50,
    quadra_prize=Decimal("100"),
    quina_prize=Decimal("500"),
    bingo_prize=Decimal("1000"),
    pool_size: Optional[int] = None,
    config: GameConfig = DEFAULT_CONFIG,
) -> BingoRoom:
    """Create a waiting room. Admin only."""
    require_admin(admin)
    name = (name or "").strip()
    if not name:
        raise ValueError("A room name is required")
    if money(card_price) < 0:
        raise ValueError("card_price must be non-negative")
    if max_players < 1:
        raise ValueError("max_players must be at least 1")
    for label, amount in (
        ("quadra_prize", quadra_prize),
        ("quina_prize", quina_prize),
        ("bingo_prize", bingo_prize),
    ):
        if money(amount) < 0:
            raise ValueError(f"{label} must be non-negative")
    pool_size = pool_size or config.pool_size
    if pool_size < CARD_SIZE - 1:
        raise ValueError("pool_size must leave room for 24 distinct card numbers")

    room = BingoRoom(
        name=name,
        card_price=card_price,
        max_players=max_players,
        pool_size=pool_size,
        quadra_prize=quadra_prize,
        quina_prize=quina_prize,
        bingo_prize=bingo_prize,
    )
    session.add(room)
    session.flush()
    logger.info(f"Room {room.id} '{room.name}' created by admin {admin.id}")
    return room


def list_rooms(
    session: Session, status: Optional["RoundStatus | str"] = None
) -> list[BingoRoom]:
    """Rooms newest first, optionally restricted to one status."""
    stmt = select(BingoRoom)
    if status is not None:
        stmt = stmt.where(BingoRoom.status == RoundStatus(status).value)
    stmt = stmt.order_by(BingoRoom.created_at.desc(), BingoRoom.id.desc())
    return list(session.scalars(stmt).all())


@dataclass(frozen=True)
class AdminStats:
    total_users: int
    total_deposits: int
    active_rooms: int
    total_revenue: Decimal


def admin_stats(session: Session, admin: User) -> AdminStats:
    """Platform totals for the admin panel. Admin only."""
    require_admin(admin)
    total_users = session.scalar(select(func.count(User.id))) or 0
    total_deposits = (
        session.scalar(
            select(func.count(Deposit.id)).where(Deposit.status == DEPOSIT_COMPLETED)
        )
        or 0
    )
    revenue = session.scalar(
        select(func.coalesce(func.sum(Deposit.total_amount), 0)).where(
            Deposit.status == DEPOSIT_COMPLETED
        )
    )
    active_rooms = (
        session.scalar(
            select(func.count(BingoRoom.id)).where(
                BingoRoom.status.in_(
                    [RoundStatus.WAITING.value, RoundStatus.PLAYING.value]
                )
            )
        )
        or 0
    )
    return AdminStats(
        total_users=total_users,
        total_deposits=total_deposits,
        active_rooms=active_rooms,
        total_revenue=money(revenue or 0),
    )


def generate_prize_pool(room: BingoRoom) -> dict[str, Decimal]:
    """Split the card sales of ``room`` into tier prizes, floored to whole units."""
    total_pool = Decimal(room.current_players) * money(room.card_price)
    return {
        tier: Decimal(math.floor(total_pool * share))
        for tier, share in PRIZE_POOL_SHARES.items()
    }


# -------- joining and leaving --------
def enter_room(
    session: Session,
    room: BingoRoom,
    user: User,
    *,
    rng: Optional[random.Random] = None,
) -> BingoCard:
    """Buy a card for ``user`` in ``room``.

    Debits the card price, issues the card, takes a player slot and adds
    the price to the round's donations, all inside the caller's
    transaction. A user who already holds a card gets that card back.

    Raises
    ------
    RoundStateError
        If the room is no longer waiting for players.
    RoomFullError
        If every slot is taken.
    InsufficientBalanceError
        If the user cannot pay for the card.
    """
    existing = BingoCard.get_for_user(session, room.id, user.id)
    if existing is not None:
        return existing

    locked = BingoRoom.get_for_update(session, room.id) or room
    if locked.round_status is not RoundStatus.WAITING:
        raise RoundStateError(f"Room {locked.id} is not accepting players")
    if locked.is_full:
        raise RoomFullError(f"Room {locked.id} is full")

    user.debit(locked.card_price)
    card = BingoCard.issue(session, locked, user, rng=rng)
    locked.current_players += 1
    locked.donations = money(locked.donations or 0) + money(locked.card_price)
    session.flush()
    logger.info(
        f"User {user.id} joined room {locked.id} "
        f"({locked.current_players}/{locked.max_players})"
    )
    return card


def leave_room(
    session: Session,
    room: BingoRoom,
    user: User,
    *,
    config: GameConfig = DEFAULT_CONFIG,
) -> bool:
    """Release ``user``'s slot if the round has not started.

    Before ``playing`` the card is deleted and its price refunded. Once the
    round is playing the card stays for the round and nothing is refunded.
    A pending auto-start is dropped when the room falls below
    ``config.min_participants``.

    Returns
    -------
    bool
        ``True`` when the compensation was applied.
    """
    card = BingoCard.get_for_user(session, room.id, user.id)
    if card is None:
        return False
    locked = BingoRoom.get_for_update(session, room.id) or room
    if locked.round_status is not RoundStatus.WAITING:
        logger.debug(f"User {user.id} left room {locked.id} after start; card kept")
        return False

    user.credit(locked.card_price)
    session.delete(card)
    locked.current_players = max(0, locked.current_players - 1)
    locked.donations = max(
        Decimal("0.00"), money(locked.donations or 0) - money(locked.card_price)
    )
    if locked.current_players < config.min_participants:
        locked.auto_start_at = None
    session.flush()
    logger.info(f"User {user.id} left room {locked.id}; card price refunded")
    return True


# -------- round lifecycle --------
def persist_auto_start(session: Session, room: BingoRoom, when: datetime) -> None:
    room.auto_start_at = when
    session.flush()


def start_game(
    session: Session,
    room: BingoRoom,
    *,
    actor: Optional[User] = None,
    now: Optional[datetime] = None,
    config: GameConfig = DEFAULT_CONFIG,
) -> bool:
    """Move ``room`` from ``waiting`` to ``playing``.

    Without ``actor`` this is the automatic start; with ``actor`` it is the
    manual override and requires an admin. Prizes are regenerated from the
    card sales and the draw history is cleared.

    Returns
    -------
    bool
        ``False`` when the room was no longer waiting (e.g. another client
        started it first).
    """
    if actor is not None:
        require_admin(actor)
    locked = BingoRoom.get_for_update(session, room.id) or room
    if locked.round_status is not RoundStatus.WAITING:
        return False

    now = now or _now()
    locked.status = transition(locked.status, RoundStatus.PLAYING).value
    locked.set_prizes(**generate_prize_pool(locked))
    locked.start_time = now
    locked.next_number_at = now + timedelta(seconds=config.first_draw_delay_seconds)
    locked.called_numbers = []
    locked.current_number = None
    locked.auto_start_at = None
    session.flush()
    logger.info(f"Room {locked.id} started with {locked.current_players} players")
    return True


def end_game(
    session: Session, room: BingoRoom, *, now: Optional[datetime] = None
) -> bool:
    """Finish a playing round. Returns ``False`` if it was already finished."""
    locked = BingoRoom.get_for_update(session, room.id) or room
    if locked.round_status is RoundStatus.FINISHED:
        return False
    locked.status = transition(locked.status, RoundStatus.FINISHED).value
    locked.end_time = now or _now()
    locked.next_number_at = None
    session.flush()
    logger.info(
        f"Room {locked.id} finished after {len(locked.called_numbers or [])} numbers"
    )
    return True


def draw_next_number(
    session: Session,
    room: BingoRoom,
    *,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
    config: GameConfig = DEFAULT_CONFIG,
) -> Optional[int]:
    """Draw, record and schedule the next number of a playing round.

    When the pool is exhausted the round is finished and ``None`` is
    returned.
    """
    locked = BingoRoom.get_for_update(session, room.id) or room
    if locked.round_status is not RoundStatus.PLAYING:
        raise RoundStateError(f"Room {locked.id} is not playing")

    called = list(locked.called_numbers or [])
    number = DrawSequencer(locked.pool_size, drawn=called, rng=rng).draw()
    if number is None:
        end_game(session, locked, now=now)
        return None

    now = now or _now()
    locked.called_numbers = called + [number]
    locked.current_number = number
    locked.next_number_at = now + timedelta(seconds=config.draw_interval_seconds)
    session.flush()
    logger.debug(f"Room {locked.id} drew {number} ({len(called) + 1}/{locked.pool_size})")
    return number


def open_next_round(session: Session, room: BingoRoom) -> BingoRoom:
    """Create a fresh waiting room with the settings of a finished one."""
    if room.round_status is not RoundStatus.FINISHED:
        raise RoundStateError(f"Room {room.id} has not finished yet")
    prizes = room.prizes
    successor = BingoRoom(
        name=room.name,
        card_price=room.card_price,
        max_players=room.max_players,
        pool_size=room.pool_size,
        quadra_prize=prizes["quadra"],
        quina_prize=prizes["quina"],
        bingo_prize=prizes["bingo"],
    )
    session.add(successor)
    session.flush()
    return successor


# -------- marking and winners --------
@dataclass(frozen=True)
class MarkResult:
    """Outcome of a mark attempt.

    ``notice`` carries the user-facing reason when the mark was rejected;
    a rejected mark never changes the card.
    """

    marked: bool
    evaluation: Optional[CardEvaluation] = None
    new_tiers: tuple[str, ...] = ()
    notice: Optional[str] = None


def _validate_mark(card: BingoCard, room: BingoRoom, index: int) -> int:
    if room.round_status is not RoundStatus.PLAYING:
        raise InvalidMarkError("Numbers can only be marked while the round is playing")
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < CARD_SIZE:
        raise InvalidMarkError(f"Cell {index!r} is not on the card")
    if index == FREE_INDEX:
        raise InvalidMarkError("The free space is always marked")
    number = card.numbers[index]
    if number not in set(room.called_numbers or []):
        raise InvalidMarkError(f"Number {number} has not been drawn yet")
    return number


def mark_number(session: Session, card: BingoCard, index: int) -> MarkResult:
    """Mark cell ``index`` of ``card`` if its number has been drawn.

    Invalid marks are reported through :attr:`MarkResult.notice`. Marking
    an already-marked cell is a no-op.
    """
    room = card.room or session.get(BingoRoom, card.room_id)
    try:
        _validate_mark(card, room, index)
    except InvalidMarkError as exc:
        logger.warning(f"Rejected mark on card {card.id}: {exc}")
        return MarkResult(marked=False, notice=str(exc))

    marked = list(card.marked_positions or [])
    if index in marked:
        return MarkResult(marked=False, evaluation=card.evaluation())

    before = card.evaluation()
    card.marked_positions = marked + [index]
    after = card.evaluation()
    card.apply_evaluation(after)
    session.flush()

    new_tiers = tuple(
        tier for tier in after.satisfied_tiers if not before.is_satisfied(tier)
    )
    return MarkResult(marked=True, evaluation=after, new_tiers=new_tiers)


@dataclass(frozen=True)
class CommissionStatus:
    funding: FundingStatus
    payable: dict[str, bool] = field(hash=False)


def commission_status(
    room: BingoRoom, *, config: GameConfig = DEFAULT_CONFIG
) -> CommissionStatus:
    """Funding status of ``room`` and which tiers currently pay players."""
    calculator = PrizeFundingCalculator(config.required_funding_percentage)
    tiers = room.prize_tiers()
    donations = money(room.donations or 0)
    return CommissionStatus(
        funding=calculator.status(tiers, donations),
        payable=calculator.payable(tiers, donations),
    )


def add_donation(session: Session, room: BingoRoom, amount) -> Decimal:
    """Add ``amount`` to the round's donations and return the new total."""
    value = money(amount)
    if value <= 0:
        raise ValueError("Donation amount must be positive")
    if room.round_status is RoundStatus.FINISHED:
        raise RoundStateError(f"Room {room.id} has finished")
    room.donations = money(room.donations or 0) + value
    session.flush()
    return room.donations


def check_for_winners(
    session: Session,
    room: BingoRoom,
    *,
    config: GameConfig = DEFAULT_CONFIG,
) -> list[PrizeAward]:
    """Award every tier newly satisfied by a card in ``room``.

    Each (card, tier) pair is awarded once. Payable tiers credit the
    winner's balance; the others are recorded as retained by the house.

    Returns
    -------
    list[PrizeAward]
        Awards created by this call, in card order.
    """
    payable = commission_status(room, config=config).payable
    prizes = room.prizes

    already = {
        (award.card_id, award.tier)
        for award in session.scalars(
            select(PrizeAward).where(PrizeAward.room_id == room.id)
        )
    }
    cards: Sequence[BingoCard] = session.scalars(
        select(BingoCard).where(BingoCard.room_id == room.id).order_by(BingoCard.id)
    ).all()

    awards: list[PrizeAward] = []
    for card in cards:
        evaluation = card.evaluation()
        card.apply_evaluation(evaluation)
        for tier in evaluation.satisfied_tiers:
            if (card.id, tier) in already:
                continue
            paid = payable.get(tier, False)
            award = PrizeAward(
                room_id=room.id,
                card_id=card.id,
                user_id=card.user_id,
                tier=tier,
                amount=prizes[tier],
                paid_to_player=paid,
            )
            if paid:
                winner = session.get(User, card.user_id, with_for_update=True)
                if winner is not None:
                    winner.credit(prizes[tier])
            session.add(award)
            awards.append(award)
            logger.info(
                f"Card {card.id} won {tier} in room {room.id} "
                f"({'paid' if paid else 'retained'} {prizes[tier]})"
            )

    session.flush()
    return awards


def has_bingo_award(awards: Sequence[PrizeAward]) -> bool:
    return any(award.tier == TIER_BINGO for award in awards)


def list_awards(session: Session, room: BingoRoom) -> list[PrizeAward]:
    stmt = (
        select(PrizeAward)
        .where(PrizeAward.room_id == room.id)
        .order_by(PrizeAward.awarded_at.asc(), PrizeAward.id.asc())
    )
    return list(session.scalars(stmt).all())


# -------- chat --------
def post_chat_message(
    session: Session, room: BingoRoom, user: User, message: str
) -> ChatMessage:
    text = (message or "").strip()
    if not text:
        raise ValueError("Message must not be empty")
    entry = ChatMessage(room_id=room.id, user_id=user.id, message=text)
    session.add(entry)
    session.flush()
    return entry


def recent_messages(
    session: Session, room: BingoRoom, limit: int = CHAT_HISTORY_LIMIT
) -> list[ChatMessage]:
    """The latest ``limit`` messages of ``room`` in chronological order."""
    if limit <= 0:
        raise ValueError("limit must be a positive integer")
    stmt = (
        select(ChatMessage)
        .where(ChatMessage.room_id == room.id)
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .limit(limit)
    )
    return list(reversed(session.scalars(stmt).all()))
