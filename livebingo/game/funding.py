"""Prize funding: decides which tiers are paid to players and which the house keeps."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence, Union

Number = Union[int, float, Decimal]

HUNDRED = Decimal(100)


def _to_decimal(value: Number, *, field: str) -> Decimal:
    if isinstance(value, bool):
        raise TypeError(f"{field} must be numeric, not bool")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        raise TypeError(f"{field} must be numeric")
    if result < 0:
        raise ValueError(f"{field} must be non-negative")
    return result


@dataclass(frozen=True)
class PrizeTier:
    """A single prize on offer in a round.

    Attributes
    ----------
    name : str
        Tier identifier, e.g. ``"quadra"``.
    amount : Decimal
        Prize value.
    level : int
        Display order; lower levels are shown first.
    """

    name: str
    amount: Decimal
    level: int = 0


@dataclass(frozen=True)
class FundingStatus:
    """Commission state for a round.

    Attributes
    ----------
    required_percentage : Decimal
        Required donations as a percentage of ``total_prizes``.
    minimum_for_full_payout : Decimal
        Donations needed before every tier is paid.
    current_donations : Decimal
        Donations collected so far.
    total_prizes : Decimal
        Sum of every tier amount.
    payable_amount : Decimal
        ``min(current_donations, total_prizes)``.
    can_pay_all : bool
        ``current_donations >= minimum_for_full_payout``.
    """

    required_percentage: Decimal
    minimum_for_full_payout: Decimal
    current_donations: Decimal
    total_prizes: Decimal
    payable_amount: Decimal
    can_pay_all: bool

    @property
    def progress_percentage(self) -> Decimal:
        """Progress toward full payout, capped at 100."""
        if self.minimum_for_full_payout <= 0:
            return HUNDRED
        ratio = self.current_donations / self.minimum_for_full_payout * HUNDRED
        return min(ratio, HUNDRED)


def _amounts(tiers: Sequence[Union[PrizeTier, Number]]) -> list[Decimal]:
    amounts = []
    for tier in tiers:
        raw = tier.amount if isinstance(tier, PrizeTier) else tier
        amounts.append(_to_decimal(raw, field="tier amount"))
    return amounts


def calculate_funding(
    tiers: Sequence[Union[PrizeTier, Number]],
    donations: Number,
    required_percentage: Number,
) -> FundingStatus:
    """Compute the funding status for ``tiers`` given ``donations``."""
    amounts = _amounts(tiers)
    collected = _to_decimal(donations, field="donations")
    required = _to_decimal(required_percentage, field="required_percentage")

    total = sum(amounts, Decimal(0))
    minimum = total * required / HUNDRED
    return FundingStatus(
        required_percentage=required,
        minimum_for_full_payout=minimum,
        current_donations=collected,
        total_prizes=total,
        payable_amount=min(collected, total),
        can_pay_all=collected >= minimum,
    )


def payable_flags(
    tiers: Sequence[Union[PrizeTier, Number]],
    donations: Number,
    required_percentage: Number,
) -> list[bool]:
    """Return one payable flag per tier, in input order.

    When the round is fully funded every tier pays. Otherwise the payable
    amount is spent on the cheapest tiers first; a tier is paid only if
    the remaining funds cover it entirely. Equal amounts keep input order.
    """
    status = calculate_funding(tiers, donations, required_percentage)
    amounts = _amounts(tiers)
    if status.can_pay_all:
        return [True] * len(amounts)

    flags = [False] * len(amounts)
    remaining = status.payable_amount
    # sorted() is stable, so ties resolve by original position
    for idx in sorted(range(len(amounts)), key=lambda i: amounts[i]):
        if remaining >= amounts[idx]:
            remaining -= amounts[idx]
            flags[idx] = True
    return flags


def payable_tiers(
    tiers: Sequence[PrizeTier],
    donations: Number,
    required_percentage: Number,
) -> dict[str, bool]:
    """Map each tier name to whether it is currently paid to players."""
    names = [tier.name for tier in tiers]
    if len(set(names)) != len(names):
        raise ValueError("Prize tier names must be unique")
    flags = payable_flags(tiers, donations, required_percentage)
    return dict(zip(names, flags))


class PrizeFundingCalculator:
    """Funding calculator bound to a configured required percentage."""

    def __init__(self, required_percentage: Number = Decimal("200")) -> None:
        self.required_percentage = _to_decimal(
            required_percentage, field="required_percentage"
        )

    def status(
        self, tiers: Sequence[PrizeTier], donations: Number
    ) -> FundingStatus:
        return calculate_funding(tiers, donations, self.required_percentage)

    def payable(
        self,
        tiers: Sequence[PrizeTier],
        donations: Number,
        required_percentage: Optional[Number] = None,
    ) -> dict[str, bool]:
        """Payable flag per tier name; ``required_percentage`` overrides the default."""
        required = (
            self.required_percentage
            if required_percentage is None
            else required_percentage
        )
        return payable_tiers(tiers, donations, required)

    def funding_progress(
        self, tiers: Sequence[PrizeTier], donations: Number
    ) -> Decimal:
        return self.status(tiers, donations).progress_percentage


__all__ = [
    "FundingStatus",
    "PrizeFundingCalculator",
    "PrizeTier",
    "calculate_funding",
    "payable_flags",
    "payable_tiers",
]
