"""Win-pattern detection for a 5x5 bingo card."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..errors import InvalidMarkError

CARD_SIZE = 25
FREE_INDEX = 12
CORNERS: tuple[int, ...] = (0, 4, 20, 24)
BINGO_MARK_COUNT = 24

TIER_QUADRA = "quadra"
TIER_QUINA = "quina"
TIER_BINGO = "bingo"
TIERS: tuple[str, ...] = (TIER_QUADRA, TIER_QUINA, TIER_BINGO)


def _build_lines() -> tuple[tuple[int, ...], ...]:
    rows = [tuple(r * 5 + c for c in range(5)) for r in range(5)]
    cols = [tuple(r * 5 + c for r in range(5)) for c in range(5)]
    diagonals = [
        tuple(i * 5 + i for i in range(5)),
        tuple(i * 5 + (4 - i) for i in range(5)),
    ]
    return tuple(rows + cols + diagonals)


WINNING_LINES = _build_lines()


def normalize_positions(marked_positions: Iterable[int]) -> frozenset[int]:
    """Return ``marked_positions`` as a frozenset after range validation.

    Raises
    ------
    InvalidMarkError
        If any position is not an integer in ``0..24``.
    """
    positions = set()
    for pos in marked_positions:
        if isinstance(pos, bool) or not isinstance(pos, int):
            raise InvalidMarkError(f"Marked position {pos!r} is not an integer")
        if not 0 <= pos < CARD_SIZE:
            raise InvalidMarkError(f"Marked position {pos} is outside 0..{CARD_SIZE - 1}")
        positions.add(pos)
    return frozenset(positions)


def check_quadra(marked: frozenset[int]) -> bool:
    """All four corners are marked."""
    return all(pos in marked for pos in CORNERS)


def check_quina(marked: frozenset[int]) -> bool:
    """Any row, column or diagonal is complete; the free cell always counts."""
    return any(
        all(pos in marked or pos == FREE_INDEX for pos in line)
        for line in WINNING_LINES
    )


def check_bingo(marked: frozenset[int]) -> bool:
    """Full-card clear: at least 24 marks."""
    return len(marked) >= BINGO_MARK_COUNT


@dataclass(frozen=True)
class CardEvaluation:
    """Prize tiers satisfied by one card.

    Attributes
    ----------
    quadra : bool
        All four corners are marked.
    quina : bool
        At least one complete line.
    bingo : bool
        Every non-free cell is marked.
    """

    quadra: bool
    quina: bool
    bingo: bool

    @property
    def satisfied_tiers(self) -> list[str]:
        """Names of satisfied tiers, cheapest pattern first."""
        flags = (self.quadra, self.quina, self.bingo)
        return [tier for tier, hit in zip(TIERS, flags) if hit]

    def is_satisfied(self, tier: str) -> bool:
        if tier not in TIERS:
            raise KeyError(f"Unknown prize tier '{tier}'")
        return getattr(self, tier)


class CardEvaluator:
    """Stateless evaluator mapping a set of marked cells to prize tiers."""

    def evaluate(self, marked_positions: Iterable[int]) -> CardEvaluation:
        """Evaluate ``marked_positions`` against every prize pattern.

        The caller is responsible for having checked that each position
        corresponds to a number already drawn.

        Parameters
        ----------
        marked_positions : Iterable[int]
            Cell indices (0..24) flagged as matched. Order and duplicates
            are irrelevant.

        Returns
        -------
        CardEvaluation
            One boolean per tier.

        Raises
        ------
        InvalidMarkError
            If a position is outside the card.
        """
        marked = normalize_positions(marked_positions)
        return CardEvaluation(
            quadra=check_quadra(marked),
            quina=check_quina(marked),
            bingo=check_bingo(marked),
        )


DEFAULT_EVALUATOR = CardEvaluator()


def evaluate_card(marked_positions: Iterable[int]) -> CardEvaluation:
    """Shortcut for :meth:`CardEvaluator.evaluate` on the default evaluator."""
    return DEFAULT_EVALUATOR.evaluate(marked_positions)


__all__ = [
    "BINGO_MARK_COUNT",
    "CARD_SIZE",
    "CORNERS",
    "CardEvaluation",
    "CardEvaluator",
    "DEFAULT_EVALUATOR",
    "FREE_INDEX",
    "TIERS",
    "TIER_BINGO",
    "TIER_QUADRA",
    "TIER_QUINA",
    "WINNING_LINES",
    "check_bingo",
    "check_quadra",
    "check_quina",
    "evaluate_card",
    "normalize_positions",
]
