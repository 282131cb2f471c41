"""Bingo card generation and validation."""

from __future__ import annotations

import random
from typing import Optional, Sequence

from .evaluator import CARD_SIZE, FREE_INDEX

FREE_VALUE = 0
COLUMN_LETTERS = ("B", "I", "N", "G", "O")


def column_ranges(pool_size: int) -> list[tuple[int, int]]:
    """Return the inclusive number range of each column for a partitioned pool.

    A 75-number pool yields 1-15, 16-30, 31-45, 46-60, 61-75.
    """
    if pool_size % 5 != 0 or pool_size // 5 < 5:
        raise ValueError(
            "A column-partitioned pool must split into five ranges of at least five numbers"
        )
    width = pool_size // 5
    return [(c * width + 1, (c + 1) * width) for c in range(5)]


def column_letter(index: int) -> str:
    """Letter of the column containing cell ``index``."""
    if not 0 <= index < CARD_SIZE:
        raise ValueError(f"Cell index {index} is outside the card")
    return COLUMN_LETTERS[index % 5]


def generate_card(
    pool_size: int = 75,
    *,
    partitioned: Optional[bool] = None,
    rng: Optional[random.Random] = None,
) -> list[int]:
    """Generate the 25 cell values of a new card, row by row.

    Parameters
    ----------
    pool_size : int, default: 75
        Highest drawable number.
    partitioned : bool, optional
        Draw each column from its own sub-range. Defaults to ``True`` for a
        75-number pool and ``False`` otherwise (single pool, e.g. 1-90).
    rng : random.Random, optional
        Random generator; useful for deterministic tests.

    Returns
    -------
    list[int]
        Values indexed ``row * 5 + column``; the centre cell holds ``0``.
    """
    rng = rng or random.Random()
    if partitioned is None:
        partitioned = pool_size == 75

    cells = [FREE_VALUE] * CARD_SIZE
    if partitioned:
        for col, (low, high) in enumerate(column_ranges(pool_size)):
            column = sorted(rng.sample(range(low, high + 1), 5))
            for row, value in enumerate(column):
                cells[row * 5 + col] = value
    else:
        if pool_size < CARD_SIZE - 1:
            raise ValueError("pool_size is too small to fill a card")
        values = rng.sample(range(1, pool_size + 1), CARD_SIZE - 1)
        positions = [i for i in range(CARD_SIZE) if i != FREE_INDEX]
        for idx, value in zip(positions, values):
            cells[idx] = value

    cells[FREE_INDEX] = FREE_VALUE
    return cells


def validate_card(numbers: Sequence[int], pool_size: int) -> None:
    """Raise ``ValueError`` unless ``numbers`` is a well-formed card."""
    if len(numbers) != CARD_SIZE:
        raise ValueError(f"A card must have {CARD_SIZE} cells")
    if numbers[FREE_INDEX] != FREE_VALUE:
        raise ValueError("The centre cell must be the free space")
    values = [n for i, n in enumerate(numbers) if i != FREE_INDEX]
    for n in values:
        if not 1 <= n <= pool_size:
            raise ValueError(f"Card number {n} is outside 1..{pool_size}")
    if len(set(values)) != len(values):
        raise ValueError("Card numbers must be unique")


__all__ = [
    "COLUMN_LETTERS",
    "FREE_VALUE",
    "column_letter",
    "column_ranges",
    "generate_card",
    "validate_card",
]
