"""Random, non-repeating number draws over a pool of ``1..N``."""

from __future__ import annotations

import random
from typing import Iterable, Optional


def _validate_pool_size(pool_size: int) -> None:
    if isinstance(pool_size, bool) or not isinstance(pool_size, int):
        raise TypeError("pool_size must be an integer")
    if pool_size < 1:
        raise ValueError("pool_size must be at least 1")


def draw_next(
    already_drawn: Iterable[int],
    pool_size: int,
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """Pick the next number uniformly among those not yet drawn.

    Parameters
    ----------
    already_drawn : Iterable[int]
        Numbers drawn so far in the round.
    pool_size : int
        Highest number in the pool.
    rng : random.Random, optional
        Random generator; useful for deterministic tests.

    Returns
    -------
    Optional[int]
        The drawn number, or ``None`` when the pool is exhausted. The caller
        records the number and broadcasts it.
    """
    _validate_pool_size(pool_size)
    drawn = set(already_drawn)
    candidates = [n for n in range(1, pool_size + 1) if n not in drawn]
    if not candidates:
        return None
    rng = rng or random.Random()
    return rng.choice(candidates)


class DrawState:
    """Ordered draw history of one round."""

    def __init__(self, pool_size: int, drawn: Optional[Iterable[int]] = None) -> None:
        _validate_pool_size(pool_size)
        self.pool_size = pool_size
        self._drawn: list[int] = []
        self._seen: set[int] = set()
        self._frozen = False
        for number in drawn or ():
            self.record(number)

    @property
    def drawn(self) -> tuple[int, ...]:
        return tuple(self._drawn)

    @property
    def current(self) -> Optional[int]:
        return self._drawn[-1] if self._drawn else None

    @property
    def remaining(self) -> int:
        return self.pool_size - len(self._drawn)

    @property
    def exhausted(self) -> bool:
        return self.remaining == 0

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def drawn_percentage(self) -> float:
        return len(self._drawn) / self.pool_size * 100

    def is_drawn(self, number: int) -> bool:
        return number in self._seen

    def is_current(self, number: int) -> bool:
        return self.current == number

    def record(self, number: int) -> None:
        """Append ``number`` to the history.

        Raises
        ------
        RuntimeError
            If the state has been frozen at round end.
        ValueError
            If ``number`` is outside the pool or already drawn.
        """
        if self._frozen:
            raise RuntimeError("Draw state is frozen; the round has ended")
        if isinstance(number, bool) or not isinstance(number, int):
            raise ValueError(f"Drawn number {number!r} is not an integer")
        if not 1 <= number <= self.pool_size:
            raise ValueError(f"Drawn number {number} is outside 1..{self.pool_size}")
        if number in self._seen:
            raise ValueError(f"Number {number} was already drawn")
        self._drawn.append(number)
        self._seen.add(number)

    def freeze(self) -> None:
        self._frozen = True

    def __repr__(self) -> str:
        return (
            f"<DrawState(pool_size={self.pool_size}, drawn={len(self._drawn)}, "
            f"current={self.current}, frozen={self._frozen})>"
        )


class DrawSequencer:
    """Draws numbers into a :class:`DrawState` one at a time."""

    def __init__(
        self,
        pool_size: int,
        *,
        drawn: Optional[Iterable[int]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.state = DrawState(pool_size, drawn)
        self._rng = rng or random.Random()

    def draw(self) -> Optional[int]:
        """Draw and record the next number; ``None`` once the pool is empty."""
        if self.state.frozen:
            return None
        number = draw_next(self.state.drawn, self.state.pool_size, self._rng)
        if number is None:
            self.state.freeze()
            return None
        self.state.record(number)
        return number

    def is_drawn(self, number: int) -> bool:
        return self.state.is_drawn(number)

    def is_current(self, number: int) -> bool:
        return self.state.is_current(number)

    @property
    def remaining(self) -> int:
        return self.state.remaining

    @property
    def exhausted(self) -> bool:
        return self.state.exhausted

    @property
    def drawn_percentage(self) -> float:
        return self.state.drawn_percentage


__all__ = ["DrawSequencer", "DrawState", "draw_next"]
