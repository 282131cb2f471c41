"""Runtime configuration for rooms, rounds and deposits."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_POOL_SIZE = 75
LIVE_DRAWING_POOL_SIZE = 90
DEPOSIT_AMOUNTS = (50, 100, 200, 500, 1000)


@dataclass(frozen=True)
class GameConfig:
    """Recognized options for a bingo round.

    Attributes
    ----------
    pool_size : int
        Highest number that can be drawn. 75 uses the B-I-N-G-O column
        partition, 90 uses a single pool.
    draw_interval_seconds : float
        Cadence of automatic draws once a round is playing.
    first_draw_delay_seconds : float
        Delay between ``waiting -> playing`` and the first draw.
    auto_start_grace_seconds : float
        Grace window granted to late joiners once ``min_participants`` is met.
    min_participants : int
        Number of players required before the auto-start window opens.
    required_funding_percentage : Decimal
        Donations needed, relative to the total prize value, before every
        tier is paid to players.
    bingo_finalize_delay_seconds : float
        Delay between a bingo award and finishing the round.
    deposit_bonus_percentage : Decimal
        Bonus credited on top of every completed deposit.
    """

    pool_size: int = DEFAULT_POOL_SIZE
    draw_interval_seconds: float = 10.0
    first_draw_delay_seconds: float = 5.0
    auto_start_grace_seconds: float = 30.0
    min_participants: int = 2
    required_funding_percentage: Decimal = Decimal("200")
    bingo_finalize_delay_seconds: float = 3.0
    deposit_bonus_percentage: Decimal = Decimal("10")

    def __post_init__(self) -> None:
        if self.pool_size < 24:
            raise ValueError("pool_size must leave room for 24 distinct card numbers")
        if self.draw_interval_seconds <= 0:
            raise ValueError("draw_interval_seconds must be positive")
        if self.min_participants < 1:
            raise ValueError("min_participants must be at least 1")
        if Decimal(self.required_funding_percentage) < 0:
            raise ValueError("required_funding_percentage must be non-negative")

    def with_overrides(self, **changes) -> "GameConfig":
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GameConfig":
        """Build a config from ``BINGO_*`` environment variables.

        ``.env`` is loaded first when reading the process environment; an
        explicit ``environ`` mapping is used verbatim.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        def _get(name: str, default, cast):
            raw = environ.get(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return cast(raw.strip())
            except (ValueError, ArithmeticError) as exc:
                raise ValueError(f"Invalid value for {name}: {raw!r}") from exc

        defaults = cls()
        return cls(
            pool_size=_get("BINGO_POOL_SIZE", defaults.pool_size, int),
            draw_interval_seconds=_get(
                "BINGO_DRAW_INTERVAL_SECONDS", defaults.draw_interval_seconds, float
            ),
            first_draw_delay_seconds=_get(
                "BINGO_FIRST_DRAW_DELAY_SECONDS",
                defaults.first_draw_delay_seconds,
                float,
            ),
            auto_start_grace_seconds=_get(
                "BINGO_AUTO_START_GRACE_SECONDS",
                defaults.auto_start_grace_seconds,
                float,
            ),
            min_participants=_get(
                "BINGO_MIN_PARTICIPANTS", defaults.min_participants, int
            ),
            required_funding_percentage=_get(
                "BINGO_REQUIRED_FUNDING_PERCENTAGE",
                defaults.required_funding_percentage,
                Decimal,
            ),
            bingo_finalize_delay_seconds=_get(
                "BINGO_FINALIZE_DELAY_SECONDS",
                defaults.bingo_finalize_delay_seconds,
                float,
            ),
            deposit_bonus_percentage=_get(
                "BINGO_DEPOSIT_BONUS_PERCENTAGE",
                defaults.deposit_bonus_percentage,
                Decimal,
            ),
        )


DEFAULT_CONFIG = GameConfig()

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_POOL_SIZE",
    "DEPOSIT_AMOUNTS",
    "GameConfig",
    "LIVE_DRAWING_POOL_SIZE",
]
