"""Pure game logic: card evaluation, prize funding, draws and round timing."""

from .cards import column_letter, generate_card, validate_card
from .draw import DrawSequencer, DrawState, draw_next
from .evaluator import (
    CardEvaluation,
    CardEvaluator,
    FREE_INDEX,
    TIERS,
    evaluate_card,
)
from .funding import (
    FundingStatus,
    PrizeFundingCalculator,
    PrizeTier,
    calculate_funding,
    payable_tiers,
)
from .scheduler import RoundScheduler, format_countdown, seconds_until
from .state import RoundStatus, can_transition, transition
from .timers import AsyncioTimers, ManualTimers

__all__ = [
    "AsyncioTimers",
    "CardEvaluation",
    "CardEvaluator",
    "DrawSequencer",
    "DrawState",
    "FREE_INDEX",
    "FundingStatus",
    "ManualTimers",
    "PrizeFundingCalculator",
    "PrizeTier",
    "RoundScheduler",
    "RoundStatus",
    "TIERS",
    "calculate_funding",
    "can_transition",
    "column_letter",
    "draw_next",
    "evaluate_card",
    "format_countdown",
    "generate_card",
    "payable_tiers",
    "seconds_until",
    "transition",
    "validate_card",
]
