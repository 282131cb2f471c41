from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .user import User  # noqa: F401
from .room import BingoRoom  # noqa: F401
from .card import BingoCard  # noqa: F401
from .award import PrizeAward  # noqa: F401
from .deposit import Deposit  # noqa: F401
from .chat import ChatMessage  # noqa: F401

__all__ = [
    "Base",
    "User",
    "BingoRoom",
    "BingoCard",
    "PrizeAward",
    "Deposit",
    "ChatMessage",
]
