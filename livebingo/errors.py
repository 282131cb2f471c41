"""Exception hierarchy shared by the game core and the workflows."""

from __future__ import annotations


class BingoError(Exception):
    """Base class for errors raised by livebingo."""


class InvalidMarkError(BingoError, ValueError):
    """A mark was rejected: bad position, free cell, or number not yet drawn."""


class RoundStateError(BingoError, ValueError):
    """An operation was attempted while the round is in the wrong status."""


class RoomFullError(BingoError, ValueError):
    """The room has no free player slots."""


class InsufficientBalanceError(BingoError, ValueError):
    """The user's balance cannot cover the requested debit."""


class DepositError(BingoError, ValueError):
    """A deposit request or status change is not allowed."""


class AuthorizationError(BingoError, PermissionError):
    """The acting user lacks the role required for the operation."""


__all__ = [
    "AuthorizationError",
    "BingoError",
    "DepositError",
    "InsufficientBalanceError",
    "InvalidMarkError",
    "RoomFullError",
    "RoundStateError",
]
