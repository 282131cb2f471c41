"""Round lifecycle: ``waiting -> playing -> finished``."""

from __future__ import annotations

from enum import Enum

from ..errors import RoundStateError


class RoundStatus(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


_ALLOWED = {
    RoundStatus.WAITING: {RoundStatus.PLAYING},
    RoundStatus.PLAYING: {RoundStatus.FINISHED},
    RoundStatus.FINISHED: set(),
}


def can_transition(current: "RoundStatus | str", target: "RoundStatus | str") -> bool:
    return RoundStatus(target) in _ALLOWED[RoundStatus(current)]


def transition(current: "RoundStatus | str", target: "RoundStatus | str") -> RoundStatus:
    """Validate a status change and return the new status.

    Raises
    ------
    RoundStateError
        If the change is not one of the two forward transitions.
    """
    if not can_transition(current, target):
        raise RoundStateError(
            f"Cannot move round from '{RoundStatus(current).value}' "
            f"to '{RoundStatus(target).value}'"
        )
    return RoundStatus(target)


__all__ = ["RoundStatus", "can_transition", "transition"]
