"""Exception hierarchy shared by rack services and controllers."""

from __future__ import annotations

from typing import Iterable


class RackError(Exception):
    """Base exception for rack workflow failures."""


class InvalidMoveError(RackError):
    """Raised when a move references data missing from the snapshot."""


class ReservationNotFoundError(InvalidMoveError):
    """Raised when the moving reservation id is unknown."""


class RoomNotFoundError(InvalidMoveError):
    """Raised when the target room id is unknown."""


class SwapNotEligibleError(RackError):
    """Raised when a swap is requested for a conflict that does not allow it."""


class NoVacantRoomError(RackError):
    """Raised when relocation cannot place every displaced reservation."""

    def __init__(self, reservation_ids: Iterable[str]) -> None:
        self.reservation_ids = tuple(reservation_ids)
        super().__init__(
            "No vacant room found for reservation(s): "
            + ", ".join(self.reservation_ids)
        )


class ResolutionInProgressError(RackError):
    """Raised when a second resolution races a pending one."""


class MoveSessionNotFoundError(RackError):
    """Raised when resolving a move that is not awaiting a choice."""


class RepositoryError(RackError):
    """Raised when the rack data source cannot load or apply changes."""
