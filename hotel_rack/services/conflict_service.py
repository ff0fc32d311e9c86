"""Conflict detection for reservation moves on the room rack."""

from __future__ import annotations

from datetime import date
from typing import AbstractSet, Iterable, Optional, Sequence, Union

from hotel_rack.domain.constraints import DEFAULT_RACK_CONFIG
from hotel_rack.domain.errors import InvalidMoveError, ReservationNotFoundError, RoomNotFoundError
from hotel_rack.domain.intervals import occupies_date, overlaps
from hotel_rack.domain.models import ConflictInfo, Reservation, Room
from hotel_rack.utils.logger import get_logger, log_event


logger = get_logger(__name__)

DEFAULT_ACTIVE_STATUSES = DEFAULT_RACK_CONFIG.active_statuses


def is_blocking(
    reservation: Reservation,
    active_statuses: AbstractSet[str] = DEFAULT_ACTIVE_STATUSES,
) -> bool:
    """Only active reservations occupy a room; unknown status counts as active."""
    if reservation.status is None:
        return True
    return reservation.status.lower() in active_statuses


def find_overlapping(
    reservations: Iterable[Reservation],
    room_id: str,
    start: date,
    end: date,
    *,
    active_statuses: AbstractSet[str] = DEFAULT_ACTIVE_STATUSES,
    exclude_ids: AbstractSet[str] = frozenset(),
) -> list[Reservation]:
    """Active reservations in ``room_id`` overlapping ``[start, end)``.

    Results are ordered by arrival date; reservations arriving the same day keep
    their snapshot order.
    """
    matches = [
        reservation
        for reservation in reservations
        if reservation.room_id == room_id
        and reservation.reservation_id not in exclude_ids
        and is_blocking(reservation, active_statuses)
        and overlaps(start, end, reservation.start, reservation.end)
    ]
    return sorted(matches, key=lambda reservation: reservation.start)


def _as_room(target_room: Union[Room, str]) -> Room:
    if isinstance(target_room, Room):
        return target_room
    return Room(room_id=target_room, number=target_room)


def detect_conflicts(
    reservations: Sequence[Reservation],
    target_room: Union[Room, str],
    moving_reservation: Reservation,
    *,
    active_statuses: AbstractSet[str] = DEFAULT_ACTIVE_STATUSES,
) -> ConflictInfo:
    """Return the reservations blocking ``moving_reservation`` in ``target_room``.

    An empty ``conflicting_reservations`` tuple means the move is free.
    """
    room = _as_room(target_room)
    if moving_reservation.room_id == room.room_id:
        return ConflictInfo(moving_reservation=moving_reservation, target_room=room)

    conflicts = find_overlapping(
        reservations,
        room.room_id,
        moving_reservation.start,
        moving_reservation.end,
        active_statuses=active_statuses,
        exclude_ids=frozenset({moving_reservation.reservation_id}),
    )
    return ConflictInfo(
        moving_reservation=moving_reservation,
        target_room=room,
        conflicting_reservations=tuple(conflicts),
    )


def check_move(
    rooms: Sequence[Room],
    reservations: Sequence[Reservation],
    reservation_id: str,
    target_room_id: str,
    *,
    active_statuses: AbstractSet[str] = DEFAULT_ACTIVE_STATUSES,
) -> ConflictInfo:
    """Resolve ids against the snapshot, then detect conflicts.

    Raises ``InvalidMoveError`` before any classification when the reservation
    or the room is missing, or when the room cannot take guests.
    """
    moving = next(
        (item for item in reservations if item.reservation_id == reservation_id),
        None,
    )
    if moving is None:
        raise ReservationNotFoundError(f"reservation_id {reservation_id} not found")
    room = next((item for item in rooms if item.room_id == target_room_id), None)
    if room is None:
        raise RoomNotFoundError(f"room_id {target_room_id} not found")
    if room.is_out_of_order:
        raise InvalidMoveError(f"room {room.number} is out of order")

    conflict = detect_conflicts(
        reservations,
        room,
        moving,
        active_statuses=active_statuses,
    )
    log_event(
        logger,
        "Move checked",
        reservation_id=reservation_id,
        target_room_id=target_room_id,
        conflicts=len(conflict.conflicting_reservations),
    )
    return conflict


def reservation_for_cell(
    reservations: Iterable[Reservation],
    room_id: str,
    day: date,
    *,
    active_statuses: Optional[AbstractSet[str]] = None,
) -> Optional[Reservation]:
    """Reservation shown in the rack cell for ``room_id`` on ``day``."""
    for reservation in reservations:
        if reservation.room_id != room_id or not occupies_date(reservation, day):
            continue
        if active_statuses is not None and not is_blocking(reservation, active_statuses):
            continue
        return reservation
    return None


def can_accept_drop(room: Room, reservation: Reservation) -> bool:
    """Whether dropping ``reservation`` on ``room`` should start a move."""
    if room.is_out_of_order:
        return False
    return reservation.room_id != room.room_id
