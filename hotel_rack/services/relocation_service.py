"""Conflict classification and resolution planning for rack moves.

Planning is pure: every function here reads a rack snapshot and returns the
reassignments to apply, never touching storage. A relocation plan is all or
nothing; when one displaced reservation cannot be placed the whole batch is
rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Iterable, Optional, Sequence

from hotel_rack.domain.constraints import DEFAULT_RACK_CONFIG, RackConfig
from hotel_rack.domain.errors import InvalidMoveError, NoVacantRoomError, SwapNotEligibleError
from hotel_rack.domain.intervals import same_interval
from hotel_rack.domain.models import (
    ConflictInfo,
    MoveResolution,
    Reservation,
    Room,
    RoomAssignment,
)
from hotel_rack.services.conflict_service import DEFAULT_ACTIVE_STATUSES, find_overlapping
from hotel_rack.utils.logger import get_logger, log_event


logger = get_logger(__name__)

CHOICE_DIRECT = "direct"
CHOICE_SWAP = "swap"
CHOICE_RELOCATE = "relocate"
CHOICE_CANCEL = "cancel"

USER_CHOICES = (CHOICE_SWAP, CHOICE_RELOCATE, CHOICE_CANCEL)

CONFLICT_NONE = "none"
CONFLICT_SWAP = "swap"
CONFLICT_DISPLACEMENT = "displacement"


@dataclass(frozen=True)
class RelocationPreview:
    """Outcome of a dry-run relocation shown before the user decides."""

    assignments: tuple[RoomAssignment, ...]
    unplaced_reservation_ids: tuple[str, ...]

    @property
    def feasible(self) -> bool:
        return not self.unplaced_reservation_ids


def room_sort_key(room: Room) -> tuple[int, int, str]:
    """Numeric room numbers first in numeric order, then the rest lexically."""
    label = room.number.strip()
    if label.isdigit():
        return (0, int(label), label)
    return (1, 0, label.lower())


def is_swap_eligible(conflict: ConflictInfo) -> bool:
    if len(conflict.conflicting_reservations) != 1:
        return False
    if conflict.moving_reservation.room_id is None:
        return False
    return same_interval(conflict.moving_reservation, conflict.conflicting_reservations[0])


def classify_conflict(conflict: ConflictInfo) -> str:
    if not conflict.has_conflict:
        return CONFLICT_NONE
    if is_swap_eligible(conflict):
        return CONFLICT_SWAP
    return CONFLICT_DISPLACEMENT


def available_choices(conflict: ConflictInfo) -> tuple[str, ...]:
    """Options offered to the user; swap only appears when it is clean."""
    if not conflict.has_conflict:
        return (CHOICE_DIRECT,)
    if is_swap_eligible(conflict):
        return USER_CHOICES
    return (CHOICE_RELOCATE, CHOICE_CANCEL)


def _moving_assignment(conflict: ConflictInfo) -> RoomAssignment:
    return RoomAssignment(
        reservation_id=conflict.moving_reservation.reservation_id,
        new_room_id=conflict.target_room.room_id,
    )


def plan_direct_move(conflict: ConflictInfo) -> MoveResolution:
    if conflict.has_conflict:
        raise InvalidMoveError(
            "move has conflicting reservations; choose swap, relocate or cancel"
        )
    return MoveResolution(choice=CHOICE_DIRECT, assignments=(_moving_assignment(conflict),))


def plan_swap(conflict: ConflictInfo) -> MoveResolution:
    """Exchange rooms between the moving and the single conflicting reservation."""
    source_room_id = conflict.moving_reservation.room_id
    if source_room_id is None or not is_swap_eligible(conflict):
        raise SwapNotEligibleError(
            "swap requires exactly one conflicting reservation with identical dates"
        )
    other = conflict.conflicting_reservations[0]
    return MoveResolution(
        choice=CHOICE_SWAP,
        assignments=(
            _moving_assignment(conflict),
            RoomAssignment(reservation_id=other.reservation_id, new_room_id=source_room_id),
        ),
    )


def find_vacant_room(
    reservation: Reservation,
    rooms: Iterable[Room],
    reservations: Sequence[Reservation],
    *,
    excluded_room_ids: AbstractSet[str] = frozenset(),
    active_statuses: AbstractSet[str] = DEFAULT_ACTIVE_STATUSES,
    lookahead: int = 0,
) -> Optional[Room]:
    """First room, by room number, free for the reservation's exact nights.

    ``lookahead`` bounds how many candidate rooms are examined; 0 examines all.
    """
    examined = 0
    for room in sorted(rooms, key=room_sort_key):
        if room.room_id in excluded_room_ids or room.is_out_of_order:
            continue
        if lookahead and examined >= lookahead:
            break
        examined += 1
        blocking = find_overlapping(
            reservations,
            room.room_id,
            reservation.start,
            reservation.end,
            active_statuses=active_statuses,
            exclude_ids=frozenset({reservation.reservation_id}),
        )
        if not blocking:
            return room
    return None


def preview_relocation(
    conflict: ConflictInfo,
    rooms: Sequence[Room],
    reservations: Sequence[Reservation],
    config: RackConfig = DEFAULT_RACK_CONFIG,
) -> RelocationPreview:
    """Place every displaced reservation, collecting the ones that do not fit."""
    chosen_room_ids: set[str] = {conflict.target_room.room_id}
    assignments: list[RoomAssignment] = [_moving_assignment(conflict)]
    unplaced: list[str] = []

    for displaced in conflict.conflicting_reservations:
        room = find_vacant_room(
            displaced,
            rooms,
            reservations,
            excluded_room_ids=chosen_room_ids,
            active_statuses=config.active_statuses,
            lookahead=config.relocation_lookahead,
        )
        if room is None:
            unplaced.append(displaced.reservation_id)
            continue
        chosen_room_ids.add(room.room_id)
        assignments.append(
            RoomAssignment(reservation_id=displaced.reservation_id, new_room_id=room.room_id)
        )

    if unplaced:
        return RelocationPreview(assignments=(), unplaced_reservation_ids=tuple(unplaced))
    return RelocationPreview(assignments=tuple(assignments), unplaced_reservation_ids=())


def plan_relocation(
    conflict: ConflictInfo,
    rooms: Sequence[Room],
    reservations: Sequence[Reservation],
    config: RackConfig = DEFAULT_RACK_CONFIG,
) -> MoveResolution:
    """Move into the target room and push each displaced guest to a free room."""
    if not conflict.has_conflict:
        return plan_direct_move(conflict)
    preview = preview_relocation(conflict, rooms, reservations, config)
    if not preview.feasible:
        log_event(
            logger,
            "Relocation aborted",
            reservation_id=conflict.moving_reservation.reservation_id,
            target_room_id=conflict.target_room.room_id,
            unplaced=",".join(preview.unplaced_reservation_ids),
        )
        raise NoVacantRoomError(preview.unplaced_reservation_ids)
    return MoveResolution(choice=CHOICE_RELOCATE, assignments=preview.assignments)


def resolve_move(
    conflict: ConflictInfo,
    choice: str,
    rooms: Sequence[Room],
    reservations: Sequence[Reservation],
    config: RackConfig = DEFAULT_RACK_CONFIG,
) -> Optional[MoveResolution]:
    """Plan the reassignments for ``choice``; ``cancel`` yields ``None``."""
    normalized = choice.strip().lower()
    if normalized == CHOICE_CANCEL:
        return None
    if normalized == CHOICE_DIRECT:
        return plan_direct_move(conflict)
    if normalized == CHOICE_SWAP:
        return plan_swap(conflict)
    if normalized == CHOICE_RELOCATE:
        return plan_relocation(conflict, rooms, reservations, config)
    raise InvalidMoveError(f"unknown move choice {choice!r}")
