from __future__ import annotations

from datetime import date

import pytest

from hotel_rack.domain.errors import InvalidMoveError, ReservationNotFoundError, RoomNotFoundError
from hotel_rack.domain.models import Reservation, Room
from hotel_rack.services.conflict_service import (
    can_accept_drop,
    check_move,
    detect_conflicts,
    find_overlapping,
    is_blocking,
    reservation_for_cell,
)


def _stay(
    reservation_id: str,
    room_id: str | None,
    start: str,
    end: str,
    status: str | None = "confirmed",
) -> Reservation:
    return Reservation(
        reservation_id=reservation_id,
        guest_name=f"Guest {reservation_id}",
        start=date.fromisoformat(start),
        end=date.fromisoformat(end),
        rate=100.0,
        room_id=room_id,
        status=status,
    )


ROOMS = (
    Room(room_id="R1", number="1"),
    Room(room_id="R2", number="2"),
    Room(room_id="R3", number="3", status="out_of_order"),
)


def test_is_blocking_only_for_active_statuses() -> None:
    assert is_blocking(_stay("A", "R1", "2025-03-01", "2025-03-02", status="confirmed"))
    assert is_blocking(_stay("A", "R1", "2025-03-01", "2025-03-02", status="PRESENT"))
    assert is_blocking(_stay("A", "R1", "2025-03-01", "2025-03-02", status=None))
    assert not is_blocking(_stay("A", "R1", "2025-03-01", "2025-03-02", status="cancelled"))
    assert not is_blocking(_stay("A", "R1", "2025-03-01", "2025-03-02", status="option"))


def test_detect_conflicts_lists_overlaps_by_start_date() -> None:
    moving = _stay("A", "R1", "2025-03-01", "2025-03-10")
    later = _stay("C", "R2", "2025-03-06", "2025-03-08")
    earlier = _stay("B", "R2", "2025-03-02", "2025-03-04")
    departed = _stay("D", "R2", "2025-02-25", "2025-03-01")

    conflict = detect_conflicts([moving, later, earlier, departed], "R2", moving)

    assert conflict.has_conflict
    assert [item.reservation_id for item in conflict.conflicting_reservations] == ["B", "C"]
    assert conflict.target_room.room_id == "R2"


def test_detect_conflicts_ignores_inactive_reservations() -> None:
    moving = _stay("A", "R1", "2025-03-01", "2025-03-03")
    cancelled = _stay("B", "R2", "2025-03-01", "2025-03-03", status="cancelled")

    conflict = detect_conflicts([moving, cancelled], ROOMS[1], moving)

    assert not conflict.has_conflict


def test_moving_to_own_room_is_a_no_op() -> None:
    moving = _stay("A", "R1", "2025-03-01", "2025-03-03")
    neighbour = _stay("B", "R1", "2025-03-02", "2025-03-04")

    conflict = detect_conflicts([moving, neighbour], ROOMS[0], moving)

    assert conflict.conflicting_reservations == ()


def test_find_overlapping_honours_exclusions() -> None:
    first = _stay("A", "R1", "2025-03-01", "2025-03-03")
    second = _stay("B", "R1", "2025-03-02", "2025-03-05")

    found = find_overlapping(
        [first, second],
        "R1",
        date(2025, 3, 1),
        date(2025, 3, 4),
        exclude_ids=frozenset({"A"}),
    )

    assert [item.reservation_id for item in found] == ["B"]


def test_check_move_unknown_reservation_raises() -> None:
    with pytest.raises(ReservationNotFoundError):
        check_move(ROOMS, [], "missing", "R1")


def test_check_move_unknown_room_raises() -> None:
    moving = _stay("A", "R1", "2025-03-01", "2025-03-03")
    with pytest.raises(RoomNotFoundError):
        check_move(ROOMS, [moving], "A", "R9")


def test_check_move_out_of_order_room_raises() -> None:
    moving = _stay("A", "R1", "2025-03-01", "2025-03-03")
    with pytest.raises(InvalidMoveError, match="out of order"):
        check_move(ROOMS, [moving], "A", "R3")


def test_check_move_unassigned_reservation_sees_conflicts() -> None:
    moving = _stay("A", None, "2025-03-01", "2025-03-03")
    occupant = _stay("B", "R2", "2025-03-02", "2025-03-03")

    conflict = check_move(ROOMS, [moving, occupant], "A", "R2")

    assert [item.reservation_id for item in conflict.conflicting_reservations] == ["B"]


def test_reservation_for_cell() -> None:
    stay = _stay("A", "R1", "2025-03-01", "2025-03-03")
    cancelled = _stay("B", "R2", "2025-03-01", "2025-03-03", status="cancelled")
    reservations = [stay, cancelled]

    assert reservation_for_cell(reservations, "R1", date(2025, 3, 2)) == stay
    assert reservation_for_cell(reservations, "R1", date(2025, 3, 3)) is None
    assert reservation_for_cell(reservations, "R2", date(2025, 3, 1)) == cancelled
    assert (
        reservation_for_cell(
            reservations,
            "R2",
            date(2025, 3, 1),
            active_statuses=frozenset({"confirmed"}),
        )
        is None
    )


def test_can_accept_drop() -> None:
    stay = _stay("A", "R1", "2025-03-01", "2025-03-03")

    assert can_accept_drop(ROOMS[1], stay)
    assert not can_accept_drop(ROOMS[0], stay)
    assert not can_accept_drop(ROOMS[2], stay)
