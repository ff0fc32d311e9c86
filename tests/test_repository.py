from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from hotel_rack.domain.errors import RepositoryError
from hotel_rack.domain.models import Reservation, RoomAssignment
from hotel_rack.repository.data_repository import DataRepository
from hotel_rack.utils.config import get_settings

ACTIVE = frozenset({"confirmed", "present"})


def _build_repository(tmp_path) -> DataRepository:
    get_settings.cache_clear()
    settings = replace(get_settings(), database_path=tmp_path / "repository.db")
    repository = DataRepository(settings)
    repository.initialize_database()
    return repository


def _stay(
    reservation_id: str,
    room_id: str | None,
    start: str,
    end: str,
    status: str = "confirmed",
) -> Reservation:
    return Reservation(
        reservation_id=reservation_id,
        guest_name=f"Guest {reservation_id}",
        start=date.fromisoformat(start),
        end=date.fromisoformat(end),
        rate=80.0,
        room_id=room_id,
        status=status,
    )


def test_seed_demo_data_runs_once(tmp_path):
    repository = _build_repository(tmp_path)

    assert repository.seed_demo_data(today=date(2025, 3, 1)) is True
    assert repository.seed_demo_data(today=date(2025, 3, 1)) is False

    snapshot = repository.load_snapshot()
    assert len(snapshot.rooms) == 8
    assert repository.count_reservations() == 6
    assert [room.number for room in snapshot.rooms][:3] == ["101", "102", "103"]


def test_window_filter_keeps_departures_on_first_day(tmp_path):
    repository = _build_repository(tmp_path)
    repository.create_room("R1", "1")
    repository.create_reservation(_stay("A", "R1", "2025-02-27", "2025-03-01"))
    repository.create_reservation(_stay("B", "R1", "2025-03-01", "2025-03-04"))
    repository.create_reservation(_stay("C", "R1", "2025-03-04", "2025-03-06"))
    repository.create_reservation(_stay("D", "R1", "2025-02-20", "2025-02-25"))

    reservations = repository.list_reservations(date(2025, 3, 1), date(2025, 3, 4))

    assert [item.reservation_id for item in reservations] == ["A", "B"]


def test_unassigned_reservation_round_trips(tmp_path):
    repository = _build_repository(tmp_path)
    repository.create_reservation(_stay("A", None, "2025-03-01", "2025-03-02"))

    stored = repository.get_reservation("A")

    assert stored is not None
    assert stored.room_id is None
    assert repository.get_reservation("missing") is None


def test_apply_assignments_swaps_atomically(tmp_path):
    repository = _build_repository(tmp_path)
    repository.create_room("R1", "1")
    repository.create_room("R2", "2")
    repository.create_reservation(_stay("A", "R1", "2025-03-01", "2025-03-03"))
    repository.create_reservation(_stay("B", "R2", "2025-03-01", "2025-03-03"))

    applied = repository.apply_assignments(
        [
            RoomAssignment(reservation_id="A", new_room_id="R2"),
            RoomAssignment(reservation_id="B", new_room_id="R1"),
        ],
        active_statuses=ACTIVE,
    )

    assert applied == 2
    assert repository.get_reservation("A").room_id == "R2"
    assert repository.get_reservation("B").room_id == "R1"


def test_apply_assignments_rejects_double_booking(tmp_path):
    repository = _build_repository(tmp_path)
    repository.create_room("R1", "1")
    repository.create_room("R2", "2")
    repository.create_reservation(_stay("A", "R1", "2025-03-01", "2025-03-03"))
    repository.create_reservation(_stay("B", "R2", "2025-03-02", "2025-03-04"))

    with pytest.raises(RepositoryError, match="double-book"):
        repository.apply_assignments(
            [RoomAssignment(reservation_id="A", new_room_id="R2")],
            active_statuses=ACTIVE,
        )

    assert repository.get_reservation("A").room_id == "R1"


def test_apply_assignments_ignores_inactive_clashes(tmp_path):
    repository = _build_repository(tmp_path)
    repository.create_room("R1", "1")
    repository.create_room("R2", "2")
    repository.create_reservation(_stay("A", "R1", "2025-03-01", "2025-03-03"))
    repository.create_reservation(
        _stay("B", "R2", "2025-03-01", "2025-03-03", status="cancelled")
    )

    repository.apply_assignments(
        [RoomAssignment(reservation_id="A", new_room_id="R2")],
        active_statuses=ACTIVE,
    )

    assert repository.get_reservation("A").room_id == "R2"


def test_apply_assignments_unknown_reservation_rolls_back(tmp_path):
    repository = _build_repository(tmp_path)
    repository.create_room("R1", "1")
    repository.create_room("R2", "2")
    repository.create_reservation(_stay("A", "R1", "2025-03-01", "2025-03-03"))

    with pytest.raises(RepositoryError, match="not found"):
        repository.apply_assignments(
            [
                RoomAssignment(reservation_id="A", new_room_id="R2"),
                RoomAssignment(reservation_id="ghost", new_room_id="R1"),
            ],
            active_statuses=ACTIVE,
        )

    assert repository.get_reservation("A").room_id == "R1"


def test_set_room_status_unknown_room(tmp_path):
    repository = _build_repository(tmp_path)

    with pytest.raises(RepositoryError):
        repository.set_room_status("R404", "dirty")


def test_apply_assignments_matches_statuses_case_insensitively(tmp_path):
    repository = _build_repository(tmp_path)
    repository.create_room("R1", "1")
    repository.create_room("R2", "2")
    repository.create_reservation(_stay("A", "R1", "2025-03-01", "2025-03-03"))
    repository.create_reservation(
        _stay("B", "R2", "2025-03-02", "2025-03-04", status="Confirmed")
    )

    with pytest.raises(RepositoryError, match="double-book"):
        repository.apply_assignments(
            [RoomAssignment(reservation_id="A", new_room_id="R2")],
            active_statuses=ACTIVE,
        )

    assert repository.get_reservation("A").room_id == "R1"
