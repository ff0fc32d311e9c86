from __future__ import annotations

from datetime import date

import pytest

from hotel_rack.domain.models import Reservation, Room
from hotel_rack.services.kpi_service import (
    KPI_COLUMNS,
    compute_daily_kpis,
    compute_rack_summary,
    compute_trend,
    kpis_to_frame,
    round_half_up,
)


def _stay(
    reservation_id: str,
    room_id: str,
    start: str,
    end: str,
    rate: float = 100.0,
    status: str = "confirmed",
) -> Reservation:
    return Reservation(
        reservation_id=reservation_id,
        guest_name=f"Guest {reservation_id}",
        start=date.fromisoformat(start),
        end=date.fromisoformat(end),
        rate=rate,
        room_id=room_id,
        status=status,
    )


def test_daily_kpis_for_single_stay_in_two_rooms() -> None:
    rooms = [Room(room_id="R1", number="1"), Room(room_id="R2", number="2")]
    reservations = [_stay("A", "R1", "2025-03-01", "2025-03-03")]

    kpis = compute_daily_kpis(rooms, reservations, ["2025-03-01", "2025-03-02"])

    assert [kpi.date for kpi in kpis] == [date(2025, 3, 1), date(2025, 3, 2)]
    assert [kpi.occupancy_rate for kpi in kpis] == [50, 50]
    assert [kpi.average_price for kpi in kpis] == [100, 100]
    assert [kpi.trend for kpi in kpis] == ["stable", "stable"]


def test_daily_kpis_without_rooms_is_zero() -> None:
    kpis = compute_daily_kpis([], [], [date(2025, 3, 1)])

    assert kpis[0].occupancy_rate == 0
    assert kpis[0].average_price == 0
    assert kpis[0].total_rooms == 0


def test_daily_kpis_exclude_out_of_order_and_inactive() -> None:
    rooms = [
        Room(room_id="R1", number="1"),
        Room(room_id="R2", number="2"),
        Room(room_id="R3", number="3", status="out_of_order"),
        Room(room_id="R4", number="4", status="dirty"),
    ]
    reservations = [
        _stay("A", "R1", "2025-03-01", "2025-03-02", rate=90.0),
        _stay("B", "R2", "2025-03-01", "2025-03-02", rate=200.0, status="cancelled"),
        _stay("C", "R4", "2025-03-01", "2025-03-02", rate=110.0, status="present"),
    ]

    kpi = compute_daily_kpis(rooms, reservations, [date(2025, 3, 1)])[0]

    assert kpi.total_rooms == 3
    assert kpi.occupied_rooms == 2
    assert kpi.occupancy_rate == 67
    assert kpi.average_price == 100
    assert kpi.revenue == pytest.approx(200.0)


def test_daily_kpis_round_half_up_and_clamp() -> None:
    rooms = [Room(room_id=f"R{index}", number=str(index)) for index in range(1, 9)]
    reservations = [
        _stay("A", "R1", "2025-03-01", "2025-03-02", rate=100.0),
    ]
    assert compute_daily_kpis(rooms, reservations, [date(2025, 3, 1)])[0].occupancy_rate == 13

    single_room = [Room(room_id="R1", number="1")]
    double_booked = [
        _stay("A", "R1", "2025-03-01", "2025-03-02", rate=100.0),
        _stay("B", "R1", "2025-03-01", "2025-03-02", rate=101.0),
    ]
    kpi = compute_daily_kpis(single_room, double_booked, [date(2025, 3, 1)])[0]
    assert kpi.occupancy_rate == 100
    assert kpi.average_price == 101


def test_daily_kpis_trend_follows_price_changes() -> None:
    rooms = [Room(room_id="R1", number="1")]
    reservations = [
        _stay("A", "R1", "2025-03-01", "2025-03-02", rate=100.0),
        _stay("B", "R1", "2025-03-02", "2025-03-03", rate=104.0),
        _stay("C", "R1", "2025-03-03", "2025-03-04", rate=120.0),
        _stay("D", "R1", "2025-03-04", "2025-03-05", rate=90.0),
    ]
    days = ["2025-03-01", "2025-03-02", "2025-03-03", "2025-03-04", "2025-03-05"]

    kpis = compute_daily_kpis(rooms, reservations, days)

    assert [kpi.trend for kpi in kpis] == ["stable", "stable", "up", "down", "down"]
    assert kpis[-1].average_price == 0


def test_daily_kpis_keep_caller_order() -> None:
    rooms = [Room(room_id="R1", number="1")]
    reservations = [_stay("A", "R1", "2025-03-02", "2025-03-03")]

    kpis = compute_daily_kpis(rooms, reservations, ["2025-03-02", "2025-03-01"])

    assert [kpi.occupancy_rate for kpi in kpis] == [100, 0]


def test_compute_trend_deadband() -> None:
    assert compute_trend(100, None) == "stable"
    assert compute_trend(105, 100) == "stable"
    assert compute_trend(106, 100) == "up"
    assert compute_trend(95, 100) == "stable"
    assert compute_trend(94, 100) == "down"
    assert compute_trend(101, 100, deadband=0.0) == "up"


def test_round_half_up() -> None:
    assert round_half_up(12.5) == 13
    assert round_half_up(66.66) == 67
    assert round_half_up(2.4999) == 2


def test_rack_summary_counts() -> None:
    day = date(2025, 3, 2)
    rooms = [
        Room(room_id="R1", number="1", status="clean"),
        Room(room_id="R2", number="2", status="inspected"),
        Room(room_id="R3", number="3", status="dirty"),
        Room(room_id="R4", number="4", status="out_of_order"),
    ]
    reservations = [
        _stay("A", "R1", "2025-03-01", "2025-03-03", rate=80.0, status="present"),
        _stay("B", "R2", "2025-03-02", "2025-03-04", rate=120.0),
        _stay("C", "R3", "2025-02-28", "2025-03-02", status="checked_out"),
        _stay("D", "R3", "2025-03-02", "2025-03-03", status="cancelled"),
    ]

    summary = compute_rack_summary(rooms, reservations, day)

    assert summary.occupancy_rate == 67
    assert summary.arrivals == 1
    assert summary.presents == 1
    assert summary.departures == 1
    assert summary.pending_checkins == 1
    assert summary.available_rooms == 2
    assert summary.rooms_with_issues == 2
    assert summary.out_of_order_rooms == 1
    assert summary.daily_revenue == pytest.approx(200.0)


def test_kpis_to_frame_columns() -> None:
    rooms = [Room(room_id="R1", number="1")]
    reservations = [_stay("A", "R1", "2025-03-01", "2025-03-02", rate=99.999)]

    frame = kpis_to_frame(compute_daily_kpis(rooms, reservations, ["2025-03-01"]))

    assert list(frame.columns) == KPI_COLUMNS
    assert frame.loc[0, "date"] == "2025-03-01"
    assert frame.loc[0, "revenue"] == pytest.approx(100.0)
