"""Daily occupancy and rate aggregation over the room rack."""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import AbstractSet, Optional, Sequence

import pandas as pd

from hotel_rack.domain.constraints import DEFAULT_RACK_CONFIG, RackConfig
from hotel_rack.domain.intervals import DayLike, build_days, occupies_date, parse_day, window_bounds
from hotel_rack.domain.models import (
    RESERVATION_STATUS_CANCELLED,
    RESERVATION_STATUS_CONFIRMED,
    RESERVATION_STATUS_PRESENT,
    ROOM_STATUS_CLEAN,
    ROOM_STATUS_DIRTY,
    ROOM_STATUS_INSPECTED,
    ROOM_STATUS_MAINTENANCE,
    ROOM_STATUS_OUT_OF_ORDER,
    TREND_DOWN,
    TREND_STABLE,
    TREND_UP,
    DailyKPI,
    RackSnapshot,
    RackSummary,
    Reservation,
    Room,
)
from hotel_rack.repository.data_repository import DataRepository
from hotel_rack.services.conflict_service import is_blocking
from hotel_rack.utils.config import Settings, get_settings
from hotel_rack.utils.logger import get_logger


logger = get_logger(__name__)

KPI_COLUMNS = [
    "date",
    "occupancy_rate",
    "average_price",
    "trend",
    "occupied_rooms",
    "total_rooms",
    "revenue",
]

_ISSUE_STATUSES = frozenset({ROOM_STATUS_DIRTY, ROOM_STATUS_MAINTENANCE, ROOM_STATUS_OUT_OF_ORDER})
_AVAILABLE_STATUSES = frozenset({ROOM_STATUS_CLEAN, ROOM_STATUS_INSPECTED})


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def count_sellable_rooms(rooms: Sequence[Room]) -> int:
    return sum(1 for room in rooms if room.status != ROOM_STATUS_OUT_OF_ORDER)


def compute_trend(current: int, previous: Optional[int], deadband: float = 0.05) -> str:
    if previous is None:
        return TREND_STABLE
    if current > previous * (1.0 + deadband):
        return TREND_UP
    if current < previous * (1.0 - deadband):
        return TREND_DOWN
    return TREND_STABLE


def compute_daily_kpis(
    rooms: Sequence[Room],
    reservations: Sequence[Reservation],
    days: Sequence[DayLike],
    *,
    active_statuses: AbstractSet[str] = DEFAULT_RACK_CONFIG.active_statuses,
    trend_deadband: float = DEFAULT_RACK_CONFIG.trend_deadband,
) -> list[DailyKPI]:
    """One KPI row per entry of ``days``, in the same order.

    Trend compares each day's rounded average price to the previous entry of
    the sequence; the first entry is always stable.
    """
    total_rooms = count_sellable_rooms(rooms)
    active = [reservation for reservation in reservations if is_blocking(reservation, active_statuses)]

    results: list[DailyKPI] = []
    previous_price: Optional[int] = None
    for raw_day in days:
        day = parse_day(raw_day)
        occupying = [reservation for reservation in active if occupies_date(reservation, day)]
        occupied = len(occupying)
        revenue = float(sum(reservation.rate for reservation in occupying))

        if total_rooms > 0:
            occupancy_rate = min(100, max(0, round_half_up(100.0 * occupied / total_rooms)))
        else:
            occupancy_rate = 0
        average_price = round_half_up(revenue / occupied) if occupied else 0

        results.append(
            DailyKPI(
                date=day,
                occupancy_rate=occupancy_rate,
                average_price=average_price,
                trend=compute_trend(average_price, previous_price, trend_deadband),
                occupied_rooms=occupied,
                total_rooms=total_rooms,
                revenue=revenue,
            )
        )
        previous_price = average_price
    return results


def compute_rack_summary(
    rooms: Sequence[Room],
    reservations: Sequence[Reservation],
    day: date,
    *,
    active_statuses: AbstractSet[str] = DEFAULT_RACK_CONFIG.active_statuses,
) -> RackSummary:
    """Front-desk counters for a single day of the rack."""
    active = [reservation for reservation in reservations if is_blocking(reservation, active_statuses)]
    in_house = [reservation for reservation in active if occupies_date(reservation, day)]
    total_rooms = count_sellable_rooms(rooms)
    occupancy_rate = (
        min(100, round_half_up(100.0 * len(in_house) / total_rooms)) if total_rooms else 0
    )

    return RackSummary(
        date=day,
        occupancy_rate=occupancy_rate,
        arrivals=sum(1 for reservation in active if reservation.start == day),
        presents=sum(
            1
            for reservation in in_house
            if (reservation.status or "").lower() == RESERVATION_STATUS_PRESENT
        ),
        departures=sum(
            1
            for reservation in reservations
            if reservation.end == day
            and (reservation.status or "").lower() != RESERVATION_STATUS_CANCELLED
        ),
        pending_checkins=sum(
            1
            for reservation in reservations
            if reservation.start == day
            and (reservation.status or "").lower() == RESERVATION_STATUS_CONFIRMED
        ),
        available_rooms=sum(1 for room in rooms if room.status in _AVAILABLE_STATUSES),
        rooms_with_issues=sum(1 for room in rooms if room.status in _ISSUE_STATUSES),
        out_of_order_rooms=sum(1 for room in rooms if room.is_out_of_order),
        daily_revenue=float(sum(reservation.rate for reservation in in_house)),
    )


def kpis_to_frame(kpis: Sequence[DailyKPI]) -> pd.DataFrame:
    frame = pd.DataFrame([kpi.to_dict() for kpi in kpis], columns=KPI_COLUMNS)
    frame["revenue"] = frame["revenue"].astype(float).round(2)
    return frame


class RackKpiService:
    """Loads rack snapshots and turns them into KPI rows and summaries."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._config = RackConfig.from_settings(self._settings)

    @property
    def config(self) -> RackConfig:
        return self._config

    def rack_window(
        self,
        start: date,
        day_count: Optional[int] = None,
    ) -> tuple[list[date], RackSnapshot]:
        """Date axis and snapshot for a rack window; defaults to ``rack_window_days``."""
        count = day_count if day_count is not None else self._settings.rack_window_days
        days = build_days(start, count)
        bounds = window_bounds(days)
        if bounds is None:
            return days, RackSnapshot(rooms=tuple(self._repository.list_rooms()), reservations=())
        snapshot = self._repository.load_snapshot(window_start=bounds[0], window_end=bounds[1])
        return days, snapshot

    def daily_kpis(self, start: date, day_count: Optional[int] = None) -> list[DailyKPI]:
        days, snapshot = self.rack_window(start, day_count)
        if not days:
            return []
        kpis = compute_daily_kpis(
            snapshot.rooms,
            snapshot.reservations,
            days,
            active_statuses=self._config.active_statuses,
            trend_deadband=self._config.trend_deadband,
        )
        logger.info(
            "Daily KPIs computed | start=%s | days=%s | rooms=%s | reservations=%s",
            start.isoformat(),
            len(days),
            len(snapshot.rooms),
            len(snapshot.reservations),
        )
        return kpis

    def export_csv(self, start: date, day_count: Optional[int] = None) -> str:
        return kpis_to_frame(self.daily_kpis(start, day_count)).to_csv(index=False)

    def rack_summary(self, day: date) -> RackSummary:
        snapshot = self._repository.load_snapshot(
            window_start=day,
            window_end=day + timedelta(days=1),
        )
        return compute_rack_summary(
            snapshot.rooms,
            snapshot.reservations,
            day,
            active_statuses=self._config.active_statuses,
        )

