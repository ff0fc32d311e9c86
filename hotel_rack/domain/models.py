"""Domain models for the room rack, move resolution and daily KPIs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


ROOM_STATUS_CLEAN = "clean"
ROOM_STATUS_INSPECTED = "inspected"
ROOM_STATUS_DIRTY = "dirty"
ROOM_STATUS_MAINTENANCE = "maintenance"
ROOM_STATUS_OUT_OF_ORDER = "out_of_order"
ROOM_STATUS_FICTIVE = "fictive"

ROOM_STATUSES = frozenset(
    {
        ROOM_STATUS_CLEAN,
        ROOM_STATUS_INSPECTED,
        ROOM_STATUS_DIRTY,
        ROOM_STATUS_MAINTENANCE,
        ROOM_STATUS_OUT_OF_ORDER,
        ROOM_STATUS_FICTIVE,
    }
)

RESERVATION_STATUS_OPTION = "option"
RESERVATION_STATUS_CONFIRMED = "confirmed"
RESERVATION_STATUS_PRESENT = "present"
RESERVATION_STATUS_CANCELLED = "cancelled"
RESERVATION_STATUS_NOSHOW = "noshow"
RESERVATION_STATUS_CHECKED_OUT = "checked_out"

RESERVATION_STATUSES = frozenset(
    {
        RESERVATION_STATUS_OPTION,
        RESERVATION_STATUS_CONFIRMED,
        RESERVATION_STATUS_PRESENT,
        RESERVATION_STATUS_CANCELLED,
        RESERVATION_STATUS_NOSHOW,
        RESERVATION_STATUS_CHECKED_OUT,
    }
)

TREND_UP = "up"
TREND_DOWN = "down"
TREND_STABLE = "stable"


@dataclass(frozen=True)
class Room:
    room_id: str
    number: str
    room_type: str = ""
    status: str = ROOM_STATUS_CLEAN

    @property
    def is_out_of_order(self) -> bool:
        return self.status == ROOM_STATUS_OUT_OF_ORDER


@dataclass(frozen=True)
class Reservation:
    """A stay occupying the nights ``[start, end)`` in ``room_id``."""

    reservation_id: str
    guest_name: str
    start: date
    end: date
    rate: float
    room_id: Optional[str]
    status: Optional[str] = RESERVATION_STATUS_CONFIRMED

    @property
    def nights(self) -> int:
        return (self.end - self.start).days


@dataclass(frozen=True)
class ConflictInfo:
    moving_reservation: Reservation
    target_room: Room
    conflicting_reservations: tuple[Reservation, ...] = ()

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicting_reservations)


@dataclass(frozen=True)
class RoomAssignment:
    reservation_id: str
    new_room_id: str

    def to_dict(self) -> dict[str, str]:
        return {
            "reservation_id": self.reservation_id,
            "new_room_id": self.new_room_id,
        }


@dataclass(frozen=True)
class MoveResolution:
    """Fully resolved set of reassignments to apply in one transaction."""

    choice: str
    assignments: tuple[RoomAssignment, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DailyKPI:
    date: date
    occupancy_rate: int
    average_price: int
    trend: str
    occupied_rooms: int = 0
    total_rooms: int = 0
    revenue: float = 0.0

    def to_dict(self) -> dict[str, str | int | float]:
        return {
            "date": self.date.isoformat(),
            "occupancy_rate": self.occupancy_rate,
            "average_price": self.average_price,
            "trend": self.trend,
            "occupied_rooms": self.occupied_rooms,
            "total_rooms": self.total_rooms,
            "revenue": self.revenue,
        }


@dataclass(frozen=True)
class RackSummary:
    date: date
    occupancy_rate: int
    arrivals: int
    presents: int
    departures: int
    pending_checkins: int
    available_rooms: int
    rooms_with_issues: int
    out_of_order_rooms: int
    daily_revenue: float


@dataclass(frozen=True)
class RackSnapshot:
    rooms: tuple[Room, ...]
    reservations: tuple[Reservation, ...]
