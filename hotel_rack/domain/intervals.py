"""Calendar-day interval semantics for the rack.

Reservations occupy half-open night ranges ``[start, end)``: a guest departing
on day D and another arriving on day D share no night, so same-day turnover
never counts as an overlap. Every overlap check in the package goes through
this module.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Sequence, Union

from hotel_rack.domain.models import Reservation


DayLike = Union[str, date]

ISO_DAY_FORMAT = "%Y-%m-%d"


def parse_day(value: DayLike) -> date:
    """Parse an ISO ``YYYY-MM-DD`` string or pass a date through."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), ISO_DAY_FORMAT).date()
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"date must follow YYYY-MM-DD format, got {value!r}") from exc


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start < b_end and b_start < a_end


def reservations_overlap(first: Reservation, second: Reservation) -> bool:
    return overlaps(first.start, first.end, second.start, second.end)


def same_interval(first: Reservation, second: Reservation) -> bool:
    return first.start == second.start and first.end == second.end


def occupies_date(reservation: Reservation, day: date) -> bool:
    return reservation.start <= day < reservation.end


def nights_between(start: date, end: date) -> int:
    return max(0, (end - start).days)


def build_days(start: DayLike, count: int) -> list[date]:
    """Return ``count`` consecutive calendar days beginning at ``start``."""
    if count < 0:
        raise ValueError("count must be >= 0")
    first = parse_day(start)
    return [first + timedelta(days=offset) for offset in range(count)]


def window_bounds(days: Sequence[date]) -> Optional[tuple[date, date]]:
    """Half-open ``[first, last + 1)`` bounds covering a date axis."""
    if not days:
        return None
    return min(days), max(days) + timedelta(days=1)
