"""HTTP controller layer for rack snapshots and KPI reporting."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field

from hotel_rack.controllers.dependencies import get_app_settings, get_kpi_service
from hotel_rack.domain.errors import RepositoryError
from hotel_rack.domain.models import Reservation, Room
from hotel_rack.services.kpi_service import RackKpiService
from hotel_rack.utils.config import Settings
from hotel_rack.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["rack"])


class RoomResponse(BaseModel):
    room_id: str
    number: str
    room_type: str
    status: str

    @classmethod
    def from_domain(cls, room: Room) -> "RoomResponse":
        return cls(
            room_id=room.room_id,
            number=room.number,
            room_type=room.room_type,
            status=room.status,
        )


class ReservationResponse(BaseModel):
    reservation_id: str
    guest_name: str
    start: date
    end: date
    nights: int = Field(ge=0)
    rate: float
    room_id: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_domain(cls, reservation: Reservation) -> "ReservationResponse":
        return cls(
            reservation_id=reservation.reservation_id,
            guest_name=reservation.guest_name,
            start=reservation.start,
            end=reservation.end,
            nights=reservation.nights,
            rate=reservation.rate,
            room_id=reservation.room_id,
            status=reservation.status,
        )


class RackResponse(BaseModel):
    days: list[date]
    rooms: list[RoomResponse]
    reservations: list[ReservationResponse]


class DailyKPIResponse(BaseModel):
    date: date
    occupancy_rate: int = Field(ge=0, le=100)
    average_price: int = Field(ge=0)
    trend: str = Field(pattern=r"^(up|down|stable)$")
    occupied_rooms: int = Field(ge=0)
    total_rooms: int = Field(ge=0)
    revenue: float = Field(ge=0.0)


class DailyKPIListResponse(BaseModel):
    kpis: list[DailyKPIResponse]


class RackSummaryResponse(BaseModel):
    date: date
    occupancy_rate: int = Field(ge=0, le=100)
    arrivals: int = Field(ge=0)
    presents: int = Field(ge=0)
    departures: int = Field(ge=0)
    pending_checkins: int = Field(ge=0)
    available_rooms: int = Field(ge=0)
    rooms_with_issues: int = Field(ge=0)
    out_of_order_rooms: int = Field(ge=0)
    daily_revenue: float = Field(ge=0.0)


class HealthResponse(BaseModel):
    status: str
    app: str
    version: str


def _window_start(start: Optional[date]) -> date:
    return start or date.today()


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    return HealthResponse(status="ok", app=settings.app_name, version=settings.app_version)


@router.get("/rack", response_model=RackResponse, status_code=status.HTTP_200_OK)
async def get_rack(
    start: Optional[date] = Query(default=None),
    days: Optional[int] = Query(default=None, ge=1, le=366),
    service: RackKpiService = Depends(get_kpi_service),
) -> RackResponse:
    """Rooms, reservations and the date axis for one rack window."""
    try:
        axis, snapshot = service.rack_window(_window_start(start), days)
        return RackResponse(
            days=axis,
            rooms=[RoomResponse.from_domain(room) for room in snapshot.rooms],
            reservations=[
                ReservationResponse.from_domain(reservation)
                for reservation in snapshot.reservations
            ],
        )
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected rack snapshot failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load rack",
        ) from exc


@router.get("/rack/kpis", response_model=DailyKPIListResponse, status_code=status.HTTP_200_OK)
async def get_daily_kpis(
    start: Optional[date] = Query(default=None),
    days: Optional[int] = Query(default=None, ge=1, le=366),
    service: RackKpiService = Depends(get_kpi_service),
) -> DailyKPIListResponse:
    try:
        kpis = service.daily_kpis(_window_start(start), days)
        return DailyKPIListResponse(
            kpis=[DailyKPIResponse(**kpi.to_dict()) for kpi in kpis]
        )
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected KPI computation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute daily KPIs",
        ) from exc


@router.get("/rack/kpis/export", status_code=status.HTTP_200_OK)
async def export_daily_kpis(
    start: Optional[date] = Query(default=None),
    days: Optional[int] = Query(default=None, ge=1, le=366),
    service: RackKpiService = Depends(get_kpi_service),
) -> Response:
    window_start = _window_start(start)
    try:
        content = service.export_csv(window_start, days)
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    filename = f"rack-kpis-{window_start.isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/rack/summary", response_model=RackSummaryResponse, status_code=status.HTTP_200_OK)
async def get_rack_summary(
    day: Optional[date] = Query(default=None, alias="date"),
    service: RackKpiService = Depends(get_kpi_service),
) -> RackSummaryResponse:
    try:
        summary = service.rack_summary(_window_start(day))
        return RackSummaryResponse(
            date=summary.date,
            occupancy_rate=summary.occupancy_rate,
            arrivals=summary.arrivals,
            presents=summary.presents,
            departures=summary.departures,
            pending_checkins=summary.pending_checkins,
            available_rooms=summary.available_rooms,
            rooms_with_issues=summary.rooms_with_issues,
            out_of_order_rooms=summary.out_of_order_rooms,
            daily_revenue=summary.daily_revenue,
        )
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
