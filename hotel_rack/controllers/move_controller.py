"""Controller layer for the reservation move confirmation workflow."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from hotel_rack.controllers.dependencies import get_move_service
from hotel_rack.controllers.rack_controller import ReservationResponse
from hotel_rack.domain.errors import (
    InvalidMoveError,
    MoveSessionNotFoundError,
    NoVacantRoomError,
    RepositoryError,
    ReservationNotFoundError,
    ResolutionInProgressError,
    RoomNotFoundError,
    SwapNotEligibleError,
)
from hotel_rack.services.move_workflow_service import MoveOutcome, MoveWorkflowService
from hotel_rack.services.relocation_service import USER_CHOICES
from hotel_rack.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/rack/moves", tags=["moves"])


class MoveRequest(BaseModel):
    reservation_id: str = Field(min_length=1)
    target_room_id: str = Field(min_length=1)


class ResolveRequest(BaseModel):
    choice: str = Field(min_length=1)

    @field_validator("choice")
    @classmethod
    def validate_choice(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in USER_CHOICES:
            raise ValueError(f"choice must be one of {', '.join(USER_CHOICES)}")
        return normalized


class AssignmentResponse(BaseModel):
    reservation_id: str
    new_room_id: str


class RelocationPreviewResponse(BaseModel):
    feasible: bool
    assignments: list[AssignmentResponse]
    unplaced_reservation_ids: list[str]


class MoveResponse(BaseModel):
    reservation_id: str
    target_room_id: str
    state: str
    choice: Optional[str] = None
    assignments: list[AssignmentResponse] = Field(default_factory=list)
    conflicts: list[ReservationResponse] = Field(default_factory=list)
    choices: list[str] = Field(default_factory=list)
    preview: Optional[RelocationPreviewResponse] = None
    error: Optional[str] = None
    unplaced_reservation_ids: list[str] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: MoveOutcome) -> "MoveResponse":
        preview = None
        if outcome.preview is not None:
            preview = RelocationPreviewResponse(
                feasible=outcome.preview.feasible,
                assignments=[
                    AssignmentResponse(**item.to_dict()) for item in outcome.preview.assignments
                ],
                unplaced_reservation_ids=list(outcome.preview.unplaced_reservation_ids),
            )
        return cls(
            reservation_id=outcome.reservation_id,
            target_room_id=outcome.target_room_id,
            state=outcome.state,
            choice=outcome.choice,
            assignments=[AssignmentResponse(**item.to_dict()) for item in outcome.assignments],
            conflicts=[ReservationResponse.from_domain(item) for item in outcome.conflicts],
            choices=list(outcome.choices),
            preview=preview,
            error=outcome.error,
            unplaced_reservation_ids=list(outcome.unplaced_reservation_ids),
        )


def _to_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (ReservationNotFoundError, RoomNotFoundError, MoveSessionNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (InvalidMoveError, SwapNotEligibleError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, NoVacantRoomError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(exc),
                "unplaced_reservation_ids": list(exc.reservation_ids),
            },
        )
    if isinstance(exc, ResolutionInProgressError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, RepositoryError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    logger.exception("Unexpected move workflow failure")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Move operation failed",
    )


@router.post("", response_model=MoveResponse, status_code=status.HTTP_200_OK)
async def propose_move(
    payload: MoveRequest,
    service: MoveWorkflowService = Depends(get_move_service),
) -> MoveResponse:
    """Check a drop; free moves are applied, conflicts await a choice."""
    try:
        outcome = service.propose_move(
            reservation_id=payload.reservation_id,
            target_room_id=payload.target_room_id,
        )
    except Exception as exc:
        raise _to_http_error(exc) from exc
    return MoveResponse.from_outcome(outcome)


@router.get("", response_model=list[MoveResponse], status_code=status.HTTP_200_OK)
async def list_pending_moves(
    service: MoveWorkflowService = Depends(get_move_service),
) -> list[MoveResponse]:
    return [MoveResponse.from_outcome(outcome) for outcome in service.pending_sessions()]


@router.get("/{reservation_id}", response_model=MoveResponse, status_code=status.HTTP_200_OK)
async def get_move(
    reservation_id: str,
    service: MoveWorkflowService = Depends(get_move_service),
) -> MoveResponse:
    try:
        outcome = service.get_session(reservation_id)
    except Exception as exc:
        raise _to_http_error(exc) from exc
    return MoveResponse.from_outcome(outcome)


@router.post(
    "/{reservation_id}/resolve",
    response_model=MoveResponse,
    status_code=status.HTTP_200_OK,
)
async def resolve_move(
    reservation_id: str,
    payload: ResolveRequest,
    service: MoveWorkflowService = Depends(get_move_service),
) -> MoveResponse:
    try:
        outcome = service.resolve(reservation_id=reservation_id, choice=payload.choice)
    except Exception as exc:
        raise _to_http_error(exc) from exc
    return MoveResponse.from_outcome(outcome)


@router.delete("/{reservation_id}", response_model=MoveResponse, status_code=status.HTTP_200_OK)
async def cancel_move(
    reservation_id: str,
    service: MoveWorkflowService = Depends(get_move_service),
) -> MoveResponse:
    try:
        outcome = service.cancel(reservation_id)
    except Exception as exc:
        raise _to_http_error(exc) from exc
    return MoveResponse.from_outcome(outcome)
