"""Interactive move workflow for drag-and-drop on the room rack.

Each dragged reservation runs through an explicit state machine::

    idle -> conflict_check -> (no conflict) resolving -> idle
                           -> (conflict) awaiting_user_choice
    awaiting_user_choice -> cancel -> idle
                         -> swap | relocate -> resolving -> idle
                                                         -> awaiting_user_choice (failure)

``resolving`` is a critical section for both the moving reservation and its
target room. Plans are always recomputed from a fresh snapshot before they are
applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import RLock
from typing import Optional

from hotel_rack.domain.constraints import RackConfig
from hotel_rack.domain.errors import (
    InvalidMoveError,
    MoveSessionNotFoundError,
    NoVacantRoomError,
    ResolutionInProgressError,
    SwapNotEligibleError,
)
from hotel_rack.domain.models import (
    ConflictInfo,
    MoveResolution,
    RackSnapshot,
    Reservation,
    RoomAssignment,
)
from hotel_rack.repository.data_repository import DataRepository
from hotel_rack.services.conflict_service import check_move
from hotel_rack.services.relocation_service import (
    CHOICE_CANCEL,
    CHOICE_SWAP,
    RelocationPreview,
    available_choices,
    plan_direct_move,
    plan_relocation,
    plan_swap,
    preview_relocation,
)
from hotel_rack.utils.config import Settings, get_settings
from hotel_rack.utils.logger import get_logger, log_event


logger = get_logger(__name__)

STATE_IDLE = "idle"
STATE_CONFLICT_CHECK = "conflict_check"
STATE_AWAITING_USER_CHOICE = "awaiting_user_choice"
STATE_RESOLVING = "resolving"


@dataclass
class MoveSession:
    reservation_id: str
    target_room_id: str
    state: str = STATE_CONFLICT_CHECK
    conflict: Optional[ConflictInfo] = None
    choices: tuple[str, ...] = ()
    preview: Optional[RelocationPreview] = None
    error: Optional[str] = None
    unplaced_reservation_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class MoveOutcome:
    """What the confirmation dialog needs to render after each step."""

    reservation_id: str
    target_room_id: str
    state: str
    choice: Optional[str] = None
    assignments: tuple[RoomAssignment, ...] = ()
    conflicts: tuple[Reservation, ...] = ()
    choices: tuple[str, ...] = ()
    preview: Optional[RelocationPreview] = None
    error: Optional[str] = None
    unplaced_reservation_ids: tuple[str, ...] = field(default_factory=tuple)


class MoveWorkflowService:
    """Coordinates propose -> choose -> resolve for reservation moves."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._config = RackConfig.from_settings(self._settings)
        self._lock = RLock()
        self._sessions: dict[str, MoveSession] = {}

    def _ensure_not_resolving(self, reservation_id: str, target_room_id: str) -> None:
        for session in self._sessions.values():
            if session.state != STATE_RESOLVING:
                continue
            if session.reservation_id == reservation_id:
                raise ResolutionInProgressError(
                    f"reservation {reservation_id} is already being resolved"
                )
            if session.target_room_id == target_room_id:
                raise ResolutionInProgressError(
                    f"room {target_room_id} has a resolution in progress"
                )

    def _load_conflict(
        self,
        reservation_id: str,
        target_room_id: str,
    ) -> tuple[RackSnapshot, ConflictInfo]:
        snapshot = self._repository.load_snapshot()
        conflict = check_move(
            snapshot.rooms,
            snapshot.reservations,
            reservation_id,
            target_room_id,
            active_statuses=self._config.active_statuses,
        )
        return snapshot, conflict

    def _apply(self, resolution: MoveResolution) -> None:
        self._repository.apply_assignments(
            resolution.assignments,
            active_statuses=self._config.active_statuses,
        )

    def _plan(
        self,
        conflict: ConflictInfo,
        choice: str,
        snapshot: RackSnapshot,
    ) -> MoveResolution:
        if not conflict.has_conflict:
            return plan_direct_move(conflict)
        if choice == CHOICE_SWAP:
            return plan_swap(conflict)
        return plan_relocation(
            conflict,
            snapshot.rooms,
            snapshot.reservations,
            self._config,
        )

    def _discard(self, reservation_id: str) -> None:
        with self._lock:
            self._sessions.pop(reservation_id, None)

    @staticmethod
    def _to_outcome(session: MoveSession) -> MoveOutcome:
        conflicts = session.conflict.conflicting_reservations if session.conflict else ()
        return MoveOutcome(
            reservation_id=session.reservation_id,
            target_room_id=session.target_room_id,
            state=session.state,
            conflicts=conflicts,
            choices=session.choices,
            preview=session.preview,
            error=session.error,
            unplaced_reservation_ids=session.unplaced_reservation_ids,
        )

    def propose_move(self, *, reservation_id: str, target_room_id: str) -> MoveOutcome:
        """Detect conflicts for a drop; free moves are applied immediately."""
        with self._lock:
            self._ensure_not_resolving(reservation_id, target_room_id)
            session = MoveSession(reservation_id=reservation_id, target_room_id=target_room_id)
            self._sessions[reservation_id] = session

        try:
            snapshot, conflict = self._load_conflict(reservation_id, target_room_id)
        except Exception:
            self._discard(reservation_id)
            raise

        if not conflict.has_conflict:
            return self._apply_direct_move(session, conflict)

        preview = preview_relocation(
            conflict,
            snapshot.rooms,
            snapshot.reservations,
            self._config,
        )
        with self._lock:
            session.conflict = conflict
            session.choices = available_choices(conflict)
            session.preview = preview
            session.state = STATE_AWAITING_USER_CHOICE
            outcome = self._to_outcome(session)

        log_event(
            logger,
            "Move awaiting user choice",
            reservation_id=reservation_id,
            target_room_id=target_room_id,
            conflicts=len(conflict.conflicting_reservations),
            choices=",".join(session.choices),
            relocation_feasible=preview.feasible,
        )
        return outcome

    def _apply_direct_move(self, session: MoveSession, conflict: ConflictInfo) -> MoveOutcome:
        with self._lock:
            session.conflict = conflict
            session.state = STATE_RESOLVING
        resolution = plan_direct_move(conflict)
        try:
            self._apply(resolution)
        finally:
            self._discard(session.reservation_id)

        log_event(
            logger,
            "Move applied without conflict",
            reservation_id=session.reservation_id,
            target_room_id=session.target_room_id,
        )
        return MoveOutcome(
            reservation_id=session.reservation_id,
            target_room_id=session.target_room_id,
            state=STATE_IDLE,
            choice=resolution.choice,
            assignments=resolution.assignments,
        )

    def get_session(self, reservation_id: str) -> MoveOutcome:
        with self._lock:
            session = self._sessions.get(reservation_id)
            if session is None:
                raise MoveSessionNotFoundError(
                    f"no pending move for reservation {reservation_id}"
                )
            return self._to_outcome(session)

    def pending_sessions(self) -> list[MoveOutcome]:
        with self._lock:
            return [self._to_outcome(session) for session in self._sessions.values()]

    def cancel(self, reservation_id: str) -> MoveOutcome:
        return self.resolve(reservation_id=reservation_id, choice=CHOICE_CANCEL)

    def resolve(self, *, reservation_id: str, choice: str) -> MoveOutcome:
        """Carry out the user's choice for a move awaiting confirmation."""
        normalized = choice.strip().lower()
        with self._lock:
            session = self._sessions.get(reservation_id)
            if session is None:
                raise MoveSessionNotFoundError(
                    f"no pending move for reservation {reservation_id}"
                )
            if session.state == STATE_RESOLVING:
                raise ResolutionInProgressError(
                    f"reservation {reservation_id} is already being resolved"
                )
            if session.state != STATE_AWAITING_USER_CHOICE:
                raise MoveSessionNotFoundError(
                    f"move for reservation {reservation_id} is not awaiting a choice"
                )

            if normalized == CHOICE_CANCEL:
                self._sessions.pop(reservation_id, None)
                log_event(logger, "Move cancelled", reservation_id=reservation_id)
                return MoveOutcome(
                    reservation_id=reservation_id,
                    target_room_id=session.target_room_id,
                    state=STATE_IDLE,
                    choice=CHOICE_CANCEL,
                )

            if normalized not in session.choices:
                if normalized == CHOICE_SWAP:
                    raise SwapNotEligibleError(
                        "swap is only offered for one conflicting reservation with identical dates"
                    )
                raise InvalidMoveError(f"choice {choice!r} is not available for this move")

            self._ensure_not_resolving(reservation_id, session.target_room_id)
            session.state = STATE_RESOLVING
            session.error = None
            session.unplaced_reservation_ids = ()

        snapshot: Optional[RackSnapshot] = None
        conflict: Optional[ConflictInfo] = None
        try:
            snapshot, conflict = self._load_conflict(reservation_id, session.target_room_id)
            resolution = self._plan(conflict, normalized, snapshot)
            self._apply(resolution)
        except InvalidMoveError:
            self._discard(reservation_id)
            raise
        except Exception as exc:
            self._return_to_choice(session, exc, snapshot, conflict)
            raise

        self._discard(reservation_id)
        log_event(
            logger,
            "Move resolved",
            reservation_id=reservation_id,
            target_room_id=session.target_room_id,
            choice=resolution.choice,
            assignments=len(resolution.assignments),
        )
        return MoveOutcome(
            reservation_id=reservation_id,
            target_room_id=session.target_room_id,
            state=STATE_IDLE,
            choice=resolution.choice,
            assignments=resolution.assignments,
        )

    def _return_to_choice(
        self,
        session: MoveSession,
        exc: Exception,
        snapshot: Optional[RackSnapshot],
        conflict: Optional[ConflictInfo],
    ) -> None:
        """Reopen the choice dialog with options valid for the latest snapshot."""
        preview = None
        if snapshot is not None and conflict is not None and conflict.has_conflict:
            preview = preview_relocation(
                conflict,
                snapshot.rooms,
                snapshot.reservations,
                self._config,
            )
        with self._lock:
            if preview is not None:
                session.conflict = conflict
                session.choices = available_choices(conflict)
                session.preview = preview
            session.state = STATE_AWAITING_USER_CHOICE
            session.error = str(exc)
            if isinstance(exc, NoVacantRoomError):
                session.unplaced_reservation_ids = exc.reservation_ids
        log_event(
            logger,
            "Move resolution failed",
            level=logging.WARNING,
            reservation_id=session.reservation_id,
            target_room_id=session.target_room_id,
            error=type(exc).__name__,
        )
