"""Repository layer responsible for all rack database access."""

from __future__ import annotations

import sqlite3
from datetime import date, timedelta
from pathlib import Path
from typing import AbstractSet, Iterable, List, Optional, Sequence

from hotel_rack.domain.errors import RepositoryError
from hotel_rack.domain.models import (
    RackSnapshot,
    Reservation,
    Room,
    RoomAssignment,
)
from hotel_rack.utils.config import Settings, get_settings
from hotel_rack.utils.logger import get_logger


logger = get_logger(__name__)


def _row_to_room(row: sqlite3.Row) -> Room:
    return Room(
        room_id=str(row["id"]),
        number=str(row["number"]),
        room_type=str(row["room_type"]),
        status=str(row["status"]),
    )


def _row_to_reservation(row: sqlite3.Row) -> Reservation:
    return Reservation(
        reservation_id=str(row["id"]),
        guest_name=str(row["guest_name"]),
        start=date.fromisoformat(str(row["start_date"])),
        end=date.fromisoformat(str(row["end_date"])),
        rate=float(row["rate"]),
        room_id=str(row["room_id"]) if row["room_id"] is not None else None,
        status=str(row["status"]) if row["status"] is not None else None,
    )


class DataRepository:
    """Encapsulates SQLite access so rack logic stays storage-agnostic.

    Stands in for the external booking backend: it hands out rack snapshots
    and applies resolved room reassignments in a single transaction.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create rack tables before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Rooms (
                        id TEXT PRIMARY KEY,
                        number TEXT NOT NULL UNIQUE,
                        room_type TEXT NOT NULL DEFAULT '',
                        status TEXT NOT NULL DEFAULT 'clean'
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Reservations (
                        id TEXT PRIMARY KEY,
                        guest_name TEXT NOT NULL,
                        start_date TEXT NOT NULL,
                        end_date TEXT NOT NULL,
                        rate REAL NOT NULL DEFAULT 0,
                        room_id TEXT,
                        status TEXT DEFAULT 'confirmed',
                        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        CHECK (start_date < end_date),
                        FOREIGN KEY (room_id) REFERENCES Rooms(id)
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_reservations_room_dates
                    ON Reservations(room_id, start_date, end_date);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RepositoryError(f"Database initialization failed: {exc}") from exc

    def seed_demo_data(self, today: Optional[date] = None) -> bool:
        """Seed a small demo rack only when no room exists yet."""
        anchor = today or date.today()
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) AS count FROM Rooms;")
                if int(cursor.fetchone()["count"]) > 0:
                    logger.info("Rack data already present; skipping seed")
                    return False

                rooms = [
                    ("R101", "101", "DBL", "clean"),
                    ("R102", "102", "DBL", "inspected"),
                    ("R103", "103", "TWN", "dirty"),
                    ("R104", "104", "TWN", "clean"),
                    ("R105", "105", "SUI", "maintenance"),
                    ("R106", "106", "SGL", "out_of_order"),
                    ("R107", "107", "SGL", "clean"),
                    ("R108", "108", "DBL", "clean"),
                ]
                cursor.executemany(
                    "INSERT INTO Rooms (id, number, room_type, status) VALUES (?, ?, ?, ?);",
                    rooms,
                )

                def stay(offset: int, nights: int) -> tuple[str, str]:
                    start = anchor + timedelta(days=offset)
                    return start.isoformat(), (start + timedelta(days=nights)).isoformat()

                reservations = [
                    ("RES-1", "Amina Diallo", *stay(-1, 3), 85000.0, "R101", "present"),
                    ("RES-2", "Kwame Mensah", *stay(0, 2), 72000.0, "R102", "confirmed"),
                    ("RES-3", "Fatou Ndiaye", *stay(0, 2), 70000.0, "R104", "confirmed"),
                    ("RES-4", "Yao Kouassi", *stay(1, 4), 64000.0, "R103", "confirmed"),
                    ("RES-5", "Ibrahim Traore", *stay(2, 3), 91000.0, "R102", "option"),
                    ("RES-6", "Chloe Martin", *stay(0, 1), 55000.0, "R107", "cancelled"),
                ]
                cursor.executemany(
                    """
                    INSERT INTO Reservations
                        (id, guest_name, start_date, end_date, rate, room_id, status)
                    VALUES (?, ?, ?, ?, ?, ?, ?);
                    """,
                    reservations,
                )
                conn.commit()
            logger.info(
                "Demo rack seeded | rooms=%s | reservations=%s",
                len(rooms),
                len(reservations),
            )
            return True
        except sqlite3.Error as exc:
            raise RepositoryError(f"Demo data seeding failed: {exc}") from exc

    def create_room(
        self,
        room_id: str,
        number: str,
        room_type: str = "",
        status: str = "clean",
    ) -> Room:
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO Rooms (id, number, room_type, status) VALUES (?, ?, ?, ?);",
                    (room_id, number, room_type, status),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to create room {room_id}: {exc}") from exc
        return Room(room_id=room_id, number=number, room_type=room_type, status=status)

    def create_reservation(self, reservation: Reservation) -> Reservation:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO Reservations
                        (id, guest_name, start_date, end_date, rate, room_id, status)
                    VALUES (?, ?, ?, ?, ?, ?, ?);
                    """,
                    (
                        reservation.reservation_id,
                        reservation.guest_name,
                        reservation.start.isoformat(),
                        reservation.end.isoformat(),
                        float(reservation.rate),
                        reservation.room_id,
                        reservation.status,
                    ),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise RepositoryError(
                f"Failed to create reservation {reservation.reservation_id}: {exc}"
            ) from exc
        return reservation

    def set_room_status(self, room_id: str, status: str) -> None:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE Rooms SET status = ? WHERE id = ?;",
                (status, room_id),
            )
            if cursor.rowcount == 0:
                raise RepositoryError(f"room_id {room_id} not found")
            conn.commit()

    def list_rooms(self) -> List[Room]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT id, number, room_type, status FROM Rooms ORDER BY number ASC;"
            )
            return [_row_to_room(row) for row in cursor.fetchall()]

    def list_reservations(
        self,
        window_start: Optional[date] = None,
        window_end: Optional[date] = None,
    ) -> List[Reservation]:
        """Reservations touching ``[window_start, window_end)``.

        Stays departing on ``window_start`` are included so departure counters
        see them; overlap logic filters them out of night counts.
        """
        clauses: list[str] = []
        params: list[str] = []
        if window_end is not None:
            clauses.append("start_date < ?")
            params.append(window_end.isoformat())
        if window_start is not None:
            clauses.append("end_date >= ?")
            params.append(window_start.isoformat())
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT id, guest_name, start_date, end_date, rate, room_id, status
                FROM Reservations
                {where}
                ORDER BY start_date ASC, id ASC;
                """,
                params,
            )
            return [_row_to_reservation(row) for row in cursor.fetchall()]

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                SELECT id, guest_name, start_date, end_date, rate, room_id, status
                FROM Reservations WHERE id = ?;
                """,
                (reservation_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_reservation(row)

    def load_snapshot(
        self,
        window_start: Optional[date] = None,
        window_end: Optional[date] = None,
    ) -> RackSnapshot:
        try:
            return RackSnapshot(
                rooms=tuple(self.list_rooms()),
                reservations=tuple(self.list_reservations(window_start, window_end)),
            )
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to load rack snapshot: {exc}") from exc

    def apply_assignments(
        self,
        assignments: Sequence[RoomAssignment],
        active_statuses: AbstractSet[str],
    ) -> int:
        """Apply every reassignment or none of them.

        After the updates the touched rooms are re-checked for overlapping
        active stays, which catches plans computed from a stale snapshot.
        """
        if not assignments:
            return 0
        statuses = sorted(status.lower() for status in active_statuses)
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                for assignment in assignments:
                    cursor.execute(
                        """
                        UPDATE Reservations
                        SET room_id = ?, updated_at = CURRENT_TIMESTAMP
                        WHERE id = ?;
                        """,
                        (assignment.new_room_id, assignment.reservation_id),
                    )
                    if cursor.rowcount != 1:
                        raise RepositoryError(
                            f"reservation_id {assignment.reservation_id} not found"
                        )

                touched_rooms = sorted({assignment.new_room_id for assignment in assignments})
                clashes = self._find_clashes(cursor, touched_rooms, statuses)
                if clashes:
                    raise RepositoryError(
                        "Reassignment would double-book room(s): " + ", ".join(clashes)
                    )
                conn.commit()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to apply room assignments: {exc}") from exc

        logger.info(
            "Room assignments applied | count=%s | pairs=%s",
            len(assignments),
            [(item.reservation_id, item.new_room_id) for item in assignments],
        )
        return len(assignments)

    @staticmethod
    def _find_clashes(
        cursor: sqlite3.Cursor,
        room_ids: Iterable[str],
        statuses: Sequence[str],
    ) -> list[str]:
        room_list = list(room_ids)
        if not room_list:
            return []
        room_marks = ",".join("?" * len(room_list))
        status_marks = ",".join("?" * len(statuses))
        status_clause = (
            f"(a.status IS NULL OR LOWER(a.status) IN ({status_marks}))"
            f" AND (b.status IS NULL OR LOWER(b.status) IN ({status_marks}))"
        )
        cursor.execute(
            f"""
            SELECT DISTINCT a.room_id AS room_id
            FROM Reservations AS a
            INNER JOIN Reservations AS b
                ON a.room_id = b.room_id AND a.id < b.id
            WHERE a.room_id IN ({room_marks})
              AND a.start_date < b.end_date
              AND b.start_date < a.end_date
              AND {status_clause};
            """,
            (*room_list, *statuses, *statuses),
        )
        return [str(row["room_id"]) for row in cursor.fetchall()]

    def count_reservations(self) -> int:
        with self._connect() as conn:
            cursor = conn.execute("SELECT COUNT(*) AS count FROM Reservations;")
            return int(cursor.fetchone()["count"])
