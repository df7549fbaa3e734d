"""Repository layer responsible for all database access."""

from __future__ import annotations

import json
import random
import sqlite3
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Sequence

from frontdesk.domain.models import (
    Booking,
    BookingSource,
    BookingStatus,
    BookingType,
    HistoryAction,
    HistoryEntry,
    PaymentMethod,
    Room,
    RoomStatus,
    RoomType,
)
from frontdesk.utils.config import Settings, get_settings
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)


class RepositoryError(Exception):
    """Raised when the backing SQLite store fails."""


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic.

    Rooms are stored as JSON documents keyed by id; bookings are relational
    rows with precise check-in/check-out instants.
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
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Rooms (
                        id TEXT PRIMARY KEY,
                        number TEXT NOT NULL,
                        data TEXT NOT NULL,
                        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Bookings (
                        id TEXT PRIMARY KEY,
                        room_id TEXT NOT NULL,
                        guest_name TEXT NOT NULL,
                        guest_id TEXT,
                        check_in_at TEXT NOT NULL,
                        check_out_at TEXT NOT NULL,
                        booking_type TEXT NOT NULL DEFAULT 'STANDARD',
                        status TEXT NOT NULL DEFAULT 'CHECKED_IN',
                        payment_method TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        FOREIGN KEY (room_id) REFERENCES Rooms(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_room_status
                    ON Bookings(room_id, status);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RepositoryError(f"Database initialization failed: {exc}") from exc

    def build_default_rooms(self, today: Optional[date] = None) -> list[Room]:
        """Deterministic starter floor: suites every fifth room, doubles on even slots."""
        rng = random.Random(self._settings.seed_random_seed)
        today = today or date.today()
        yesterday = today - timedelta(days=1)
        stamp = datetime.now(timezone.utc).isoformat()
        sources = [
            BookingSource.BOOKING_COM,
            BookingSource.AGODA,
            BookingSource.G2J,
            BookingSource.WALK_IN,
        ]

        rooms: list[Room] = []
        for index in range(self._settings.seed_room_count):
            is_suite = (index + 1) % 5 == 0
            is_double = index % 2 == 0
            if is_suite:
                room_type, capacity, base_price = RoomType.SUITE, 4, 1_200_000.0
            elif is_double:
                room_type, capacity, base_price = RoomType.DOUBLE, 2, 600_000.0
            else:
                room_type, capacity, base_price = RoomType.SINGLE, 1, 400_000.0

            roll = rng.random()
            if roll > 0.7:
                status = RoomStatus.OCCUPIED
            elif rng.random() > 0.8:
                status = RoomStatus.DIRTY
            else:
                status = RoomStatus.AVAILABLE

            number = str(100 + index + 1)
            room = Room(
                id=f"room-{index + 1}",
                number=number,
                name=f"Suite {number}" if is_suite else None,
                capacity=capacity,
                room_type=room_type,
                status=status,
                price=base_price,
            )

            if status == RoomStatus.OCCUPIED:
                stay_nights = 1 if rng.random() > 0.6 else rng.randint(2, 4)
                room = replace(
                    room,
                    guest_name="John Doe",
                    check_in_date=yesterday.isoformat(),
                    check_out_date=(yesterday + timedelta(days=stay_nights)).isoformat(),
                    booking_source=rng.choice(sources),
                    is_id_scanned=rng.random() > 0.2,
                    sale_price=base_price if rng.random() > 0.5 else base_price * 0.9,
                    payment_method=PaymentMethod.CASH,
                    history=(
                        HistoryEntry(
                            date=stamp,
                            action=HistoryAction.CHECK_IN,
                            description="Guest checked in: John Doe",
                            staff_name="Reception",
                        ),
                    ),
                )
            elif status == RoomStatus.DIRTY:
                room = replace(
                    room,
                    history=(
                        HistoryEntry(
                            date=stamp,
                            action=HistoryAction.CHECK_OUT,
                            description="Guest checked out",
                            staff_name="Reception",
                        ),
                    ),
                )
            rooms.append(room)
        return rooms

    def seed_rooms_if_empty(self, today: Optional[date] = None) -> int:
        """Seed the default rooms only when the Rooms table is empty."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) AS count FROM Rooms;")
                room_count = int(cursor.fetchone()["count"])
                if room_count > 0:
                    logger.info("Rooms already present; skipping seed")
                    return 0

                rooms = self.build_default_rooms(today)
                cursor.executemany(
                    "INSERT INTO Rooms (id, number, data) VALUES (?, ?, ?);",
                    [(room.id, room.number, json.dumps(room.to_dict())) for room in rooms],
                )
                conn.commit()
            logger.info("Seeded %d default rooms", len(rooms))
            return len(rooms)
        except sqlite3.Error as exc:
            raise RepositoryError(f"Room seeding failed: {exc}") from exc

    def list_rooms(self) -> list[Room]:
        try:
            with self._connect() as conn:
                rows = conn.execute("SELECT data FROM Rooms;").fetchall()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to list rooms: {exc}") from exc
        rooms = [Room.from_dict(json.loads(row["data"])) for row in rows]
        return sorted(rooms, key=lambda room: (int(room.number) if room.number.isdigit() else 0, room.number))

    def get_room(self, room_id: str) -> Optional[Room]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT data FROM Rooms WHERE id = ?;",
                    (room_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to load room {room_id}: {exc}") from exc
        if row is None:
            return None
        return Room.from_dict(json.loads(row["data"]))

    def save_room(self, room: Room, bookings: Sequence[Booking] = ()) -> None:
        self.save_rooms((room,), bookings)

    def save_rooms(self, rooms: Sequence[Room], bookings: Sequence[Booking] = ()) -> None:
        """Upsert booking rows and room documents in a single transaction.

        Either every row lands or none does, so a failed room write never
        leaves a booking behind.
        """
        try:
            with self._connect() as conn:
                conn.executemany(
                    """
                    INSERT INTO Bookings (
                        id, room_id, guest_name, guest_id, check_in_at, check_out_at,
                        booking_type, status, payment_method, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        guest_name = excluded.guest_name,
                        guest_id = excluded.guest_id,
                        check_in_at = excluded.check_in_at,
                        check_out_at = excluded.check_out_at,
                        booking_type = excluded.booking_type,
                        status = excluded.status,
                        payment_method = excluded.payment_method;
                    """,
                    [
                        (
                            booking.id,
                            booking.room_id,
                            booking.guest_name,
                            booking.guest_id,
                            booking.check_in_at,
                            booking.check_out_at,
                            booking.booking_type.value,
                            booking.status.value,
                            booking.payment_method.value if booking.payment_method else None,
                            booking.created_at,
                        )
                        for booking in bookings
                    ],
                )
                conn.executemany(
                    """
                    INSERT INTO Rooms (id, number, data, updated_at)
                    VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(id) DO UPDATE SET
                        number = excluded.number,
                        data = excluded.data,
                        updated_at = CURRENT_TIMESTAMP;
                    """,
                    [(room.id, room.number, json.dumps(room.to_dict())) for room in rooms],
                )
                conn.commit()
        except sqlite3.Error as exc:
            room_ids = ", ".join(room.id for room in rooms)
            raise RepositoryError(f"Failed to save room {room_ids}: {exc}") from exc

    @staticmethod
    def _row_to_booking(row: sqlite3.Row) -> Booking:
        return Booking(
            id=str(row["id"]),
            room_id=str(row["room_id"]),
            guest_name=str(row["guest_name"]),
            guest_id=row["guest_id"],
            check_in_at=str(row["check_in_at"]),
            check_out_at=str(row["check_out_at"]),
            booking_type=BookingType(row["booking_type"]),
            status=BookingStatus(row["status"]),
            payment_method=PaymentMethod(row["payment_method"]) if row["payment_method"] else None,
            created_at=row["created_at"],
        )

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM Bookings WHERE id = ?;",
                    (booking_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to load booking {booking_id}: {exc}") from exc
        if row is None:
            return None
        return self._row_to_booking(row)

    def list_bookings(self, room_id: str, include_cancelled: bool = False) -> list[Booking]:
        query = "SELECT * FROM Bookings WHERE room_id = ?"
        params: list[str] = [room_id]
        if not include_cancelled:
            query += " AND status != ?"
            params.append(BookingStatus.CANCELLED.value)
        query += " ORDER BY check_in_at;"
        try:
            with self._connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to list bookings for {room_id}: {exc}") from exc
        return [self._row_to_booking(row) for row in rows]

    def count_bookings(self) -> int:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT COUNT(*) AS count FROM Bookings;").fetchone()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to count bookings: {exc}") from exc
        return int(row["count"])

    def reset(self, today: Optional[date] = None) -> int:
        """Drop every booking and room, then reseed the default rooms."""
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM Bookings;")
                conn.execute("DELETE FROM Rooms;")
                conn.commit()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Reset failed: {exc}") from exc
        logger.warning("All rooms and bookings deleted; reseeding defaults")
        return self.seed_rooms_if_empty(today)
