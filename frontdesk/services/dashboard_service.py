"""Front-desk dashboard orchestration: occupancy gauge, alerts and factory reset."""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime
from threading import RLock
from typing import Optional

from frontdesk.domain.models import OccupancySummary, Room, RoomStatus
from frontdesk.domain.stay_interval import combine_date_time
from frontdesk.repository.data_repository import DataRepository
from frontdesk.utils.config import Settings, get_settings
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)


class DashboardService:
    """Aggregates the room floor into the numbers the operator dashboard shows."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._lock = RLock()

    def _minutes_until_checkout(self, room: Room, now: datetime) -> Optional[float]:
        if room.status != RoomStatus.OCCUPIED or not room.check_out_date:
            return None
        try:
            checkout = combine_date_time(
                room.check_out_date,
                room.check_out_time,
                self._settings.default_check_out_time,
            )
        except ValueError:
            logger.warning("Room %s has an unreadable check-out %r", room.id, room.check_out_date)
            return None
        return (checkout - now).total_seconds() / 60.0

    def occupancy_summary(self, now: Optional[datetime] = None) -> OccupancySummary:
        now = now or datetime.now()
        rooms = self._repository.list_rooms()
        status_counts = Counter(room.status.value for room in rooms)
        occupied = status_counts.get(RoomStatus.OCCUPIED.value, 0)

        overdue = 0
        soon = 0
        missing_id = 0
        for room in rooms:
            minutes = self._minutes_until_checkout(room, now)
            if minutes is not None:
                if minutes < 0:
                    overdue += 1
                elif minutes < self._settings.checkout_alert_window_minutes:
                    soon += 1
            if room.status == RoomStatus.OCCUPIED and not room.is_id_scanned:
                missing_id += 1

        return OccupancySummary(
            total_rooms=len(rooms),
            occupied_rooms=occupied,
            occupancy_percentage=(occupied / len(rooms) * 100.0) if rooms else 0.0,
            status_counts={status.value: status_counts.get(status.value, 0) for status in RoomStatus},
            checkout_overdue=overdue,
            checkout_soon=soon,
            missing_id_scan=missing_id,
        )

    def reset_rooms(self, today: Optional[date] = None) -> int:
        """Wipe rooms and bookings and reseed the default floor."""
        with self._lock:
            seeded = self._repository.reset(today)
            logger.warning("Factory reset completed with %d rooms", seeded)
            return seeded
