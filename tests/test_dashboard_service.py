from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

from frontdesk.domain.models import Room, RoomStatus, RoomType
from frontdesk.repository.data_repository import DataRepository
from frontdesk.services.dashboard_service import DashboardService
from frontdesk.utils.config import get_settings


def _room(room_id: str, number: str, status: RoomStatus, **extra) -> Room:
    return Room(
        id=room_id,
        number=number,
        capacity=2,
        room_type=RoomType.DOUBLE,
        status=status,
        price=600_000.0,
        **extra,
    )


def _build(tmp_path) -> tuple[DashboardService, DataRepository]:
    settings = replace(
        get_settings(),
        database_path=tmp_path / "dashboard.db",
        checkout_alert_window_minutes=120,
        seed_room_count=5,
    )
    repository = DataRepository(settings)
    repository.initialize_database()
    return DashboardService(repository=repository, settings=settings), repository


def test_occupancy_summary_counts_alerts(tmp_path):
    service, repository = _build(tmp_path)
    repository.save_room(
        _room(
            "r1",
            "101",
            RoomStatus.OCCUPIED,
            guest_name="Overdue",
            check_in_date="2024-06-01",
            check_out_date="2024-06-03",
            is_id_scanned=True,
        )
    )
    repository.save_room(
        _room(
            "r2",
            "102",
            RoomStatus.OCCUPIED,
            guest_name="Soon",
            check_in_date="2024-06-02",
            check_out_date="2024-06-04",
            check_out_time="11:00",
        )
    )
    repository.save_room(
        _room(
            "r3",
            "103",
            RoomStatus.OCCUPIED,
            guest_name="Later",
            check_in_date="2024-06-03",
            check_out_date="2024-06-06",
            is_id_scanned=True,
        )
    )
    repository.save_room(_room("r4", "104", RoomStatus.DIRTY))

    summary = service.occupancy_summary(now=datetime(2024, 6, 4, 10, 0))

    assert summary.total_rooms == 4
    assert summary.occupied_rooms == 3
    assert summary.occupancy_percentage == 75.0
    assert summary.status_counts["DIRTY"] == 1
    assert summary.status_counts["MAINTENANCE"] == 0
    assert summary.checkout_overdue == 1
    assert summary.checkout_soon == 1
    assert summary.missing_id_scan == 1


def test_empty_floor_has_zero_occupancy(tmp_path):
    service, _ = _build(tmp_path)
    summary = service.occupancy_summary(now=datetime(2024, 6, 4, 10, 0))
    assert summary.total_rooms == 0
    assert summary.occupancy_percentage == 0.0


def test_reset_drops_bookings_and_reseeds(tmp_path):
    service, repository = _build(tmp_path)
    repository.save_room(_room("custom", "999", RoomStatus.MAINTENANCE))

    seeded = service.reset_rooms(today=date(2024, 6, 1))

    assert seeded == 5
    rooms = repository.list_rooms()
    assert [room.number for room in rooms] == ["101", "102", "103", "104", "105"]
    assert repository.get_room("custom") is None
    assert repository.count_bookings() == 0
    assert rooms[4].room_type == RoomType.SUITE
