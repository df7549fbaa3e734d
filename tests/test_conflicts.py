from __future__ import annotations

from datetime import date, datetime

import pytest

from frontdesk.domain.conflicts import (
    CommitmentSource,
    detect_conflict,
    find_conflicting_bookings,
    has_booking_conflict,
    intervals_overlap,
    is_time_slot_available,
    select_commitment_source,
)
from frontdesk.domain.models import (
    Booking,
    BookingStatus,
    BookingType,
    Reservation,
    Room,
    RoomStatus,
    RoomType,
)


def _room(**overrides) -> Room:
    defaults = {
        "id": "room-1",
        "number": "101",
        "capacity": 2,
        "room_type": RoomType.DOUBLE,
        "status": RoomStatus.AVAILABLE,
        "price": 600_000.0,
    }
    defaults.update(overrides)
    return Room(**defaults)


def _booking(start: str, end: str, status: BookingStatus = BookingStatus.CHECKED_IN, **overrides) -> Booking:
    defaults = {
        "id": f"b-{start}",
        "room_id": "room-1",
        "guest_name": "Alice",
        "check_in_at": start,
        "check_out_at": end,
        "booking_type": BookingType.STANDARD,
        "status": status,
    }
    defaults.update(overrides)
    return Booking(**defaults)


# --- intervals_overlap ---

@pytest.mark.parametrize(
    ("a", "b"),
    [
        ((1, 5), (4, 8)),
        ((1, 5), (5, 8)),
        ((1, 10), (3, 4)),
        ((1, 2), (7, 9)),
    ],
)
def test_overlap_is_symmetric(a, b) -> None:
    assert intervals_overlap(*a, *b) == intervals_overlap(*b, *a)


def test_adjacent_intervals_do_not_overlap() -> None:
    assert intervals_overlap(date(2024, 6, 1), date(2024, 6, 3), date(2024, 6, 3), date(2024, 6, 5)) is False


def test_strictly_overlapping_intervals_overlap() -> None:
    assert intervals_overlap(date(2024, 6, 1), date(2024, 6, 4), date(2024, 6, 3), date(2024, 6, 5)) is True


# --- is_time_slot_available ---

def test_slot_touching_existing_checkout_is_available() -> None:
    existing = [_booking("2024-06-01T14:00:00", "2024-06-03T12:00:00")]
    assert is_time_slot_available(
        existing,
        datetime(2024, 6, 3, 12, 0),
        datetime(2024, 6, 5, 12, 0),
    )


def test_slot_overlapping_by_one_minute_is_unavailable() -> None:
    existing = [_booking("2024-06-01T14:00:00", "2024-06-03T12:00:00")]
    assert not is_time_slot_available(
        existing,
        datetime(2024, 6, 3, 11, 59),
        datetime(2024, 6, 5, 12, 0),
    )


def test_cancelled_bookings_never_block() -> None:
    existing = [
        _booking("2024-06-01T14:00:00", "2024-06-05T12:00:00", status=BookingStatus.CANCELLED),
    ]
    assert is_time_slot_available(existing, "2024-06-02T14:00:00", "2024-06-03T12:00:00")
    assert find_conflicting_bookings(existing, "2024-06-02T14:00:00", "2024-06-03T12:00:00") == []


def test_degenerate_range_is_available() -> None:
    existing = [_booking("2024-06-01T14:00:00", "2024-06-05T12:00:00")]
    assert is_time_slot_available(existing, "2024-06-02T14:00:00", "2024-06-02T14:00:00")
    assert is_time_slot_available(existing, "2024-06-03T14:00:00", "2024-06-02T14:00:00")
    assert find_conflicting_bookings(existing, "2024-06-03T14:00:00", "2024-06-02T14:00:00") == []


def test_availability_does_not_depend_on_order() -> None:
    bookings = [
        _booking("2024-06-10T14:00:00", "2024-06-12T12:00:00"),
        _booking("2024-06-01T14:00:00", "2024-06-03T12:00:00"),
        _booking("2024-06-05T14:00:00", "2024-06-06T12:00:00", status=BookingStatus.CANCELLED),
    ]
    args = ("2024-06-05T15:00:00", "2024-06-06T10:00:00")
    assert is_time_slot_available(bookings, *args) == is_time_slot_available(list(reversed(bookings)), *args)


def test_find_conflicting_bookings_returns_only_blockers() -> None:
    blocking = _booking("2024-06-02T14:00:00", "2024-06-04T12:00:00", guest_name="Bob")
    clear = _booking("2024-06-04T12:00:00", "2024-06-06T12:00:00", guest_name="Carol")
    result = find_conflicting_bookings([blocking, clear], "2024-06-03T14:00:00", "2024-06-04T12:00:00")
    assert result == [blocking]


def test_utc_instants_compare_with_utc_bounds() -> None:
    existing = [_booking("2024-06-01T14:00:00Z", "2024-06-03T12:00:00Z")]
    assert not is_time_slot_available(existing, "2024-06-02T00:00:00Z", "2024-06-02T10:00:00Z")
    assert is_time_slot_available(existing, "2024-06-03T12:00:00Z", "2024-06-04T10:00:00Z")


# --- has_booking_conflict ---

def test_missing_dates_never_conflict() -> None:
    room = _room(
        status=RoomStatus.OCCUPIED,
        check_in_date="2024-06-01",
        check_out_date="2024-06-05",
    )
    assert has_booking_conflict(room, None, "2024-06-03") is False
    assert has_booking_conflict(room, "2024-06-02", "") is False


def test_reversed_range_never_conflicts() -> None:
    room = _room(
        status=RoomStatus.OCCUPIED,
        check_in_date="2024-06-01",
        check_out_date="2024-06-05",
    )
    assert has_booking_conflict(room, "2024-06-04", "2024-06-02") is False
    assert has_booking_conflict(room, "2024-06-02", "2024-06-02") is False


def test_current_stay_blocks_unless_ignored() -> None:
    room = _room(
        status=RoomStatus.OCCUPIED,
        check_in_date="2024-06-01",
        check_out_date="2024-06-05",
    )
    assert has_booking_conflict(room, "2024-06-03", "2024-06-04") is True
    assert has_booking_conflict(room, "2024-06-03", "2024-06-04", ignore_current_stay=True) is False


def test_stay_of_non_occupied_room_is_ignored() -> None:
    room = _room(
        status=RoomStatus.DIRTY,
        check_in_date="2024-06-01",
        check_out_date="2024-06-05",
    )
    assert has_booking_conflict(room, "2024-06-03", "2024-06-04") is False


def test_upcoming_reservation_blocks_even_when_current_stay_ignored() -> None:
    room = _room(
        status=RoomStatus.OCCUPIED,
        check_in_date="2024-06-01",
        check_out_date="2024-06-05",
        upcoming_reservation=Reservation(
            id="r-1",
            guest_name="Dana",
            check_in_date="2024-06-10",
            check_out_date="2024-06-12",
        ),
    )
    assert has_booking_conflict(room, "2024-06-11", "2024-06-13", ignore_current_stay=True) is True
    assert has_booking_conflict(room, "2024-06-12", "2024-06-13", ignore_current_stay=True) is False


# --- strategy selection ---

def test_booking_list_selected_only_when_store_has_rows() -> None:
    rows = [_booking("2024-06-01T14:00:00", "2024-06-03T12:00:00")]
    assert select_commitment_source(True, rows) == CommitmentSource.BOOKING_LIST
    assert select_commitment_source(True, []) == CommitmentSource.ROOM_CACHE
    assert select_commitment_source(False, rows) == CommitmentSource.ROOM_CACHE


def test_detect_conflict_uses_default_times_on_booking_list() -> None:
    original = _room()
    # Stay ends at the default 12:00 on the 3rd; the booking starts at 14:00.
    edited = _room(
        status=RoomStatus.OCCUPIED,
        guest_name="Eve",
        check_in_date="2024-06-01",
        check_out_date="2024-06-03",
    )
    rows = [_booking("2024-06-03T14:00:00", "2024-06-05T12:00:00")]
    verdict = detect_conflict(original, edited, rows, booking_store_available=True)
    assert verdict.source == CommitmentSource.BOOKING_LIST
    assert verdict.conflict is False

    late = _room(
        status=RoomStatus.OCCUPIED,
        guest_name="Eve",
        check_in_date="2024-06-01",
        check_out_date="2024-06-03",
        check_out_time="15:00",
    )
    verdict = detect_conflict(original, late, rows, booking_store_available=True)
    assert verdict.conflict is True
    assert verdict.conflicting_bookings == tuple(rows)


def test_detect_conflict_falls_back_to_room_cache() -> None:
    original = _room(
        status=RoomStatus.AVAILABLE,
        upcoming_reservation=Reservation(
            id="r-1",
            guest_name="Dana",
            check_in_date="2024-06-10",
            check_out_date="2024-06-12",
        ),
    )
    edited = _room(
        status=RoomStatus.OCCUPIED,
        guest_name="Eve",
        check_in_date="2024-06-09",
        check_out_date="2024-06-11",
    )
    verdict = detect_conflict(original, edited, [], booking_store_available=False)
    assert verdict.source == CommitmentSource.ROOM_CACHE
    assert verdict.conflict is True
    assert verdict.conflicting_bookings == ()


def test_detect_conflict_occupied_edit_skips_own_stay() -> None:
    original = _room(
        status=RoomStatus.OCCUPIED,
        guest_name="Eve",
        check_in_date="2024-06-01",
        check_out_date="2024-06-03",
    )
    extended = _room(
        status=RoomStatus.OCCUPIED,
        guest_name="Eve",
        check_in_date="2024-06-01",
        check_out_date="2024-06-06",
    )
    verdict = detect_conflict(original, extended, [], booking_store_available=True)
    assert verdict.conflict is False


def test_detect_conflict_without_dates_is_clear() -> None:
    rows = [_booking("2024-06-01T14:00:00", "2024-06-03T12:00:00")]
    verdict = detect_conflict(_room(), _room(status=RoomStatus.DIRTY), rows, booking_store_available=True)
    assert verdict.conflict is False
