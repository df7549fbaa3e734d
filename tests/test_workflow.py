from __future__ import annotations

from dataclasses import replace

import pytest

from frontdesk.domain.models import (
    BookingSource,
    HistoryAction,
    HistoryEntry,
    InvoiceStatus,
    PaymentMethod,
    Reservation,
    Room,
    RoomStatus,
    RoomType,
)
from frontdesk.domain.workflow import (
    GUEST_FIELD_RESETS,
    TransitionContext,
    WorkflowAction,
    apply_transition,
    available_actions,
    check_in_reservation,
    clear_upcoming_reservation,
    commit_transition,
    move_upcoming_reservation,
    plan_save,
    set_upcoming_reservation,
)

NOW = "2024-06-03T09:00:00+00:00"
EARLIER = HistoryEntry(
    date="2024-06-01T14:00:00+00:00",
    action=HistoryAction.CHECK_IN,
    description="Check-in: Alice (Standard) via Cash",
)


def _occupied_room(**overrides) -> Room:
    defaults = {
        "id": "room-1",
        "number": "101",
        "capacity": 2,
        "room_type": RoomType.DOUBLE,
        "status": RoomStatus.OCCUPIED,
        "price": 600_000.0,
        "guest_name": "Alice",
        "guest_id": "ID-42",
        "is_id_scanned": True,
        "check_in_date": "2024-06-01",
        "check_out_date": "2024-06-03",
        "check_in_time": "14:00",
        "check_out_time": "12:00",
        "booking_source": BookingSource.AGODA,
        "sale_price": 550_000.0,
        "payment_method": PaymentMethod.CARD,
        "invoice_status": InvoiceStatus.REQUIRED,
        "notes": "late arrival",
        "history": (EARLIER,),
    }
    defaults.update(overrides)
    return Room(**defaults)


def _assert_guest_fields_cleared(room: Room) -> None:
    for name, value in GUEST_FIELD_RESETS:
        assert getattr(room, name) == value, name


# --- transition table ---

def test_check_out_clears_guest_and_names_guest_in_history() -> None:
    room = _occupied_room()
    saved = plan_save(room, replace(room, status=RoomStatus.DIRTY), now=NOW)

    assert saved.status == RoomStatus.DIRTY
    _assert_guest_fields_cleared(saved)
    assert saved.history[0].action == HistoryAction.CHECK_OUT
    assert saved.history[0].description == "Check-out: Alice"
    assert saved.history[0].date == NOW
    assert saved.history[1:] == room.history


def test_check_out_straight_to_available_also_clears() -> None:
    room = _occupied_room()
    saved = plan_save(room, replace(room, status=RoomStatus.AVAILABLE), now=NOW)
    _assert_guest_fields_cleared(saved)
    assert saved.history[0].action == HistoryAction.CHECK_OUT


def test_check_out_archives_the_stay() -> None:
    room = _occupied_room()
    saved = commit_transition(room, RoomStatus.DIRTY, now=NOW)
    assert len(saved.past_reservations) == 1
    archived = saved.past_reservations[0]
    assert archived.guest_name == "Alice"
    assert archived.check_in_date == "2024-06-01"
    assert archived.source == BookingSource.AGODA


def test_reservation_cancellation_clears_guest_fields() -> None:
    room = _occupied_room(status=RoomStatus.RESERVED, guest_name="Bob")
    saved = plan_save(room, replace(room, status=RoomStatus.AVAILABLE), now=NOW)

    _assert_guest_fields_cleared(saved)
    assert saved.history[0].action == HistoryAction.STATUS_CHANGE
    assert saved.history[0].description == "Reservation Cancelled"
    assert saved.past_reservations == ()


def test_mark_clean_records_room_cleaned() -> None:
    result = apply_transition(RoomStatus.DIRTY, RoomStatus.AVAILABLE)
    assert result.history_action == HistoryAction.STATUS_CHANGE
    assert result.description == "Room cleaned"
    assert result.touched_fields == frozenset()


def test_start_maintenance_sets_issue() -> None:
    result = apply_transition(
        RoomStatus.DIRTY,
        RoomStatus.MAINTENANCE,
        TransitionContext(maintenance_issue="Leaking tap"),
    )
    assert result.status == RoomStatus.MAINTENANCE
    assert dict(result.sets) == {"maintenance_issue": "Leaking tap"}


def test_walk_in_check_in_describes_mode_and_payment() -> None:
    result = apply_transition(
        RoomStatus.AVAILABLE,
        RoomStatus.OCCUPIED,
        TransitionContext(incoming_guest="Carol", is_hourly=True, payment_method=PaymentMethod.QR_TRANSFER),
    )
    assert result.history_action == HistoryAction.CHECK_IN
    assert result.description == "Check-in: Carol (Hourly) via QR Transfer"


def test_walk_in_without_payment_defaults_to_cash() -> None:
    result = apply_transition(
        RoomStatus.AVAILABLE,
        RoomStatus.OCCUPIED,
        TransitionContext(incoming_guest="Carol"),
    )
    assert result.description == "Check-in: Carol (Standard) via Cash"


def test_reserved_to_occupied_carries_no_entry_but_save_records_status_change() -> None:
    assert apply_transition(RoomStatus.RESERVED, RoomStatus.OCCUPIED).records_history is False

    room = _occupied_room(status=RoomStatus.RESERVED)
    saved = plan_save(room, replace(room, status=RoomStatus.OCCUPIED), now=NOW)
    assert saved.history[0].action == HistoryAction.STATUS_CHANGE
    assert saved.history[0].description == "Status changed: Reserved -> Occupied"
    assert saved.guest_name == "Alice"


@pytest.mark.parametrize(
    ("current", "requested", "expected"),
    [
        (RoomStatus.MAINTENANCE, RoomStatus.AVAILABLE, "Status changed: Maintenance -> Available"),
        (RoomStatus.AVAILABLE, RoomStatus.DIRTY, "Status changed: Available -> Dirty"),
        (RoomStatus.OCCUPIED, RoomStatus.MAINTENANCE, "Status changed: Occupied -> Maintenance"),
    ],
)
def test_unlisted_pairs_are_generic_status_changes(current, requested, expected) -> None:
    result = apply_transition(current, requested)
    assert result.history_action == HistoryAction.STATUS_CHANGE
    assert result.description == expected
    assert result.resets == ()


def test_same_status_is_a_no_op() -> None:
    result = apply_transition(RoomStatus.OCCUPIED, RoomStatus.OCCUPIED)
    assert result.records_history is False
    assert result.touched_fields == frozenset()


# --- save planning ---

def test_history_only_grows_by_prepending() -> None:
    room = _occupied_room()
    edited = replace(room, guest_name="Alicia", history=())
    saved = plan_save(room, edited, now=NOW)

    assert len(saved.history) == len(room.history) + 1
    assert saved.history[-len(room.history):] == room.history
    assert saved.history[0].action == HistoryAction.INFO
    assert saved.history[0].description == "Guest details updated: Alicia"


def test_status_change_and_guest_edit_both_recorded() -> None:
    room = Room(
        id="room-2",
        number="102",
        capacity=1,
        room_type=RoomType.SINGLE,
        status=RoomStatus.AVAILABLE,
        price=400_000.0,
    )
    edited = replace(
        room,
        status=RoomStatus.OCCUPIED,
        guest_name="Dan",
        check_in_date="2024-06-01",
        check_out_date="2024-06-02",
    )
    saved = plan_save(room, edited, now=NOW)
    assert [entry.action for entry in saved.history] == [HistoryAction.INFO, HistoryAction.CHECK_IN]
    assert saved.history[1].description == "Check-in: Dan (Standard) via Cash"


def test_guest_edit_on_non_occupied_room_adds_nothing() -> None:
    room = _occupied_room(status=RoomStatus.RESERVED)
    saved = plan_save(room, replace(room, guest_name="Zoe"), now=NOW)
    assert saved.history == room.history


def test_unchanged_save_keeps_history() -> None:
    room = _occupied_room()
    saved = plan_save(room, replace(room, notes="quiet room"), now=NOW)
    assert saved.history == room.history
    assert saved.notes == "quiet room"


# --- actions ---

def test_available_actions_follow_status() -> None:
    assert available_actions(RoomStatus.DIRTY) == [
        WorkflowAction.MARK_CLEAN,
        WorkflowAction.START_MAINTENANCE,
    ]
    assert available_actions(RoomStatus.OCCUPIED) == [WorkflowAction.CHECK_OUT]
    assert available_actions(RoomStatus.RESERVED) == [
        WorkflowAction.CHECK_IN,
        WorkflowAction.CANCEL_RESERVATION,
    ]
    assert available_actions(RoomStatus.AVAILABLE) == []
    assert available_actions(RoomStatus.MAINTENANCE) == []


# --- reservations ---

def _reservation(**overrides) -> Reservation:
    defaults = {
        "id": "res-1",
        "guest_name": "Erin",
        "check_in_date": "2024-06-10",
        "check_out_date": "2024-06-12",
        "is_hourly": False,
        "source": BookingSource.BOOKING_COM,
        "payment_method": PaymentMethod.PREPAID,
    }
    defaults.update(overrides)
    return Reservation(**defaults)


def test_set_upcoming_reservation_adds_then_updates() -> None:
    room = _occupied_room(status=RoomStatus.AVAILABLE)
    added = set_upcoming_reservation(room, _reservation(), now=NOW)
    assert added.upcoming_reservation == _reservation()
    assert added.history[0].description == "Added daily reservation for Erin"

    updated = set_upcoming_reservation(added, _reservation(is_hourly=True), now=NOW)
    assert updated.history[0].description == "Updated hourly reservation for Erin"
    assert updated.history[1:] == added.history


def test_check_in_reservation_promotes_into_current_stay() -> None:
    room = replace(
        _occupied_room(status=RoomStatus.RESERVED, guest_name=None),
        upcoming_reservation=_reservation(),
    )
    checked_in = check_in_reservation(room, now=NOW)

    assert checked_in.status == RoomStatus.OCCUPIED
    assert checked_in.guest_name == "Erin"
    assert checked_in.check_in_time == "14:00"
    assert checked_in.check_out_time == "12:00"
    assert checked_in.booking_source == BookingSource.BOOKING_COM
    assert checked_in.payment_method == PaymentMethod.PREPAID
    assert checked_in.upcoming_reservation is None
    assert checked_in.history[0].action == HistoryAction.CHECK_IN
    assert checked_in.history[0].description == "Check-in from reservation: Erin (Standard)"


def test_check_in_without_reservation_returns_room_unchanged() -> None:
    room = _occupied_room(status=RoomStatus.AVAILABLE)
    assert check_in_reservation(room, now=NOW) is room


def test_check_out_forgets_current_booking() -> None:
    room = _occupied_room(current_booking_id="bk-1")
    saved = plan_save(room, replace(room, status=RoomStatus.DIRTY), now=NOW)
    assert saved.current_booking_id is None


def test_clear_upcoming_reservation_records_info() -> None:
    room = replace(_occupied_room(), upcoming_reservation=_reservation())
    cleared = clear_upcoming_reservation(room, now=NOW)

    assert cleared.upcoming_reservation is None
    assert cleared.history[0].action == HistoryAction.INFO
    assert cleared.history[0].description == "Removed reservation for Erin"
    assert cleared.history[1:] == room.history
    assert cleared.guest_name == "Alice"


def test_clear_without_reservation_returns_room_unchanged() -> None:
    room = _occupied_room()
    assert clear_upcoming_reservation(room, now=NOW) is room


def test_move_upcoming_reservation_names_both_rooms() -> None:
    source = replace(_occupied_room(), upcoming_reservation=_reservation())
    target = _occupied_room(id="room-2", number="102", status=RoomStatus.AVAILABLE, guest_name=None)

    moved_from, moved_to = move_upcoming_reservation(source, target, now=NOW)

    assert moved_from.upcoming_reservation is None
    assert moved_to.upcoming_reservation == _reservation()
    assert moved_from.history[0].description == "Reservation for Erin moved to Room 102"
    assert moved_to.history[0].description == "Reservation for Erin moved from Room 101"
    assert moved_to.history[0].action == HistoryAction.INFO
