"""Booking conflict detection over stay intervals.

Two commitment sources exist and they are not equivalent:

* the booking list (``BOOKING_LIST``): confirmed bookings with precise
  instants, checked at minute granularity by ``is_time_slot_available``;
* the room cache (``ROOM_CACHE``): the room's current stay plus its single
  cached upcoming reservation, checked at date granularity by
  ``has_booking_conflict``.

``select_commitment_source`` picks the booking list whenever the booking
store is reachable and returned rows, and falls back to the room cache
otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Sequence

from frontdesk.domain.models import Booking, BookingStatus, Room, RoomStatus
from frontdesk.domain.stay_interval import (
    DEFAULT_CHECK_IN_TIME,
    DEFAULT_CHECK_OUT_TIME,
    InstantLike,
    parse_date,
    parse_instant,
    stay_bounds,
)


class CommitmentSource(str, Enum):
    BOOKING_LIST = "BOOKING_LIST"
    ROOM_CACHE = "ROOM_CACHE"


@dataclass(frozen=True)
class ConflictVerdict:
    conflict: bool
    source: CommitmentSource
    conflicting_bookings: tuple[Booking, ...] = field(default_factory=tuple)


def intervals_overlap(a_start, a_end, b_start, b_end) -> bool:
    """Half-open overlap test; touching intervals do not overlap."""
    return a_start < b_end and b_start < a_end


def has_booking_conflict(
    room: Room,
    new_check_in: Optional[str],
    new_check_out: Optional[str],
    ignore_current_stay: bool = False,
) -> bool:
    """Date-granularity check against the room's current stay and cached reservation."""
    if not new_check_in or not new_check_out:
        return False
    start = parse_date(new_check_in)
    end = parse_date(new_check_out)
    if start >= end:
        return False

    if (
        not ignore_current_stay
        and room.status == RoomStatus.OCCUPIED
        and room.check_in_date
        and room.check_out_date
    ):
        if intervals_overlap(
            start,
            end,
            parse_date(room.check_in_date),
            parse_date(room.check_out_date),
        ):
            return True

    reservation = room.upcoming_reservation
    if reservation is not None:
        if intervals_overlap(
            start,
            end,
            parse_date(reservation.check_in_date),
            parse_date(reservation.check_out_date),
        ):
            return True

    return False


def _active_overlaps(
    existing_bookings: Iterable[Booking],
    new_start: datetime,
    new_end: datetime,
) -> Iterable[Booking]:
    for booking in existing_bookings:
        if booking.status == BookingStatus.CANCELLED:
            continue
        if intervals_overlap(
            new_start,
            new_end,
            parse_instant(booking.check_in_at),
            parse_instant(booking.check_out_at),
        ):
            yield booking


def find_conflicting_bookings(
    existing_bookings: Iterable[Booking],
    new_start: InstantLike,
    new_end: InstantLike,
) -> list[Booking]:
    start = parse_instant(new_start)
    end = parse_instant(new_end)
    if start >= end:
        return []
    return list(_active_overlaps(existing_bookings, start, end))


def is_time_slot_available(
    existing_bookings: Iterable[Booking],
    new_start: InstantLike,
    new_end: InstantLike,
) -> bool:
    """Instant-granularity check against every non-cancelled booking."""
    start = parse_instant(new_start)
    end = parse_instant(new_end)
    if start >= end:
        return True
    for _ in _active_overlaps(existing_bookings, start, end):
        return False
    return True


def select_commitment_source(
    booking_store_available: bool,
    bookings: Sequence[Booking],
) -> CommitmentSource:
    if booking_store_available and len(bookings) > 0:
        return CommitmentSource.BOOKING_LIST
    return CommitmentSource.ROOM_CACHE


def detect_conflict(
    original: Room,
    edited: Room,
    bookings: Sequence[Booking],
    booking_store_available: bool,
    default_check_in_time: str = DEFAULT_CHECK_IN_TIME,
    default_check_out_time: str = DEFAULT_CHECK_OUT_TIME,
) -> ConflictVerdict:
    """Check the edited stay against whichever commitment source is authoritative."""
    source = select_commitment_source(booking_store_available, bookings)
    if not edited.check_in_date or not edited.check_out_date:
        return ConflictVerdict(conflict=False, source=source)

    if source == CommitmentSource.BOOKING_LIST:
        start, end = stay_bounds(
            edited.check_in_date,
            edited.check_out_date,
            edited.check_in_time,
            edited.check_out_time,
            default_check_in_time,
            default_check_out_time,
        )
        blocking = find_conflicting_bookings(bookings, start, end)
        return ConflictVerdict(
            conflict=bool(blocking),
            source=source,
            conflicting_bookings=tuple(blocking),
        )

    # An occupied edit is an edit of the current stay itself.
    editing_current_stay = edited.status == RoomStatus.OCCUPIED
    conflict = has_booking_conflict(
        original,
        edited.check_in_date,
        edited.check_out_date,
        ignore_current_stay=editing_current_stay,
    )
    return ConflictVerdict(conflict=conflict, source=source)
