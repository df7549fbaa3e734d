"""Room workflow orchestration: conflict guard, save protocol and one-click actions."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from threading import RLock
from typing import Any, Callable, Optional
from uuid import uuid4

from frontdesk.domain.conflicts import (
    CommitmentSource,
    ConflictVerdict,
    detect_conflict,
    has_booking_conflict,
)
from frontdesk.domain.constraints import FrontDeskConfig, validate_front_desk_config
from frontdesk.domain.models import (
    Booking,
    BookingStatus,
    BookingType,
    Reservation,
    Room,
    RoomStatus,
)
from frontdesk.domain.stay_interval import parse_instant, stay_bounds, to_utc_iso
from frontdesk.domain.workflow import (
    WORKFLOW_ACTIONS,
    TransitionContext,
    WorkflowAction,
    available_actions,
    check_in_reservation,
    clear_upcoming_reservation,
    commit_transition,
    move_upcoming_reservation,
    plan_save,
    set_upcoming_reservation,
    utc_now_iso,
)
from frontdesk.repository.data_repository import DataRepository
from frontdesk.utils.config import Settings, get_settings
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)

EDITABLE_FIELDS = frozenset(
    {
        "status",
        "guest_name",
        "guest_id",
        "check_in_date",
        "check_out_date",
        "check_in_time",
        "check_out_time",
        "is_hourly",
        "notes",
        "maintenance_issue",
        "booking_source",
        "invoice_status",
        "is_id_scanned",
        "sale_price",
        "payment_method",
        "name",
        "capacity",
        "price",
    }
)


class RoomWorkflowError(Exception):
    """Base exception for room workflow failures."""


class RoomNotFoundError(RoomWorkflowError):
    """Raised when a room id does not exist in persisted state."""


class WorkflowValidationError(RoomWorkflowError):
    """Raised when a requested edit or action is not acceptable."""


class ActionNotAvailableError(WorkflowValidationError):
    """Raised when a one-click action is not offered for the room's status."""


class BookingConflictError(RoomWorkflowError):
    """Raised when a save overlaps a commitment and was not forced."""

    def __init__(self, verdict: ConflictVerdict) -> None:
        self.verdict = verdict
        blocking = ", ".join(
            f"{booking.guest_name} ({booking.check_in_at} -> {booking.check_out_at})"
            for booking in verdict.conflicting_bookings
        )
        message = "Dates overlap an existing booking; resubmit with force to save anyway"
        if blocking:
            message = f"{message}. Conflicts: {blocking}"
        super().__init__(message)


@dataclass(frozen=True)
class SaveOutcome:
    room: Room
    verdict: ConflictVerdict
    forced: bool
    booking: Optional[Booking] = None


class RoomWorkflowService:
    """Validates, guards and persists room status changes."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or datetime.now
        validate_front_desk_config(
            FrontDeskConfig(
                default_check_in_time=self._settings.default_check_in_time,
                default_check_out_time=self._settings.default_check_out_time,
                checkout_alert_window_minutes=self._settings.checkout_alert_window_minutes,
                seed_room_count=self._settings.seed_room_count,
            )
        )
        self._repository = repository or DataRepository(self._settings)
        self._lock = RLock()

    @property
    def booking_store_available(self) -> bool:
        return self._settings.booking_store_enabled

    def list_rooms(
        self,
        status: Optional[RoomStatus] = None,
        search: Optional[str] = None,
    ) -> list[Room]:
        rooms = self._repository.list_rooms()
        if status is not None:
            rooms = [room for room in rooms if room.status == status]
        term = (search or "").strip().lower()
        if term:
            rooms = [
                room
                for room in rooms
                if term in room.number
                or (room.name and term in room.name.lower())
                or (room.guest_name and term in room.guest_name.lower())
            ]
        return rooms

    def get_room(self, room_id: str) -> Room:
        room = self._repository.get_room(room_id)
        if room is None:
            raise RoomNotFoundError(f"Room '{room_id}' was not found")
        return room

    def list_bookings(self, room_id: str, include_cancelled: bool = False) -> list[Booking]:
        self.get_room(room_id)
        return self._repository.list_bookings(room_id, include_cancelled=include_cancelled)

    def _apply_edits(self, original: Room, changes: dict[str, Any]) -> Room:
        unknown = sorted(set(changes) - EDITABLE_FIELDS)
        if unknown:
            raise WorkflowValidationError(f"Fields are not editable: {', '.join(unknown)}")
        return replace(original, **changes)

    def _validate_stay(self, room: Room) -> None:
        if not room.check_in_date or not room.check_out_date:
            return
        try:
            start, end = self._stay_bounds(room)
        except ValueError as exc:
            raise WorkflowValidationError(
                "Stay dates must follow YYYY-MM-DD and times HH:MM"
            ) from exc
        if start >= end:
            raise WorkflowValidationError("Check-out must be after check-in")

    def _stay_bounds(self, room: Room):
        return stay_bounds(
            room.check_in_date or "",
            room.check_out_date or "",
            room.check_in_time,
            room.check_out_time,
            self._settings.default_check_in_time,
            self._settings.default_check_out_time,
        )

    def _commitments_for(self, room: Room) -> list[Booking]:
        if not self.booking_store_available:
            return []
        bookings = self._repository.list_bookings(room.id)
        if room.current_booking_id:
            # The room's own stay never blocks itself.
            bookings = [booking for booking in bookings if booking.id != room.current_booking_id]
        return bookings

    def _verdict(self, original: Room, planned: Room) -> ConflictVerdict:
        # Guards the stay a save leaves behind; a check-out leaves none.
        verdict = detect_conflict(
            original,
            planned,
            self._commitments_for(original),
            self.booking_store_available,
            self._settings.default_check_in_time,
            self._settings.default_check_out_time,
        )
        logger.debug(
            "Conflict check room=%s source=%s conflict=%s",
            original.id,
            verdict.source.value,
            verdict.conflict,
        )
        return verdict

    def check_conflict(self, room_id: str, changes: dict[str, Any]) -> ConflictVerdict:
        """Dry-run the save guard without writing anything."""
        original = self.get_room(room_id)
        edited = self._apply_edits(original, changes)
        self._validate_stay(edited)
        return self._verdict(original, plan_save(original, edited))

    def _stay_booking(self, room: Room, existing: Optional[Booking] = None) -> Booking:
        start, end = self._stay_bounds(room)
        return Booking(
            id=existing.id if existing else str(uuid4()),
            room_id=room.id,
            guest_name=room.guest_name or "",
            guest_id=room.guest_id,
            check_in_at=to_utc_iso(start),
            check_out_at=to_utc_iso(end),
            booking_type=BookingType.HOURLY if room.is_hourly else BookingType.STANDARD,
            status=BookingStatus.CHECKED_IN,
            payment_method=room.payment_method,
            created_at=existing.created_at if existing else utc_now_iso(),
        )

    def _checked_out(self, booking: Booking) -> Booking:
        """Close a stay's row at the departure time, never past its booked end."""
        booked_start = parse_instant(booking.check_in_at)
        booked_end = parse_instant(booking.check_out_at)
        departure = max(self._clock(), booked_start)
        return replace(
            booking,
            status=BookingStatus.CHECKED_OUT,
            check_out_at=to_utc_iso(min(departure, booked_end)),
        )

    def _track_stay(self, original: Room, final: Room) -> tuple[Room, list[Booking], Optional[Booking]]:
        """Work out the booking rows a room change writes.

        A stay starting records a new row, an edited stay rewrites its own
        row in place and a stay that ends closes its row. Returns the room
        pointing at its current row, the rows to write and that current row.
        """
        if not self.booking_store_available:
            return final, [], None

        current = None
        if original.current_booking_id:
            current = self._repository.get_booking(original.current_booking_id)
        continuing = (
            current is not None
            and current.status == BookingStatus.CHECKED_IN
            and final.current_booking_id == current.id
        )

        writes: list[Booking] = []
        if current is not None and current.status == BookingStatus.CHECKED_IN and not continuing:
            writes.append(self._checked_out(current))
            logger.info("Closed booking %s for room %s", current.id, original.id)

        if not (
            final.status == RoomStatus.OCCUPIED
            and final.guest_name
            and final.check_in_date
            and final.check_out_date
        ):
            return final, writes, None

        booking = self._stay_booking(final, current if continuing else None)
        if booking != current:
            writes.append(booking)
            logger.info(
                "%s %s booking %s for room %s",
                "Updated" if continuing else "Recorded",
                booking.booking_type.value,
                booking.id,
                final.id,
            )
        return replace(final, current_booking_id=booking.id), writes, booking

    def save_room(
        self,
        room_id: str,
        changes: dict[str, Any],
        *,
        force: bool = False,
    ) -> SaveOutcome:
        """Commit an explicit edit.

        A detected conflict is advisory: without ``force`` the save is
        rejected with ``BookingConflictError``; with it the write proceeds.
        The room and its booking rows are written in one transaction.
        """
        with self._lock:
            original = self.get_room(room_id)
            edited = self._apply_edits(original, changes)
            self._validate_stay(edited)

            planned = plan_save(original, edited)
            verdict = self._verdict(original, planned)
            if verdict.conflict and not force:
                logger.info("Save rejected for room %s: unacknowledged conflict", room_id)
                raise BookingConflictError(verdict)
            if verdict.conflict:
                logger.warning(
                    "Forced save for room %s despite conflict (%s)",
                    room_id,
                    verdict.source.value,
                )

            final, writes, booking = self._track_stay(original, planned)
            self._repository.save_room(final, writes)
            logger.info(
                "Saved room %s: %s -> %s",
                room_id,
                original.status.value,
                final.status.value,
            )
            return SaveOutcome(
                room=final,
                verdict=verdict,
                forced=verdict.conflict,
                booking=booking,
            )

    def apply_action(
        self,
        room_id: str,
        action: WorkflowAction,
        *,
        maintenance_issue: Optional[str] = None,
    ) -> Room:
        """Run a one-click workflow action offered for the room's status."""
        with self._lock:
            room = self.get_room(room_id)
            if action not in available_actions(room.status):
                raise ActionNotAvailableError(
                    f"Action '{action.value}' is not available while room is {room.status.value}"
                )
            _, target = WORKFLOW_ACTIONS[action]
            context = replace(
                TransitionContext.between(room, room),
                maintenance_issue=maintenance_issue or room.maintenance_issue,
            )
            updated, writes, _ = self._track_stay(room, commit_transition(room, target, context))
            self._repository.save_room(updated, writes)
            logger.info("Room %s: %s (%s -> %s)", room_id, action.value, room.status.value, updated.status.value)
            return updated

    def _reservation_conflict(self, room: Room, reservation: Reservation) -> Optional[ConflictVerdict]:
        # The room's own slot is being replaced, so only the current stay can block it.
        conflict = has_booking_conflict(
            replace(room, upcoming_reservation=None),
            reservation.check_in_date,
            reservation.check_out_date,
        )
        if not conflict:
            return None
        return ConflictVerdict(conflict=True, source=CommitmentSource.ROOM_CACHE)

    def set_reservation(
        self,
        room_id: str,
        reservation: Reservation,
        *,
        force: bool = False,
    ) -> Room:
        """Place the room's upcoming reservation, guarded by the cache-path check."""
        with self._lock:
            room = self.get_room(room_id)
            try:
                start = date.fromisoformat(reservation.check_in_date)
                end = date.fromisoformat(reservation.check_out_date)
            except ValueError as exc:
                raise WorkflowValidationError("Reservation dates must follow YYYY-MM-DD") from exc
            if start > end or (start == end and not reservation.is_hourly):
                raise WorkflowValidationError("Reservation check-out must be after check-in")

            verdict = self._reservation_conflict(room, reservation)
            if verdict is not None and not force:
                raise BookingConflictError(verdict)
            updated = set_upcoming_reservation(room, reservation)
            self._repository.save_room(updated)
            logger.info("Room %s: reservation %s for %s", room_id, reservation.id, reservation.guest_name)
            return updated

    def _require_reservation(self, room: Room) -> Reservation:
        if room.upcoming_reservation is None:
            raise WorkflowValidationError(f"Room '{room.id}' has no upcoming reservation")
        return room.upcoming_reservation

    def clear_reservation(self, room_id: str) -> Room:
        with self._lock:
            room = self.get_room(room_id)
            reservation = self._require_reservation(room)
            updated = clear_upcoming_reservation(room)
            self._repository.save_room(updated)
            logger.info("Room %s: removed reservation %s", room_id, reservation.id)
            return updated

    def move_reservation(
        self,
        source_id: str,
        target_id: str,
        *,
        force: bool = False,
    ) -> tuple[Room, Room]:
        """Hand a room's upcoming reservation to another room.

        The target must have a free reservation slot; an overlap with its
        current stay needs ``force``. Both rooms are written together.
        """
        with self._lock:
            if source_id == target_id:
                raise WorkflowValidationError("Reservation is already on this room")
            source = self.get_room(source_id)
            target = self.get_room(target_id)
            reservation = self._require_reservation(source)
            if target.upcoming_reservation is not None:
                raise WorkflowValidationError(
                    f"Room '{target_id}' already holds a reservation for "
                    f"{target.upcoming_reservation.guest_name}"
                )

            verdict = self._reservation_conflict(target, reservation)
            if verdict is not None and not force:
                raise BookingConflictError(verdict)
            if verdict is not None:
                logger.warning("Forced reservation move into room %s despite conflict", target_id)

            moved_from, moved_to = move_upcoming_reservation(source, target)
            self._repository.save_rooms((moved_from, moved_to))
            logger.info("Moved reservation %s from room %s to room %s", reservation.id, source_id, target_id)
            return moved_from, moved_to

    def check_in_reservation(self, room_id: str, *, force: bool = False) -> Room:
        with self._lock:
            room = self.get_room(room_id)
            self._require_reservation(room)
            if room.status == RoomStatus.OCCUPIED and not force:
                raise WorkflowValidationError(
                    "Room is already occupied; resubmit with force to check in anyway"
                )
            updated, writes, _ = self._track_stay(room, check_in_reservation(room))
            self._repository.save_room(updated, writes)
            logger.info("Room %s: checked in reservation for %s", room_id, updated.guest_name)
            return updated
