"""Room status workflow: transition table, side effects and history.

``apply_transition`` owns the table. Each transition resolves to a
``TransitionResult`` that declares the history entry to prepend and the
exact fields it resets or sets, so callers and tests can see what a
transition touches without replaying it.

Nothing here performs I/O or raises; a room is only ever replaced, and its
history is only ever prepended to.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional
from uuid import uuid4

from frontdesk.domain.models import (
    BookingSource,
    HistoryAction,
    HistoryEntry,
    InvoiceStatus,
    PaymentMethod,
    Reservation,
    Room,
    RoomStatus,
)
from frontdesk.domain.stay_interval import DEFAULT_CHECK_IN_TIME, DEFAULT_CHECK_OUT_TIME

UNKNOWN_GUEST = "Unknown Guest"

# Fields wiped when a guest leaves the room (check-out or cancelled reservation).
GUEST_FIELD_RESETS: tuple[tuple[str, Any], ...] = (
    ("guest_name", None),
    ("guest_id", None),
    ("is_id_scanned", False),
    ("check_in_date", None),
    ("check_out_date", None),
    ("check_in_time", None),
    ("check_out_time", None),
    ("booking_source", None),
    ("maintenance_issue", None),
    ("sale_price", None),
    ("payment_method", None),
    ("is_hourly", False),
    ("invoice_status", InvoiceStatus.NONE),
    ("notes", ""),
    ("current_booking_id", None),
)


class WorkflowAction(str, Enum):
    MARK_CLEAN = "mark_clean"
    START_MAINTENANCE = "start_maintenance"
    CHECK_OUT = "check_out"
    CHECK_IN = "check_in"
    CANCEL_RESERVATION = "cancel_reservation"


WORKFLOW_ACTIONS: dict[WorkflowAction, tuple[RoomStatus, RoomStatus]] = {
    WorkflowAction.MARK_CLEAN: (RoomStatus.DIRTY, RoomStatus.AVAILABLE),
    WorkflowAction.START_MAINTENANCE: (RoomStatus.DIRTY, RoomStatus.MAINTENANCE),
    WorkflowAction.CHECK_OUT: (RoomStatus.OCCUPIED, RoomStatus.DIRTY),
    WorkflowAction.CHECK_IN: (RoomStatus.RESERVED, RoomStatus.OCCUPIED),
    WorkflowAction.CANCEL_RESERVATION: (RoomStatus.RESERVED, RoomStatus.AVAILABLE),
}


@dataclass(frozen=True)
class TransitionContext:
    """Guest facts a transition description may need."""

    outgoing_guest: Optional[str] = None
    incoming_guest: Optional[str] = None
    is_hourly: bool = False
    payment_method: Optional[PaymentMethod] = None
    maintenance_issue: Optional[str] = None

    @classmethod
    def between(cls, original: Room, edited: Room) -> "TransitionContext":
        return cls(
            outgoing_guest=original.guest_name,
            incoming_guest=edited.guest_name,
            is_hourly=edited.is_hourly,
            payment_method=edited.payment_method,
            maintenance_issue=edited.maintenance_issue,
        )


@dataclass(frozen=True)
class TransitionResult:
    status: RoomStatus
    history_action: Optional[HistoryAction] = None
    description: Optional[str] = None
    resets: tuple[tuple[str, Any], ...] = ()
    sets: tuple[tuple[str, Any], ...] = ()
    archive_stay: bool = False

    @property
    def records_history(self) -> bool:
        return self.history_action is not None

    @property
    def touched_fields(self) -> frozenset[str]:
        return frozenset(name for name, _ in self.resets + self.sets)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def status_change_description(current: RoomStatus, requested: RoomStatus) -> str:
    return f"Status changed: {current.label} -> {requested.label}"


def _stay_mode(is_hourly: bool) -> str:
    return "Hourly" if is_hourly else "Standard"


def _mark_clean(context: TransitionContext) -> TransitionResult:
    return TransitionResult(
        status=RoomStatus.AVAILABLE,
        history_action=HistoryAction.STATUS_CHANGE,
        description="Room cleaned",
    )


def _start_maintenance(context: TransitionContext) -> TransitionResult:
    issue = (context.maintenance_issue or "").strip()
    return TransitionResult(
        status=RoomStatus.MAINTENANCE,
        history_action=HistoryAction.STATUS_CHANGE,
        description=f"Maintenance started: {issue}" if issue else "Maintenance started",
        sets=(("maintenance_issue", issue),) if issue else (),
    )


def _check_out(requested: RoomStatus) -> Callable[[TransitionContext], TransitionResult]:
    def build(context: TransitionContext) -> TransitionResult:
        return TransitionResult(
            status=requested,
            history_action=HistoryAction.CHECK_OUT,
            description=f"Check-out: {context.outgoing_guest or UNKNOWN_GUEST}",
            resets=GUEST_FIELD_RESETS,
            archive_stay=True,
        )

    return build


def _check_in_reserved(context: TransitionContext) -> TransitionResult:
    return TransitionResult(status=RoomStatus.OCCUPIED)


def _cancel_reservation(context: TransitionContext) -> TransitionResult:
    return TransitionResult(
        status=RoomStatus.AVAILABLE,
        history_action=HistoryAction.STATUS_CHANGE,
        description="Reservation Cancelled",
        resets=GUEST_FIELD_RESETS,
    )


def _check_in_walk_in(context: TransitionContext) -> TransitionResult:
    payment = context.payment_method or PaymentMethod.CASH
    return TransitionResult(
        status=RoomStatus.OCCUPIED,
        history_action=HistoryAction.CHECK_IN,
        description=(
            f"Check-in: {context.incoming_guest or UNKNOWN_GUEST} "
            f"({_stay_mode(context.is_hourly)}) via {payment.label}"
        ),
    )


_NAMED_TRANSITIONS: dict[
    tuple[RoomStatus, RoomStatus],
    Callable[[TransitionContext], TransitionResult],
] = {
    (RoomStatus.DIRTY, RoomStatus.AVAILABLE): _mark_clean,
    (RoomStatus.DIRTY, RoomStatus.MAINTENANCE): _start_maintenance,
    (RoomStatus.OCCUPIED, RoomStatus.DIRTY): _check_out(RoomStatus.DIRTY),
    (RoomStatus.OCCUPIED, RoomStatus.AVAILABLE): _check_out(RoomStatus.AVAILABLE),
    (RoomStatus.RESERVED, RoomStatus.OCCUPIED): _check_in_reserved,
    (RoomStatus.RESERVED, RoomStatus.AVAILABLE): _cancel_reservation,
    (RoomStatus.AVAILABLE, RoomStatus.OCCUPIED): _check_in_walk_in,
}


def apply_transition(
    current: RoomStatus,
    requested: RoomStatus,
    context: Optional[TransitionContext] = None,
) -> TransitionResult:
    """Resolve a status change into its declared side effects.

    Named transitions take their specific description and field effects;
    any other pair is a manual override logged as a plain status change.
    Requesting the current status is a no-op.
    """
    context = context or TransitionContext()
    if current == requested:
        return TransitionResult(status=current)
    builder = _NAMED_TRANSITIONS.get((current, requested))
    if builder is not None:
        return builder(context)
    return TransitionResult(
        status=requested,
        history_action=HistoryAction.STATUS_CHANGE,
        description=status_change_description(current, requested),
    )


def available_actions(status: RoomStatus) -> list[WorkflowAction]:
    return [
        action
        for action, (source, _) in WORKFLOW_ACTIONS.items()
        if source == status
    ]


def prepend_history(
    room: Room,
    action: HistoryAction,
    description: str,
    now: str,
) -> Room:
    entry = HistoryEntry(date=now, action=action, description=description)
    return replace(room, history=(entry,) + room.history)


def _archive_stay(stay: Room) -> Optional[Reservation]:
    if not (stay.guest_name or stay.check_in_date or stay.check_out_date):
        return None
    return Reservation(
        id=f"arch-{uuid4().hex[:12]}",
        guest_name=stay.guest_name or UNKNOWN_GUEST,
        check_in_date=stay.check_in_date or "",
        check_out_date=stay.check_out_date or "",
        check_in_time=stay.check_in_time,
        check_out_time=stay.check_out_time,
        is_hourly=stay.is_hourly,
        source=stay.booking_source,
        payment_method=stay.payment_method,
    )


def apply_result(
    room: Room,
    result: TransitionResult,
    now: str,
    stay: Optional[Room] = None,
) -> Room:
    """Apply a resolved transition to a room.

    ``stay`` is the snapshot whose stay gets archived; it defaults to ``room``.
    """
    changes: dict[str, Any] = {"status": result.status}
    if result.archive_stay:
        archived = _archive_stay(stay or room)
        if archived is not None:
            changes["past_reservations"] = (archived,) + room.past_reservations
    changes.update(dict(result.resets))
    changes.update(dict(result.sets))
    updated = replace(room, **changes)
    if result.history_action is not None and result.description is not None:
        updated = prepend_history(updated, result.history_action, result.description, now)
    return updated


def commit_transition(
    room: Room,
    requested: RoomStatus,
    context: Optional[TransitionContext] = None,
    now: Optional[str] = None,
) -> Room:
    """One-click path: resolve and apply a transition on a stored room."""
    context = context or TransitionContext.between(room, room)
    result = apply_transition(room.status, requested, context)
    return apply_result(room, result, now or utc_now_iso())


def plan_save(original: Room, edited: Room, now: Optional[str] = None) -> Room:
    """Compute the room to persist for an explicit save of ``edited``.

    History always grows from the stored room's history. A status change
    prepends its transition entry, falling back to a plain status-change entry
    for named transitions that carry none. A guest-name edit on an occupied
    room additionally prepends an INFO entry.
    """
    timestamp = now or utc_now_iso()
    room = replace(
        edited,
        history=original.history,
        past_reservations=original.past_reservations,
    )

    if original.status != edited.status:
        result = apply_transition(
            original.status,
            edited.status,
            TransitionContext.between(original, edited),
        )
        if not result.records_history:
            result = replace(
                result,
                history_action=HistoryAction.STATUS_CHANGE,
                description=status_change_description(original.status, edited.status),
            )
        room = apply_result(room, result, timestamp, stay=original)

    if original.guest_name != edited.guest_name and edited.status == RoomStatus.OCCUPIED:
        room = prepend_history(
            room,
            HistoryAction.INFO,
            f"Guest details updated: {edited.guest_name or UNKNOWN_GUEST}",
            timestamp,
        )

    return room


def set_upcoming_reservation(
    room: Room,
    reservation: Reservation,
    now: Optional[str] = None,
) -> Room:
    """Place or replace the room's cached upcoming reservation."""
    verb = (
        "Updated"
        if room.upcoming_reservation is not None
        and room.upcoming_reservation.id == reservation.id
        else "Added"
    )
    mode = "hourly" if reservation.is_hourly else "daily"
    updated = replace(room, upcoming_reservation=reservation)
    return prepend_history(
        updated,
        HistoryAction.INFO,
        f"{verb} {mode} reservation for {reservation.guest_name}",
        now or utc_now_iso(),
    )


def clear_upcoming_reservation(room: Room, now: Optional[str] = None) -> Room:
    """Drop the cached upcoming reservation. A room without one is unchanged."""
    reservation = room.upcoming_reservation
    if reservation is None:
        return room
    updated = replace(room, upcoming_reservation=None)
    return prepend_history(
        updated,
        HistoryAction.INFO,
        f"Removed reservation for {reservation.guest_name}",
        now or utc_now_iso(),
    )


def move_upcoming_reservation(
    source: Room,
    target: Room,
    now: Optional[str] = None,
) -> tuple[Room, Room]:
    """Hand the source room's upcoming reservation over to the target room.

    Both rooms get an INFO entry naming the other. Returns the pair unchanged
    when the source holds no reservation.
    """
    reservation = source.upcoming_reservation
    if reservation is None:
        return source, target
    timestamp = now or utc_now_iso()
    moved_from = prepend_history(
        replace(source, upcoming_reservation=None),
        HistoryAction.INFO,
        f"Reservation for {reservation.guest_name} moved to {target.display_name}",
        timestamp,
    )
    moved_to = prepend_history(
        replace(target, upcoming_reservation=reservation),
        HistoryAction.INFO,
        f"Reservation for {reservation.guest_name} moved from {source.display_name}",
        timestamp,
    )
    return moved_from, moved_to


def check_in_reservation(room: Room, now: Optional[str] = None) -> Room:
    """Promote the cached upcoming reservation into the current stay.

    A room without an upcoming reservation is returned unchanged.
    """
    reservation = room.upcoming_reservation
    if reservation is None:
        return room
    updated = replace(
        room,
        status=RoomStatus.OCCUPIED,
        guest_name=reservation.guest_name,
        check_in_date=reservation.check_in_date,
        check_out_date=reservation.check_out_date,
        check_in_time=reservation.check_in_time or DEFAULT_CHECK_IN_TIME,
        check_out_time=reservation.check_out_time or DEFAULT_CHECK_OUT_TIME,
        is_hourly=reservation.is_hourly,
        booking_source=reservation.source or BookingSource.WALK_IN,
        payment_method=reservation.payment_method or PaymentMethod.CASH,
        upcoming_reservation=None,
        current_booking_id=None,
        is_id_scanned=False,
        invoice_status=InvoiceStatus.NONE,
        maintenance_issue=None,
        notes="",
    )
    return prepend_history(
        updated,
        HistoryAction.CHECK_IN,
        (
            f"Check-in from reservation: {reservation.guest_name} "
            f"({_stay_mode(reservation.is_hourly)})"
        ),
        now or utc_now_iso(),
    )
