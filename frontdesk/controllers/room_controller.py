"""HTTP controller layer for room status, stays and reservations."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator

from frontdesk.controllers.dependencies import get_room_service, require_admin
from frontdesk.domain.conflicts import ConflictVerdict
from frontdesk.domain.models import (
    Booking,
    BookingSource,
    InvoiceStatus,
    PaymentMethod,
    Reservation,
    Room,
    RoomStatus,
)
from frontdesk.domain.workflow import WorkflowAction, available_actions
from frontdesk.repository.data_repository import RepositoryError
from frontdesk.services.room_service import (
    ActionNotAvailableError,
    BookingConflictError,
    RoomNotFoundError,
    RoomWorkflowService,
    WorkflowValidationError,
)
from frontdesk.utils.config import get_settings
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/rooms", tags=["rooms"])


class HistoryEntryResponse(BaseModel):
    date: str
    action: str
    description: str
    staff_name: Optional[str] = None


class ReservationPayload(BaseModel):
    id: Optional[str] = None
    guest_name: str = Field(min_length=1)
    check_in_date: date
    check_out_date: date
    check_in_time: Optional[str] = Field(default=None, pattern=settings.time_regex)
    check_out_time: Optional[str] = Field(default=None, pattern=settings.time_regex)
    is_hourly: bool = False
    source: Optional[BookingSource] = None
    payment_method: Optional[PaymentMethod] = None

    @field_validator("guest_name")
    @classmethod
    def validate_guest_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("guest_name must not be blank")
        return value


class RoomResponse(BaseModel):
    id: str
    number: str
    name: Optional[str] = None
    display_name: str
    capacity: int = Field(gt=0)
    room_type: str
    status: RoomStatus
    price: float = Field(ge=0.0)
    sale_price: Optional[float] = None
    payment_method: Optional[PaymentMethod] = None
    guest_name: Optional[str] = None
    guest_id: Optional[str] = None
    check_in_date: Optional[str] = None
    check_out_date: Optional[str] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    is_hourly: bool
    notes: str
    maintenance_issue: Optional[str] = None
    booking_source: Optional[BookingSource] = None
    invoice_status: InvoiceStatus
    is_id_scanned: bool
    current_booking_id: Optional[str] = None
    upcoming_reservation: Optional[ReservationPayload] = None
    past_reservations: list[ReservationPayload]
    history: list[HistoryEntryResponse]
    available_actions: list[WorkflowAction]


class RoomEditPayload(BaseModel):
    """Editable room fields; omitted fields keep their stored value."""

    status: Optional[RoomStatus] = None
    guest_name: Optional[str] = None
    guest_id: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    check_in_time: Optional[str] = Field(default=None, pattern=settings.time_regex)
    check_out_time: Optional[str] = Field(default=None, pattern=settings.time_regex)
    is_hourly: Optional[bool] = None
    notes: Optional[str] = None
    maintenance_issue: Optional[str] = None
    booking_source: Optional[BookingSource] = None
    invoice_status: Optional[InvoiceStatus] = None
    is_id_scanned: Optional[bool] = None
    sale_price: Optional[float] = Field(default=None, ge=0.0)
    payment_method: Optional[PaymentMethod] = None
    name: Optional[str] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, ge=0.0)

    def to_changes(self) -> dict[str, Any]:
        changes = self.model_dump(exclude_unset=True, exclude={"force"})
        for key in ("check_in_date", "check_out_date"):
            if isinstance(changes.get(key), date):
                changes[key] = changes[key].isoformat()
        # Flags and enums with a stored default cannot be nulled out.
        for key in ("status", "is_hourly", "invoice_status", "is_id_scanned", "capacity", "price"):
            if key in changes and changes[key] is None:
                del changes[key]
        if changes.get("notes") is None and "notes" in changes:
            changes["notes"] = ""
        return changes


class RoomUpdateRequest(RoomEditPayload):
    force: bool = False


class ActionRequest(BaseModel):
    maintenance_issue: Optional[str] = None


class ReservationRequest(BaseModel):
    reservation: ReservationPayload
    force: bool = False


class CheckInReservationRequest(BaseModel):
    force: bool = False


class MoveReservationRequest(BaseModel):
    target_room_id: str = Field(min_length=1)
    force: bool = False


class MoveReservationResponse(BaseModel):
    source: RoomResponse
    target: RoomResponse


class BookingResponse(BaseModel):
    id: str
    room_id: str
    guest_name: str
    guest_id: Optional[str] = None
    check_in_at: str
    check_out_at: str
    booking_type: str
    status: str
    payment_method: Optional[str] = None
    created_at: Optional[str] = None


class ConflictResponse(BaseModel):
    conflict: bool
    source: str
    conflicting_bookings: list[BookingResponse]


class SaveRoomResponse(BaseModel):
    room: RoomResponse
    conflict: ConflictResponse
    forced: bool
    booking_id: Optional[str] = None


def _reservation_payload(reservation: Reservation) -> ReservationPayload:
    return ReservationPayload(
        id=reservation.id,
        guest_name=reservation.guest_name or "Unknown Guest",
        check_in_date=date.fromisoformat(reservation.check_in_date),
        check_out_date=date.fromisoformat(reservation.check_out_date),
        check_in_time=reservation.check_in_time,
        check_out_time=reservation.check_out_time,
        is_hourly=reservation.is_hourly,
        source=reservation.source,
        payment_method=reservation.payment_method,
    )


def _room_response(room: Room) -> RoomResponse:
    return RoomResponse(
        id=room.id,
        number=room.number,
        name=room.name,
        display_name=room.display_name,
        capacity=room.capacity,
        room_type=room.room_type.value,
        status=room.status,
        price=room.price,
        sale_price=room.sale_price,
        payment_method=room.payment_method,
        guest_name=room.guest_name,
        guest_id=room.guest_id,
        check_in_date=room.check_in_date,
        check_out_date=room.check_out_date,
        check_in_time=room.check_in_time,
        check_out_time=room.check_out_time,
        is_hourly=room.is_hourly,
        notes=room.notes,
        maintenance_issue=room.maintenance_issue,
        booking_source=room.booking_source,
        invoice_status=room.invoice_status,
        is_id_scanned=room.is_id_scanned,
        current_booking_id=room.current_booking_id,
        upcoming_reservation=(
            _reservation_payload(room.upcoming_reservation)
            if room.upcoming_reservation
            else None
        ),
        past_reservations=[
            _reservation_payload(item)
            for item in room.past_reservations
            if item.check_in_date and item.check_out_date
        ],
        history=[
            HistoryEntryResponse(
                date=entry.date,
                action=entry.action.value,
                description=entry.description,
                staff_name=entry.staff_name,
            )
            for entry in room.history
        ],
        available_actions=available_actions(room.status),
    )


def _booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(**booking.to_dict())


def _conflict_response(verdict: ConflictVerdict) -> ConflictResponse:
    return ConflictResponse(
        conflict=verdict.conflict,
        source=verdict.source.value,
        conflicting_bookings=[_booking_response(item) for item in verdict.conflicting_bookings],
    )


def _conflict_error(exc: BookingConflictError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "message": str(exc),
            "conflict": _conflict_response(exc.verdict).model_dump(),
        },
    )


@router.get("", response_model=list[RoomResponse], status_code=status.HTTP_200_OK)
async def list_rooms(
    status_filter: Optional[RoomStatus] = Query(default=None, alias="status"),
    search: Optional[str] = Query(default=None, max_length=100),
    service: RoomWorkflowService = Depends(get_room_service),
) -> list[RoomResponse]:
    try:
        return [_room_response(room) for room in service.list_rooms(status_filter, search)]
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room listing failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list rooms",
        ) from exc


@router.get("/{room_id}", response_model=RoomResponse, status_code=status.HTTP_200_OK)
async def get_room(
    room_id: str,
    service: RoomWorkflowService = Depends(get_room_service),
) -> RoomResponse:
    try:
        return _room_response(service.get_room(room_id))
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room lookup failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load room",
        ) from exc


@router.get(
    "/{room_id}/bookings",
    response_model=list[BookingResponse],
    status_code=status.HTTP_200_OK,
)
async def list_room_bookings(
    room_id: str,
    include_cancelled: bool = False,
    service: RoomWorkflowService = Depends(get_room_service),
) -> list[BookingResponse]:
    try:
        return [
            _booking_response(booking)
            for booking in service.list_bookings(room_id, include_cancelled=include_cancelled)
        ]
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking listing failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list bookings",
        ) from exc


@router.post(
    "/{room_id}/conflicts",
    response_model=ConflictResponse,
    status_code=status.HTTP_200_OK,
)
async def check_room_conflict(
    room_id: str,
    payload: RoomEditPayload,
    service: RoomWorkflowService = Depends(get_room_service),
) -> ConflictResponse:
    """Dry-run the save guard for an edit."""
    try:
        return _conflict_response(service.check_conflict(room_id, payload.to_changes()))
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except WorkflowValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected conflict check failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check conflicts",
        ) from exc


@router.put(
    "/{room_id}",
    response_model=SaveRoomResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def save_room(
    room_id: str,
    payload: RoomUpdateRequest,
    service: RoomWorkflowService = Depends(get_room_service),
) -> SaveRoomResponse:
    try:
        outcome = service.save_room(room_id, payload.to_changes(), force=payload.force)
        return SaveRoomResponse(
            room=_room_response(outcome.room),
            conflict=_conflict_response(outcome.verdict),
            forced=outcome.forced,
            booking_id=outcome.booking.id if outcome.booking else None,
        )
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except BookingConflictError as exc:
        raise _conflict_error(exc) from exc
    except WorkflowValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room save failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save room",
        ) from exc


@router.post(
    "/{room_id}/actions/{action}",
    response_model=RoomResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def apply_room_action(
    room_id: str,
    action: WorkflowAction,
    payload: Optional[ActionRequest] = None,
    service: RoomWorkflowService = Depends(get_room_service),
) -> RoomResponse:
    try:
        room = service.apply_action(
            room_id,
            action,
            maintenance_issue=payload.maintenance_issue if payload else None,
        )
        return _room_response(room)
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except ActionNotAvailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected workflow action failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to apply workflow action",
        ) from exc


@router.put(
    "/{room_id}/reservation",
    response_model=RoomResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def set_room_reservation(
    room_id: str,
    payload: ReservationRequest,
    service: RoomWorkflowService = Depends(get_room_service),
) -> RoomResponse:
    data = payload.reservation
    reservation = Reservation(
        id=data.id or str(uuid4()),
        guest_name=data.guest_name,
        check_in_date=data.check_in_date.isoformat(),
        check_out_date=data.check_out_date.isoformat(),
        check_in_time=data.check_in_time or settings.default_check_in_time,
        check_out_time=data.check_out_time or settings.default_check_out_time,
        is_hourly=data.is_hourly,
        source=data.source or BookingSource.WALK_IN,
        payment_method=data.payment_method or PaymentMethod.CASH,
    )
    try:
        return _room_response(service.set_reservation(room_id, reservation, force=payload.force))
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except BookingConflictError as exc:
        raise _conflict_error(exc) from exc
    except WorkflowValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected reservation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to set reservation",
        ) from exc


@router.post(
    "/{room_id}/reservation/check_in",
    response_model=RoomResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def check_in_room_reservation(
    room_id: str,
    payload: Optional[CheckInReservationRequest] = None,
    service: RoomWorkflowService = Depends(get_room_service),
) -> RoomResponse:
    try:
        room = service.check_in_reservation(room_id, force=payload.force if payload else False)
        return _room_response(room)
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except WorkflowValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected reservation check-in failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check in reservation",
        ) from exc


@router.delete(
    "/{room_id}/reservation",
    response_model=RoomResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def clear_room_reservation(
    room_id: str,
    service: RoomWorkflowService = Depends(get_room_service),
) -> RoomResponse:
    try:
        return _room_response(service.clear_reservation(room_id))
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except WorkflowValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected reservation removal failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to remove reservation",
        ) from exc


@router.post(
    "/{room_id}/reservation/move",
    response_model=MoveReservationResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def move_room_reservation(
    room_id: str,
    payload: MoveReservationRequest,
    service: RoomWorkflowService = Depends(get_room_service),
) -> MoveReservationResponse:
    try:
        source, target = service.move_reservation(
            room_id,
            payload.target_room_id,
            force=payload.force,
        )
        return MoveReservationResponse(
            source=_room_response(source),
            target=_room_response(target),
        )
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except BookingConflictError as exc:
        raise _conflict_error(exc) from exc
    except WorkflowValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except RepositoryError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected reservation move failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to move reservation",
        ) from exc
