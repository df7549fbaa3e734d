"""Domain models for rooms, stays, bookings and room history."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class RoomStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    DIRTY = "DIRTY"
    MAINTENANCE = "MAINTENANCE"
    RESERVED = "RESERVED"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class RoomType(str, Enum):
    SINGLE = "Single"
    DOUBLE = "Double"
    SUITE = "Suite"


class BookingSource(str, Enum):
    BOOKING_COM = "Booking.com"
    AGODA = "Agoda"
    G2J = "G2J"
    WALK_IN = "Walk-In"
    OTHER = "Other"


class InvoiceStatus(str, Enum):
    NONE = "NONE"
    REQUIRED = "REQUIRED"
    PROVIDED = "PROVIDED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    QR_TRANSFER = "QR_TRANSFER"
    PREPAID = "PREPAID"

    @property
    def label(self) -> str:
        return {
            PaymentMethod.CASH: "Cash",
            PaymentMethod.CARD: "Card",
            PaymentMethod.QR_TRANSFER: "QR Transfer",
            PaymentMethod.PREPAID: "Prepaid",
        }[self]


class HistoryAction(str, Enum):
    CHECK_IN = "CHECK_IN"
    CHECK_OUT = "CHECK_OUT"
    STATUS_CHANGE = "STATUS_CHANGE"
    INFO = "INFO"


class BookingType(str, Enum):
    STANDARD = "STANDARD"
    HOURLY = "HOURLY"


class BookingStatus(str, Enum):
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELLED = "CANCELLED"
    RESERVED = "RESERVED"


def _optional_enum(enum_type: type[Enum], value: Any) -> Any:
    if value is None or value == "":
        return None
    return enum_type(value)


@dataclass(frozen=True)
class HistoryEntry:
    date: str
    action: HistoryAction
    description: str
    staff_name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "date": self.date,
            "action": self.action.value,
            "description": self.description,
        }
        if self.staff_name is not None:
            payload["staffName"] = self.staff_name
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "HistoryEntry":
        return cls(
            date=str(payload["date"]),
            action=HistoryAction(payload["action"]),
            description=str(payload.get("description", "")),
            staff_name=payload.get("staffName"),
        )


@dataclass(frozen=True)
class Reservation:
    """A stay claimed on a room, either upcoming or archived."""

    id: str
    guest_name: str
    check_in_date: str
    check_out_date: str
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    is_hourly: bool = False
    source: Optional[BookingSource] = None
    payment_method: Optional[PaymentMethod] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "guestName": self.guest_name,
            "checkInDate": self.check_in_date,
            "checkOutDate": self.check_out_date,
            "checkInTime": self.check_in_time,
            "checkOutTime": self.check_out_time,
            "isHourly": self.is_hourly,
            "source": self.source.value if self.source else None,
            "paymentMethod": self.payment_method.value if self.payment_method else None,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Reservation":
        return cls(
            id=str(payload["id"]),
            guest_name=str(payload.get("guestName", "")),
            check_in_date=str(payload.get("checkInDate", "")),
            check_out_date=str(payload.get("checkOutDate", "")),
            check_in_time=payload.get("checkInTime"),
            check_out_time=payload.get("checkOutTime"),
            is_hourly=bool(payload.get("isHourly", False)),
            source=_optional_enum(BookingSource, payload.get("source")),
            payment_method=_optional_enum(PaymentMethod, payload.get("paymentMethod")),
        )


@dataclass(frozen=True)
class Room:
    """Room aggregate; commitments and history are embedded and owned here."""

    id: str
    number: str
    capacity: int
    room_type: RoomType
    status: RoomStatus
    price: float
    name: Optional[str] = None
    sale_price: Optional[float] = None
    payment_method: Optional[PaymentMethod] = None
    guest_name: Optional[str] = None
    guest_id: Optional[str] = None
    check_in_date: Optional[str] = None
    check_out_date: Optional[str] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    is_hourly: bool = False
    notes: str = ""
    maintenance_issue: Optional[str] = None
    booking_source: Optional[BookingSource] = None
    invoice_status: InvoiceStatus = InvoiceStatus.NONE
    is_id_scanned: bool = False
    current_booking_id: Optional[str] = None
    upcoming_reservation: Optional[Reservation] = None
    past_reservations: tuple[Reservation, ...] = field(default_factory=tuple)
    history: tuple[HistoryEntry, ...] = field(default_factory=tuple)

    @property
    def display_name(self) -> str:
        return self.name or f"Room {self.number}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase document layout stored per room."""
        return {
            "id": self.id,
            "number": self.number,
            "name": self.name,
            "capacity": self.capacity,
            "type": self.room_type.value,
            "status": self.status.value,
            "price": self.price,
            "salePrice": self.sale_price,
            "paymentMethod": self.payment_method.value if self.payment_method else None,
            "guestName": self.guest_name,
            "guestId": self.guest_id,
            "checkInDate": self.check_in_date,
            "checkOutDate": self.check_out_date,
            "checkInTime": self.check_in_time,
            "checkOutTime": self.check_out_time,
            "isHourly": self.is_hourly,
            "notes": self.notes,
            "maintenanceIssue": self.maintenance_issue,
            "bookingSource": self.booking_source.value if self.booking_source else None,
            "invoiceStatus": self.invoice_status.value,
            "isIdScanned": self.is_id_scanned,
            "currentBookingId": self.current_booking_id,
            "upcomingReservation": (
                self.upcoming_reservation.to_dict() if self.upcoming_reservation else None
            ),
            "pastReservations": [item.to_dict() for item in self.past_reservations],
            "history": [entry.to_dict() for entry in self.history],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Room":
        upcoming = payload.get("upcomingReservation")
        return cls(
            id=str(payload["id"]),
            number=str(payload["number"]),
            name=payload.get("name"),
            capacity=int(payload.get("capacity", 1)),
            room_type=RoomType(payload.get("type", RoomType.SINGLE.value)),
            status=RoomStatus(payload.get("status", RoomStatus.AVAILABLE.value)),
            price=float(payload.get("price", 0.0)),
            sale_price=payload.get("salePrice"),
            payment_method=_optional_enum(PaymentMethod, payload.get("paymentMethod")),
            guest_name=payload.get("guestName") or None,
            guest_id=payload.get("guestId") or None,
            check_in_date=payload.get("checkInDate") or None,
            check_out_date=payload.get("checkOutDate") or None,
            check_in_time=payload.get("checkInTime") or None,
            check_out_time=payload.get("checkOutTime") or None,
            is_hourly=bool(payload.get("isHourly", False)),
            notes=payload.get("notes") or "",
            maintenance_issue=payload.get("maintenanceIssue") or None,
            booking_source=_optional_enum(BookingSource, payload.get("bookingSource")),
            invoice_status=InvoiceStatus(payload.get("invoiceStatus") or InvoiceStatus.NONE.value),
            is_id_scanned=bool(payload.get("isIdScanned", False)),
            current_booking_id=payload.get("currentBookingId") or None,
            upcoming_reservation=Reservation.from_dict(upcoming) if upcoming else None,
            past_reservations=tuple(
                Reservation.from_dict(item) for item in payload.get("pastReservations") or []
            ),
            history=tuple(
                HistoryEntry.from_dict(item) for item in payload.get("history") or []
            ),
        )


@dataclass(frozen=True)
class Booking:
    """Confirmed booking row owned by the booking store."""

    id: str
    room_id: str
    guest_name: str
    check_in_at: str
    check_out_at: str
    booking_type: BookingType
    status: BookingStatus
    guest_id: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    created_at: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "room_id": self.room_id,
            "guest_name": self.guest_name,
            "guest_id": self.guest_id,
            "check_in_at": self.check_in_at,
            "check_out_at": self.check_out_at,
            "booking_type": self.booking_type.value,
            "status": self.status.value,
            "payment_method": self.payment_method.value if self.payment_method else None,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class OccupancySummary:
    total_rooms: int
    occupied_rooms: int
    occupancy_percentage: float
    status_counts: dict[str, int]
    checkout_overdue: int
    checkout_soon: int
    missing_id_scan: int
