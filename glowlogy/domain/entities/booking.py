from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Any


class BookingStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"

    def can_transition_to(self, target: "BookingStatus") -> bool:
        return target in _TRANSITIONS[self]

    @property
    def holds_slot(self) -> bool:
        return self in ACTIVE_STATUSES


_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.pending: frozenset({BookingStatus.confirmed, BookingStatus.cancelled}),
    BookingStatus.confirmed: frozenset({BookingStatus.completed, BookingStatus.cancelled}),
    BookingStatus.completed: frozenset(),
    BookingStatus.cancelled: frozenset(),
}

ACTIVE_STATUSES = (BookingStatus.pending, BookingStatus.confirmed)


@dataclass(frozen=True)
class BookingRequest:
    location_id: str
    service_id: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    customer_name: str
    email: str
    phone: str
    user_id: str | None = None
    location_name: str | None = None
    location_address: str | None = None
    service_name: str | None = None
    service_duration: int | None = None
    service_price: int | None = None
    notes: str | None = None


@dataclass(frozen=True)
class Booking:
    booking_id: str
    location_id: str
    service_id: str
    date: str
    time: str
    customer_name: str
    email: str
    phone: str
    user_id: str | None = None
    status: BookingStatus = BookingStatus.pending
    id: str | None = None  # document id in the remote store
    created_at: datetime | None = None
    updated_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancel_reason: str | None = None
    location_name: str | None = None
    location_address: str | None = None
    service_name: str | None = None
    service_duration: int | None = None
    service_price: int | None = None
    notes: str | None = None

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    def with_status(self, status: BookingStatus, **changes: Any) -> "Booking":
        return replace(self, status=status, **changes)

    def to_document(self) -> dict[str, Any]:
        """Remote-store field names; timestamps stay as datetimes."""
        document: dict[str, Any] = {
            "bookingId": self.booking_id,
            "locationId": self.location_id,
            "serviceId": self.service_id,
            "date": self.date,
            "time": self.time,
            "customerName": self.customer_name,
            "email": self.email,
            "phone": self.phone,
            "userId": self.user_id,
            "status": self.status.value,
        }
        optional = {
            "locationName": self.location_name,
            "locationAddress": self.location_address,
            "serviceName": self.service_name,
            "serviceDuration": self.service_duration,
            "servicePrice": self.service_price,
            "notes": self.notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "cancelledAt": self.cancelled_at,
            "cancelReason": self.cancel_reason,
        }
        document.update({key: value for key, value in optional.items() if value is not None})
        return document

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe form used by the cache tiers and the HTTP layer."""
        payload = {"id": self.id, **self.to_document()}
        for key in ("createdAt", "updatedAt", "cancelledAt"):
            if isinstance(payload.get(key), datetime):
                payload[key] = payload[key].isoformat()
        return payload

    @staticmethod
    def from_document(doc_id: str | None, data: dict[str, Any]) -> "Booking":
        return Booking(
            id=doc_id,
            booking_id=str(data.get("bookingId") or ""),
            location_id=str(data.get("locationId") or ""),
            service_id=str(data.get("serviceId") or ""),
            date=_date_string(data.get("date")),
            time=str(data.get("time") or ""),
            customer_name=str(data.get("customerName") or ""),
            email=str(data.get("email") or ""),
            phone=str(data.get("phone") or ""),
            user_id=data.get("userId"),
            status=_parse_status(data.get("status")),
            created_at=_parse_timestamp(data.get("createdAt")),
            updated_at=_parse_timestamp(data.get("updatedAt")),
            cancelled_at=_parse_timestamp(data.get("cancelledAt")),
            cancel_reason=data.get("cancelReason"),
            location_name=data.get("locationName"),
            location_address=data.get("locationAddress"),
            service_name=data.get("serviceName"),
            service_duration=data.get("serviceDuration"),
            service_price=data.get("servicePrice"),
            notes=data.get("notes"),
        )

    @staticmethod
    def from_payload(payload: dict[str, Any]) -> "Booking":
        return Booking.from_document(payload.get("id"), payload)


def _parse_status(value: Any) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        # Legacy admin writes could store arbitrary strings.
        return BookingStatus.pending


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _date_string(value: Any) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value or "")
    return text[:10]
