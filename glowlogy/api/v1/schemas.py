from typing import Any

from pydantic import BaseModel, Field

from glowlogy.domain.entities.booking import BookingStatus


class CreateBookingSchema(BaseModel):
    location_id: str
    service_id: str
    date: str
    time: str
    customer_name: str
    email: str
    phone: str
    location_name: str | None = None
    location_address: str | None = None
    service_name: str | None = None
    service_duration: int | None = None
    service_price: int | None = None
    notes: str | None = None


class BookingSchema(BaseModel):
    id: str | None = None
    booking_id: str
    location_id: str
    service_id: str
    date: str
    time: str
    customer_name: str
    email: str
    phone: str
    user_id: str | None = None
    status: BookingStatus
    created_at: str | None = None
    updated_at: str | None = None
    cancelled_at: str | None = None
    cancel_reason: str | None = None
    service_name: str | None = None
    location_name: str | None = None


class BookingListSchema(BaseModel):
    bookings: list[BookingSchema]


class SlotsResponseSchema(BaseModel):
    date: str
    location_id: str
    slots: list[str]


class CancelBookingSchema(BaseModel):
    reason: str = ""


class UpdateStatusSchema(BaseModel):
    status: BookingStatus


class ContactSchema(BaseModel):
    name: str
    email: str
    message: str
    phone: str | None = None
    subject: str | None = None


class MembershipInquirySchema(BaseModel):
    plan_name: str
    customer_name: str
    email: str
    phone: str
    plan_price: int | None = None


class CallbackRequestSchema(BaseModel):
    name: str
    phone: str
    preferred_time: str | None = None
    service: str | None = None
    message: str | None = None


class NewsletterSchema(BaseModel):
    email: str


class SubmissionReceiptSchema(BaseModel):
    id: str
    kind: str
    success: bool = True
    message: str


class CatalogResponseSchema(BaseModel):
    items: list[dict[str, Any]] = Field(default_factory=list)
