import uuid

from fastapi import APIRouter, Depends, Header, Query, Response

from glowlogy.api.v1.schemas import (
    BookingListSchema,
    BookingSchema,
    CancelBookingSchema,
    CreateBookingSchema,
    SlotsResponseSchema,
    UpdateStatusSchema,
)
from glowlogy.application.exceptions import BookingNotFoundError
from glowlogy.application.ports.identity import IdentityPort
from glowlogy.application.use_cases.booking import BookingLifecycle
from glowlogy.domain.entities.booking import Booking, BookingRequest
from glowlogy.wiring.dependencies import get_booking_lifecycle, get_identity_source

router = APIRouter()

SESSION_HEADER = "X-Session-Id"


def _to_schema(booking: Booking) -> BookingSchema:
    def iso(value):
        return value.isoformat() if value else None

    return BookingSchema(
        id=booking.id,
        booking_id=booking.booking_id,
        location_id=booking.location_id,
        service_id=booking.service_id,
        date=booking.date,
        time=booking.time,
        customer_name=booking.customer_name,
        email=booking.email,
        phone=booking.phone,
        user_id=booking.user_id,
        status=booking.status.value,
        created_at=iso(booking.created_at),
        updated_at=iso(booking.updated_at),
        cancelled_at=iso(booking.cancelled_at),
        cancel_reason=booking.cancel_reason,
        service_name=booking.service_name,
        location_name=booking.location_name,
    )


@router.post("", response_model=BookingSchema, status_code=201)
async def create_booking(
    req: CreateBookingSchema,
    response: Response,
    x_session_id: str | None = Header(default=None),
    uc: BookingLifecycle = Depends(get_booking_lifecycle),
    identity_source: IdentityPort = Depends(get_identity_source),
):
    session_id = x_session_id or uuid.uuid4().hex
    response.headers[SESSION_HEADER] = session_id

    booking = await uc.create(
        BookingRequest(**req.model_dump()),
        session_id=session_id,
        identity=await identity_source.current(),
    )
    return _to_schema(booking)


@router.get("", response_model=BookingListSchema)
async def list_bookings(
    email: str = Query(...),
    use_cache: bool = Query(default=True),
    uc: BookingLifecycle = Depends(get_booking_lifecycle),
):
    bookings = await uc.list_for_user(email, use_cache=use_cache)
    return BookingListSchema(bookings=[_to_schema(b) for b in bookings])


@router.get("/slots", response_model=SlotsResponseSchema)
async def available_slots(
    date: str = Query(...),
    location_id: str = Query(...),
    uc: BookingLifecycle = Depends(get_booking_lifecycle),
):
    slots = await uc.available_slots(date, location_id)
    return SlotsResponseSchema(date=date, location_id=location_id, slots=slots)


@router.get("/{booking_doc_id}", response_model=BookingSchema)
async def get_booking(booking_doc_id: str, uc: BookingLifecycle = Depends(get_booking_lifecycle)):
    booking = await uc.get_by_id(booking_doc_id)
    if booking is None:
        raise BookingNotFoundError(booking_doc_id)
    return _to_schema(booking)


@router.post("/{booking_doc_id}/cancel", response_model=BookingSchema)
async def cancel_booking(
    booking_doc_id: str,
    req: CancelBookingSchema | None = None,
    uc: BookingLifecycle = Depends(get_booking_lifecycle),
):
    booking = await uc.cancel(booking_doc_id, reason=req.reason if req else "")
    return _to_schema(booking)


@router.patch("/{booking_doc_id}/status", response_model=BookingSchema)
async def update_status(
    booking_doc_id: str,
    req: UpdateStatusSchema,
    uc: BookingLifecycle = Depends(get_booking_lifecycle),
):
    booking = await uc.update_status(booking_doc_id, req.status.value)
    return _to_schema(booking)
