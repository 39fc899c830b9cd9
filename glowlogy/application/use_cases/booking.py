from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from glowlogy.application.exceptions import (
    BookingNotFoundError,
    InvalidStatusTransitionError,
    RemoteReadError,
    RemoteWriteError,
    SlotUnavailableError,
    ValidationError,
)
from glowlogy.application.ports.document_store import (
    SERVER_TIMESTAMP,
    DocumentExistsError,
    DocumentStorePort,
    Filter,
    OrderBy,
)
from glowlogy.application.services.rate_limiter import SlidingWindowRateLimiter
from glowlogy.application.services.request_coordinator import RequestCoordinator
from glowlogy.application.services.tiered_cache import TieredCache
from glowlogy.application.utils.booking_id import BookingIdGenerator
from glowlogy.application.utils.validation import (
    require,
    validate_email,
    validate_iso_date,
    validate_phone,
    validate_time,
)
from glowlogy.domain.entities.booking import ACTIVE_STATUSES, Booking, BookingRequest, BookingStatus
from glowlogy.domain.entities.identity import Identity
from glowlogy.domain.entities.rate_limit import RateLimitPolicy


BOOKINGS_COLLECTION = "bookings"
SLOTS_COLLECTION = "booking_slots"
BOOKINGS_NAMESPACE = "bookings"

DAILY_SLOTS: tuple[str, ...] = (
    "09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
    "12:00", "12:30", "14:00", "14:30", "15:00", "15:30",
    "16:00", "16:30", "17:00", "17:30", "18:00", "18:30",
)

DEFAULT_BOOKING_POLICY = RateLimitPolicy(max_requests=5, window_seconds=60 * 60, scope="booking")


def slot_key(location_id: str, day: str, slot: str) -> str:
    return f"{location_id}_{day}_{slot}".replace("/", "-")


class BookingLifecycle:
    def __init__(
        self,
        store: DocumentStorePort,
        cache: TieredCache,
        rate_limiter: SlidingWindowRateLimiter,
        coordinator: RequestCoordinator,
        rate_limit: RateLimitPolicy = DEFAULT_BOOKING_POLICY,
        enforce_unique_slots: bool = True,
        id_generator: Callable[[], str] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._cache = cache
        self._rate_limiter = rate_limiter
        self._coordinator = coordinator
        self._rate_limit = rate_limit
        self._enforce_unique_slots = enforce_unique_slots
        self._new_booking_id = id_generator or BookingIdGenerator(clock=clock)
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def create(
        self,
        request: BookingRequest,
        session_id: str,
        identity: Identity | None = None,
    ) -> Booking:
        """
        Validate, rate-limit, claim the slot and persist a new pending booking.

        The "bookings" cache namespace is invalidated only after the write succeeds.
        """
        if not session_id:
            raise ValueError("session_id is required to rate-limit bookings")

        booking = self._validated_booking(request, identity)
        self._rate_limiter.enforce(session_id, self._rate_limit)
        booking = replace(booking, booking_id=self._new_booking_id())

        claimed = False
        if self._enforce_unique_slots:
            await self._claim_slot(booking)
            claimed = True

        document = booking.to_document()
        document["createdAt"] = SERVER_TIMESTAMP
        document["updatedAt"] = SERVER_TIMESTAMP
        try:
            doc_id = await self._store.insert(BOOKINGS_COLLECTION, document)
        except Exception as e:
            self._logger.exception(
                "Error creating booking", extra={"booking_id": booking.booking_id, "error": str(e)}
            )
            if claimed:
                await self._release_slot(booking)
            raise RemoteWriteError("Failed to create booking. Please try again.") from e

        self._cache.invalidate(BOOKINGS_NAMESPACE)
        self._logger.info("Booking created", extra={"booking_id": booking.booking_id})
        now = self._now()
        return replace(booking, id=doc_id, created_at=now, updated_at=now)

    async def list_for_user(self, email: str, use_cache: bool = True) -> list[Booking]:
        key = (email or "").strip().lower()
        if not key:
            raise ValidationError("email", "Email is required.")

        if use_cache:
            cached = self._cache.get(BOOKINGS_NAMESPACE)
            if isinstance(cached, dict) and key in cached:
                return [Booking.from_payload(payload) for payload in cached[key]]

        # A booking written while the read is in flight bumps the generation,
        # so the stale result is returned but never cached.
        generation = self._cache.generation(BOOKINGS_NAMESPACE)
        bookings = await self._coordinator.dedupe(
            f"{BOOKINGS_COLLECTION}:email:{key}:{generation}",
            lambda: self._fetch_for_email(key),
        )

        cached = self._cache.get(BOOKINGS_NAMESPACE)
        by_email = dict(cached) if isinstance(cached, dict) else {}
        by_email[key] = [booking.to_payload() for booking in bookings]
        self._cache.set(BOOKINGS_NAMESPACE, by_email, generation=generation)
        return bookings

    async def get_by_id(self, booking_doc_id: str) -> Booking | None:
        return await self._coordinator.dedupe(
            f"{BOOKINGS_COLLECTION}:id:{booking_doc_id}",
            lambda: self._fetch_one(booking_doc_id),
        )

    async def get_many(self, booking_doc_ids: list[str]) -> list[Booking]:
        """By-id lookups issued close together share one remote call."""
        return await self._coordinator.batch(BOOKINGS_COLLECTION, booking_doc_ids, self._fetch_many)

    async def update_status(self, booking_doc_id: str, new_status: BookingStatus | str) -> Booking:
        try:
            target = BookingStatus(new_status)
        except ValueError:
            raise ValidationError("status", f"Unknown booking status: {new_status}")

        if target is BookingStatus.cancelled:
            return await self.cancel(booking_doc_id)

        booking = await self._require(booking_doc_id)
        self._ensure_transition(booking, target)

        await self._write(booking_doc_id, {"status": target.value, "updatedAt": SERVER_TIMESTAMP})
        self._cache.invalidate(BOOKINGS_NAMESPACE)
        self._logger.info(
            "Booking status updated",
            extra={"booking_id": booking.booking_id, "reason": f"{booking.status.value}->{target.value}"},
        )
        return booking.with_status(target, updated_at=self._now())

    async def confirm(self, booking_doc_id: str) -> Booking:
        return await self.update_status(booking_doc_id, BookingStatus.confirmed)

    async def complete(self, booking_doc_id: str) -> Booking:
        return await self.update_status(booking_doc_id, BookingStatus.completed)

    async def cancel(self, booking_doc_id: str, reason: str = "") -> Booking:
        booking = await self._require(booking_doc_id)
        self._ensure_transition(booking, BookingStatus.cancelled)

        await self._write(
            booking_doc_id,
            {
                "status": BookingStatus.cancelled.value,
                "cancelReason": reason,
                "cancelledAt": SERVER_TIMESTAMP,
                "updatedAt": SERVER_TIMESTAMP,
            },
        )
        self._cache.invalidate(BOOKINGS_NAMESPACE)
        if self._enforce_unique_slots:
            await self._release_slot(booking)

        self._logger.info("Booking cancelled", extra={"booking_id": booking.booking_id, "reason": reason})
        now = self._now()
        return booking.with_status(
            BookingStatus.cancelled,
            cancel_reason=reason,
            cancelled_at=now,
            updated_at=now,
        )

    async def available_slots(self, day: str, location_id: str) -> list[str]:
        """
        Fixed daily slots minus those held by pending or confirmed bookings.

        Availability is advisory: a failed lookup returns every slot.
        """
        day = validate_iso_date(day)
        location_id = require("location_id", location_id, "Location")
        filters = [
            Filter("locationId", "==", location_id),
            # Range bounds also match dates stored with a time component.
            Filter("date", ">=", day),
            Filter("date", "<=", f"{day}T23:59:59.999999"),
            Filter("status", "in", [status.value for status in ACTIVE_STATUSES]),
        ]
        try:
            documents = await self._store.query(BOOKINGS_COLLECTION, filters)
        except Exception as e:
            self._logger.warning(
                "Slot lookup failed; offering all slots",
                extra={"collection": BOOKINGS_COLLECTION, "error": str(e)},
            )
            return list(DAILY_SLOTS)

        booked = {document.data.get("time") for document in documents}
        return [slot for slot in DAILY_SLOTS if slot not in booked]

    def _validated_booking(self, request: BookingRequest, identity: Identity | None) -> Booking:
        location_id = require("location_id", request.location_id, "Location")
        service_id = require("service_id", request.service_id, "Service")
        day = validate_iso_date(request.date)
        slot = validate_time(request.time, allowed=DAILY_SLOTS)
        customer_name = require("customer_name", request.customer_name, "Name")
        email = validate_email(request.email)
        phone = validate_phone(request.phone)

        return Booking(
            booking_id="",
            location_id=location_id,
            service_id=service_id,
            date=day,
            time=slot,
            customer_name=customer_name,
            email=email,
            phone=phone,
            user_id=identity.id if identity else request.user_id,
            status=BookingStatus.pending,
            location_name=request.location_name,
            location_address=request.location_address,
            service_name=request.service_name,
            service_duration=request.service_duration,
            service_price=request.service_price,
            notes=(request.notes or "").strip() or None,
        )

    async def _claim_slot(self, booking: Booking) -> None:
        key = slot_key(booking.location_id, booking.date, booking.time)
        try:
            await self._store.create_if_absent(
                SLOTS_COLLECTION,
                key,
                {
                    "bookingId": booking.booking_id,
                    "locationId": booking.location_id,
                    "date": booking.date,
                    "time": booking.time,
                    "claimedAt": SERVER_TIMESTAMP,
                },
            )
        except DocumentExistsError:
            self._logger.info("Slot already taken", extra={"collection": SLOTS_COLLECTION, "reason": key})
            raise SlotUnavailableError(booking.date, booking.time)
        except Exception as e:
            self._logger.exception("Error claiming slot", extra={"collection": SLOTS_COLLECTION, "error": str(e)})
            raise RemoteWriteError("Failed to create booking. Please try again.") from e

    async def _release_slot(self, booking: Booking) -> None:
        key = slot_key(booking.location_id, booking.date, booking.time)
        try:
            await self._store.delete(SLOTS_COLLECTION, key)
        except Exception as e:
            # A stale claim only blocks that one slot; an admin can clear it.
            self._logger.error(
                "Error releasing slot claim",
                extra={"collection": SLOTS_COLLECTION, "reason": key, "error": str(e)},
            )

    async def _fetch_for_email(self, email: str) -> list[Booking]:
        try:
            documents = await self._store.query(
                BOOKINGS_COLLECTION,
                filters=[Filter("email", "==", email)],
                order_by=[OrderBy("createdAt", descending=True)],
            )
        except Exception as e:
            self._logger.exception("Error fetching bookings", extra={"error": str(e)})
            raise RemoteReadError("Failed to load bookings. Please try again.") from e
        return [Booking.from_document(document.id, document.data) for document in documents]

    async def _fetch_one(self, booking_doc_id: str) -> Booking | None:
        try:
            document = await self._store.get_by_id(BOOKINGS_COLLECTION, booking_doc_id)
        except Exception as e:
            self._logger.exception("Error fetching booking", extra={"error": str(e)})
            raise RemoteReadError("Failed to load booking. Please try again.") from e
        if document is None:
            return None
        return Booking.from_document(document.id, document.data)

    async def _fetch_many(self, booking_doc_ids: list[str]) -> list[Booking]:
        try:
            documents = await self._store.get_many(BOOKINGS_COLLECTION, booking_doc_ids)
        except Exception as e:
            self._logger.exception("Error fetching bookings", extra={"error": str(e)})
            raise RemoteReadError("Failed to load bookings. Please try again.") from e
        return [Booking.from_document(document.id, document.data) for document in documents]

    async def _require(self, booking_doc_id: str) -> Booking:
        booking = await self.get_by_id(booking_doc_id)
        if booking is None:
            raise BookingNotFoundError(booking_doc_id)
        return booking

    async def _write(self, booking_doc_id: str, fields: dict) -> None:
        try:
            await self._store.update(BOOKINGS_COLLECTION, booking_doc_id, fields)
        except Exception as e:
            self._logger.exception("Error updating booking", extra={"error": str(e)})
            raise RemoteWriteError("Failed to update booking. Please try again.") from e

    @staticmethod
    def _ensure_transition(booking: Booking, target: BookingStatus) -> None:
        if not booking.status.can_transition_to(target):
            raise InvalidStatusTransitionError(booking.status.value, target.value)

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), timezone.utc)
