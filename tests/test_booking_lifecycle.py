"""
Tests for booking creation, listing, status changes and slot availability.
"""

from __future__ import annotations

import asyncio
import re

import pytest
from conftest import CountingDocumentStore, FakeClock

from glowlogy.application.exceptions import (
    BookingNotFoundError,
    InvalidStatusTransitionError,
    RateLimitError,
    RemoteReadError,
    RemoteWriteError,
    SlotUnavailableError,
    ValidationError,
)
from glowlogy.application.services.rate_limiter import SlidingWindowRateLimiter
from glowlogy.application.services.request_coordinator import RequestCoordinator
from glowlogy.application.services.tiered_cache import TieredCache
from glowlogy.application.use_cases.booking import (
    BOOKINGS_COLLECTION,
    DAILY_SLOTS,
    SLOTS_COLLECTION,
    BookingLifecycle,
)
from glowlogy.application.utils.booking_id import BookingIdGenerator, to_base36
from glowlogy.domain.entities.booking import BookingRequest, BookingStatus
from glowlogy.domain.entities.identity import Identity
from glowlogy.infrastructure.store.memory_kv_store import MemoryKeyValueStore


DAY = "2026-11-02"


def make_lifecycle(clock: FakeClock | None = None, store: CountingDocumentStore | None = None, **kwargs):
    clock = clock or FakeClock()
    store = store or CountingDocumentStore(clock=clock.as_datetime)
    cache = TieredCache(durable=MemoryKeyValueStore(), ttls={"bookings": 60}, clock=clock)
    lifecycle = BookingLifecycle(
        store=store,
        cache=cache,
        rate_limiter=SlidingWindowRateLimiter(clock=clock),
        coordinator=RequestCoordinator(batch_delay=0.005),
        clock=clock,
        **kwargs,
    )
    return lifecycle, store, cache


def make_request(**overrides) -> BookingRequest:
    fields = dict(
        location_id="jammu-gandhi-nagar",
        service_id="massage-swedish",
        date=DAY,
        time="10:00",
        customer_name="Asha Verma",
        email="Asha@Example.com",
        phone="+91 98765 43210",
        service_name="Swedish Massage",
    )
    fields.update(overrides)
    return BookingRequest(**fields)


def test_create_persists_pending_booking():
    lifecycle, store, _ = make_lifecycle()

    booking = asyncio.run(lifecycle.create(make_request(), session_id="session-1"))

    assert booking.id
    assert booking.status is BookingStatus.pending
    assert booking.email == "asha@example.com"
    assert booking.phone == "+919876543210"
    assert booking.user_id is None
    assert re.match(r"^GLW-[0-9A-Z]+-[0-9A-Z]{4}$", booking.booking_id)

    stored = asyncio.run(store.get_by_id(BOOKINGS_COLLECTION, booking.id))
    assert stored.data["status"] == "pending"
    assert stored.data["bookingId"] == booking.booking_id
    assert stored.data["createdAt"] is not None


def test_create_links_signed_in_identity():
    lifecycle, _, _ = make_lifecycle()

    booking = asyncio.run(
        lifecycle.create(make_request(), session_id="s", identity=Identity(id="uid-1", email="asha@example.com"))
    )

    assert booking.user_id == "uid-1"
    assert not booking.is_guest


def test_create_requires_session_id():
    lifecycle, _, _ = make_lifecycle()

    with pytest.raises(ValueError):
        asyncio.run(lifecycle.create(make_request(), session_id=""))


@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"phone": "12345"}, "phone"),
        ({"email": "not-an-email"}, "email"),
        ({"customer_name": "  "}, "customer_name"),
        ({"time": "13:00"}, "time"),
        ({"date": "2026-13-40"}, "date"),
        ({"date": "2026-11-02garbage"}, "date"),
        ({"location_id": ""}, "location_id"),
    ],
)
def test_create_rejects_invalid_input_without_writing(overrides, field):
    lifecycle, store, _ = make_lifecycle()

    with pytest.raises(ValidationError) as exc:
        asyncio.run(lifecycle.create(make_request(**overrides), session_id="s"))

    assert exc.value.field == field
    assert store.calls == {}


def test_invalid_attempts_do_not_use_up_rate_limit():
    lifecycle, _, _ = make_lifecycle()
    for _ in range(10):
        with pytest.raises(ValidationError):
            asyncio.run(lifecycle.create(make_request(phone="1"), session_id="s"))

    asyncio.run(lifecycle.create(make_request(), session_id="s"))


def test_sixth_booking_in_an_hour_is_rate_limited():
    clock = FakeClock()
    lifecycle, store, _ = make_lifecycle(clock=clock)
    for slot in DAILY_SLOTS[:5]:
        asyncio.run(lifecycle.create(make_request(time=slot), session_id="session-1"))

    with pytest.raises(RateLimitError):
        asyncio.run(lifecycle.create(make_request(time=DAILY_SLOTS[5]), session_id="session-1"))
    assert store.calls["insert"] == 5

    # Another session is unaffected, and the window slides.
    asyncio.run(lifecycle.create(make_request(time=DAILY_SLOTS[6]), session_id="session-2"))
    clock.advance(3600)
    asyncio.run(lifecycle.create(make_request(time=DAILY_SLOTS[7]), session_id="session-1"))


def test_same_slot_cannot_be_booked_twice():
    lifecycle, store, _ = make_lifecycle()
    asyncio.run(lifecycle.create(make_request(), session_id="a"))

    with pytest.raises(SlotUnavailableError):
        asyncio.run(lifecycle.create(make_request(email="other@example.com"), session_id="b"))

    assert store.calls["insert"] == 1


def test_concurrent_bookings_for_one_slot_admit_exactly_one():
    lifecycle, store, _ = make_lifecycle()

    async def scenario():
        return await asyncio.gather(
            *(lifecycle.create(make_request(), session_id=f"s{i}") for i in range(3)),
            return_exceptions=True,
        )

    results = asyncio.run(scenario())

    assert sum(not isinstance(r, Exception) for r in results) == 1
    assert sum(isinstance(r, SlotUnavailableError) for r in results) == 2


def test_slot_uniqueness_can_be_disabled():
    lifecycle, store, _ = make_lifecycle(enforce_unique_slots=False)
    asyncio.run(lifecycle.create(make_request(), session_id="a"))
    asyncio.run(lifecycle.create(make_request(), session_id="b"))

    assert store.calls["insert"] == 2
    assert "create_if_absent" not in store.calls


def test_failed_insert_releases_slot_claim():
    lifecycle, store, _ = make_lifecycle()
    store.fail_on.add("insert")

    with pytest.raises(RemoteWriteError):
        asyncio.run(lifecycle.create(make_request(), session_id="a"))

    assert asyncio.run(store.query(SLOTS_COLLECTION)) == []
    store.fail_on.clear()
    asyncio.run(lifecycle.create(make_request(), session_id="a"))


def test_list_for_user_is_cached_and_invalidated_by_create():
    clock = FakeClock()
    lifecycle, store, cache = make_lifecycle(clock=clock)
    asyncio.run(lifecycle.create(make_request(time="09:00"), session_id="s"))
    clock.advance(1)
    asyncio.run(lifecycle.create(make_request(time="09:30"), session_id="s"))

    first = asyncio.run(lifecycle.list_for_user("ASHA@example.com"))
    second = asyncio.run(lifecycle.list_for_user("asha@example.com"))

    assert [b.time for b in first] == ["09:30", "09:00"]  # newest first
    assert [b.booking_id for b in second] == [b.booking_id for b in first]
    assert store.calls["query"] == 1

    asyncio.run(lifecycle.create(make_request(time="10:00"), session_id="s"))
    assert cache.get("bookings") is None

    third = asyncio.run(lifecycle.list_for_user("asha@example.com"))
    assert len(third) == 3
    assert store.calls["query"] == 2


class PausingDocumentStore(CountingDocumentStore):
    """Takes its query snapshot, then holds the result until released."""

    def __init__(self, clock=None) -> None:
        super().__init__(clock=clock)
        self.snapshot_taken: asyncio.Event | None = None
        self.release: asyncio.Event | None = None

    async def query(self, collection, filters=(), order_by=(), limit=None):
        documents = await super().query(collection, filters, order_by, limit)
        if self.release is not None:
            release, self.release = self.release, None
            self.snapshot_taken.set()
            await release.wait()
        return documents


def test_booking_created_during_listing_is_not_hidden_by_cache():
    clock = FakeClock()
    store = PausingDocumentStore(clock=clock.as_datetime)
    lifecycle, store, cache = make_lifecycle(clock=clock, store=store)

    async def scenario():
        store.snapshot_taken = asyncio.Event()
        store.release = asyncio.Event()
        release = store.release
        listing = asyncio.create_task(lifecycle.list_for_user("asha@example.com"))
        await store.snapshot_taken.wait()

        await lifecycle.create(make_request(), session_id="s")
        release.set()
        stale = await listing

        fresh = await lifecycle.list_for_user("asha@example.com")
        return stale, fresh

    stale, fresh = asyncio.run(scenario())

    assert stale == []
    assert len(fresh) == 1
    assert store.calls["query"] == 2


def test_list_for_user_bypasses_cache_on_request():
    lifecycle, store, _ = make_lifecycle()
    asyncio.run(lifecycle.list_for_user("a@b.co"))
    asyncio.run(lifecycle.list_for_user("a@b.co", use_cache=False))

    assert store.calls["query"] == 2


def test_list_for_user_cache_is_per_email():
    lifecycle, store, _ = make_lifecycle()
    asyncio.run(lifecycle.create(make_request(), session_id="s"))

    mine = asyncio.run(lifecycle.list_for_user("asha@example.com"))
    theirs = asyncio.run(lifecycle.list_for_user("someone@else.com"))

    assert len(mine) == 1
    assert theirs == []


def test_list_for_user_surfaces_remote_failure():
    lifecycle, store, _ = make_lifecycle()
    store.fail_on.add("query")

    with pytest.raises(RemoteReadError):
        asyncio.run(lifecycle.list_for_user("a@b.co"))


def test_status_lifecycle_pending_confirmed_completed():
    lifecycle, store, _ = make_lifecycle()
    booking = asyncio.run(lifecycle.create(make_request(), session_id="s"))

    confirmed = asyncio.run(lifecycle.confirm(booking.id))
    assert confirmed.status is BookingStatus.confirmed

    completed = asyncio.run(lifecycle.complete(booking.id))
    assert completed.status is BookingStatus.completed
    stored = asyncio.run(store.get_by_id(BOOKINGS_COLLECTION, booking.id))
    assert stored.data["status"] == "completed"

    with pytest.raises(InvalidStatusTransitionError):
        asyncio.run(lifecycle.cancel(booking.id))


def test_pending_cannot_skip_to_completed():
    lifecycle, _, _ = make_lifecycle()
    booking = asyncio.run(lifecycle.create(make_request(), session_id="s"))

    with pytest.raises(InvalidStatusTransitionError):
        asyncio.run(lifecycle.complete(booking.id))


def test_cancel_records_reason_and_frees_slot():
    lifecycle, store, _ = make_lifecycle()
    booking = asyncio.run(lifecycle.create(make_request(), session_id="s"))

    cancelled = asyncio.run(lifecycle.cancel(booking.id, reason="Schedule conflict"))

    assert cancelled.status is BookingStatus.cancelled
    assert cancelled.cancel_reason == "Schedule conflict"
    stored = asyncio.run(store.get_by_id(BOOKINGS_COLLECTION, booking.id))
    assert stored.data["cancelReason"] == "Schedule conflict"
    assert stored.data["cancelledAt"] is not None

    with pytest.raises(InvalidStatusTransitionError):
        asyncio.run(lifecycle.cancel(booking.id))

    asyncio.run(lifecycle.create(make_request(), session_id="s2"))


def test_update_status_routes_cancel_and_rejects_unknown():
    lifecycle, _, _ = make_lifecycle()
    booking = asyncio.run(lifecycle.create(make_request(), session_id="s"))

    with pytest.raises(ValidationError):
        asyncio.run(lifecycle.update_status(booking.id, "archived"))

    cancelled = asyncio.run(lifecycle.update_status(booking.id, "cancelled"))
    assert cancelled.status is BookingStatus.cancelled


def test_missing_booking():
    lifecycle, _, _ = make_lifecycle()

    assert asyncio.run(lifecycle.get_by_id("nope")) is None
    with pytest.raises(BookingNotFoundError):
        asyncio.run(lifecycle.cancel("nope"))


def test_get_many_batches_concurrent_lookups():
    lifecycle, store, _ = make_lifecycle()
    a = asyncio.run(lifecycle.create(make_request(time="09:00"), session_id="s"))
    b = asyncio.run(lifecycle.create(make_request(time="09:30"), session_id="s"))

    async def scenario():
        return await asyncio.gather(lifecycle.get_many([a.id]), lifecycle.get_many([b.id, "missing"]))

    first, second = asyncio.run(scenario())

    assert [x.id for x in first] == [a.id]
    assert [x.id for x in second] == [b.id]
    assert store.calls["get_many"] == 1


def test_available_slots_excludes_active_bookings_only():
    lifecycle, store, _ = make_lifecycle()
    asyncio.run(lifecycle.create(make_request(time="10:00"), session_id="s"))
    cancelled = asyncio.run(lifecycle.create(make_request(time="11:00"), session_id="s"))
    asyncio.run(lifecycle.cancel(cancelled.id))
    asyncio.run(lifecycle.create(make_request(time="12:00", location_id="other"), session_id="s"))
    asyncio.run(lifecycle.create(make_request(time="14:00", date="2026-11-03"), session_id="s"))

    slots = asyncio.run(lifecycle.available_slots(DAY, "jammu-gandhi-nagar"))

    assert "10:00" not in slots
    assert "11:00" in slots
    assert "12:00" in slots
    assert "14:00" in slots
    assert len(slots) == len(DAILY_SLOTS) - 1


def test_available_slots_fail_open():
    lifecycle, store, _ = make_lifecycle()
    store.fail_on.add("query")

    assert asyncio.run(lifecycle.available_slots(DAY, "loc")) == list(DAILY_SLOTS)


def test_ten_thousand_ids_in_one_millisecond_are_unique():
    clock = FakeClock()
    generate = BookingIdGenerator(clock=clock)

    ids = {generate() for _ in range(10_000)}

    assert len(ids) == 10_000


def test_booking_id_timestamp_is_base36_millis():
    clock = FakeClock(start=1_700_000_000.0)

    booking_id = BookingIdGenerator(clock=clock)()

    assert booking_id.split("-")[1] == to_base36(1_700_000_000_000)
    assert to_base36(35) == "Z"
    assert to_base36(36) == "10"


def test_booking_flow_end_to_end():
    """A new booking is pending, well-formed, and visible through a fresh remote read."""
    lifecycle, store, cache = make_lifecycle()
    assert asyncio.run(lifecycle.list_for_user("jane@x.com")) == []
    assert cache.get("bookings") == {"jane@x.com": []}

    booking = asyncio.run(
        lifecycle.create(
            make_request(
                location_id="L",
                service_id="S",
                date="2025-06-01",
                time="10:30",
                customer_name="Jane",
                email="jane@x.com",
                phone="9876543210",
            ),
            session_id="session-jane",
        )
    )

    assert booking.status is BookingStatus.pending
    assert re.fullmatch(r"GLW-[A-Z0-9]+-[A-Z0-9]{4}", booking.booking_id)
    assert cache.get("bookings") is None

    listed = asyncio.run(lifecycle.list_for_user("jane@x.com", use_cache=True))
    assert store.calls["query"] == 2
    assert [b.booking_id for b in listed] == [booking.booking_id]


def test_confirmed_booking_blocks_its_slot():
    lifecycle, _, _ = make_lifecycle()
    assert asyncio.run(lifecycle.available_slots(DAY, "L")) == list(DAILY_SLOTS)

    booking = asyncio.run(lifecycle.create(make_request(location_id="L", time="10:30"), session_id="s"))
    asyncio.run(lifecycle.confirm(booking.id))

    slots = asyncio.run(lifecycle.available_slots(DAY, "L"))
    assert slots == [slot for slot in DAILY_SLOTS if slot != "10:30"]
