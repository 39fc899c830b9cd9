from functools import lru_cache
import logging

from glowlogy.application.ports.document_store import DocumentStorePort
from glowlogy.application.ports.identity import IdentityPort
from glowlogy.application.ports.key_value_store import KeyValueStorePort
from glowlogy.application.services.rate_limiter import SlidingWindowRateLimiter
from glowlogy.application.services.request_coordinator import RequestCoordinator
from glowlogy.application.services.tiered_cache import TieredCache
from glowlogy.application.use_cases.booking import BookingLifecycle
from glowlogy.application.use_cases.catalog import CatalogReader
from glowlogy.application.use_cases.inquiry_intake import DEFAULT_INTAKE_POLICIES, IntakePolicy, InquiryIntake
from glowlogy.core.config import settings
from glowlogy.domain.entities.inquiry import InquiryKind
from glowlogy.domain.entities.rate_limit import RateLimitPolicy
from glowlogy.infrastructure.identity.static_identity import StaticIdentitySource
from glowlogy.infrastructure.knowledge.catalog_data import DEFAULT_LOCATIONS, DEFAULT_SERVICES
from glowlogy.infrastructure.store.file_kv_store import FileKeyValueStore
from glowlogy.infrastructure.store.firestore_store import FirestoreDocumentStore
from glowlogy.infrastructure.store.memory_document_store import MemoryDocumentStore
from glowlogy.infrastructure.store.memory_kv_store import MemoryKeyValueStore


logger = logging.getLogger(__name__)


@lru_cache
def get_document_store() -> DocumentStorePort:
    if settings.STORE_PROVIDER.lower() == "firestore":
        logger.info("Using Firestore document store", extra={"source": settings.FIRESTORE_PROJECT_ID})
        return FirestoreDocumentStore()
    if settings.ENV.lower() not in {"dev", "local", "test"}:
        logger.warning("Using in-memory document store outside dev", extra={"source": settings.ENV})
    return MemoryDocumentStore()


@lru_cache
def get_key_value_store() -> KeyValueStorePort:
    if settings.CACHE_PROVIDER.lower() == "file":
        return FileKeyValueStore(data_dir=settings.CACHE_DIR)
    return MemoryKeyValueStore()


@lru_cache
def get_cache() -> TieredCache:
    return TieredCache(
        durable=get_key_value_store(),
        ttls=settings.cache_ttls(),
        key_prefix=settings.CACHE_KEY_PREFIX,
    )


@lru_cache
def get_coordinator() -> RequestCoordinator:
    return RequestCoordinator(batch_delay=settings.BATCH_DELAY_MS / 1000)


@lru_cache
def get_rate_limiter() -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter()


@lru_cache
def get_identity_source() -> IdentityPort:
    return StaticIdentitySource()


@lru_cache
def get_booking_lifecycle() -> BookingLifecycle:
    return BookingLifecycle(
        store=get_document_store(),
        cache=get_cache(),
        rate_limiter=get_rate_limiter(),
        coordinator=get_coordinator(),
        rate_limit=RateLimitPolicy(
            max_requests=settings.BOOKING_RATE_LIMIT,
            window_seconds=settings.BOOKING_RATE_WINDOW_SECONDS,
            scope="booking",
        ),
        enforce_unique_slots=settings.ENFORCE_UNIQUE_SLOTS,
    )


def _intake_policies() -> dict[InquiryKind, IntakePolicy]:
    limits = {
        InquiryKind.contact: (settings.CONTACT_RATE_LIMIT, settings.CONTACT_RATE_WINDOW_SECONDS),
        InquiryKind.membership: (settings.MEMBERSHIP_RATE_LIMIT, settings.MEMBERSHIP_RATE_WINDOW_SECONDS),
        InquiryKind.callback: (settings.CALLBACK_RATE_LIMIT, settings.CALLBACK_RATE_WINDOW_SECONDS),
        InquiryKind.newsletter: (settings.NEWSLETTER_RATE_LIMIT, settings.NEWSLETTER_RATE_WINDOW_SECONDS),
    }
    policies = {}
    for kind, (max_requests, window_seconds) in limits.items():
        base = DEFAULT_INTAKE_POLICIES[kind]
        policies[kind] = IntakePolicy(
            collection=base.collection,
            initial_status=base.initial_status,
            rate_limit=RateLimitPolicy(max_requests=max_requests, window_seconds=window_seconds, scope=kind.value),
            success_message=base.success_message,
            failure_message=base.failure_message,
        )
    return policies


@lru_cache
def get_inquiry_intake() -> InquiryIntake:
    return InquiryIntake(
        store=get_document_store(),
        rate_limiter=get_rate_limiter(),
        policies=_intake_policies(),
    )


@lru_cache
def get_catalog_reader() -> CatalogReader:
    return CatalogReader(
        store=get_document_store(),
        cache=get_cache(),
        coordinator=get_coordinator(),
        default_services=DEFAULT_SERVICES,
        default_locations=DEFAULT_LOCATIONS,
    )
