from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable

from glowlogy.application.exceptions import RemoteWriteError, ValidationError
from glowlogy.application.ports.document_store import SERVER_TIMESTAMP, DocumentStorePort
from glowlogy.application.services.rate_limiter import SlidingWindowRateLimiter
from glowlogy.application.utils.validation import require, validate_email, validate_phone
from glowlogy.domain.entities.inquiry import (
    CALLBACK_SERVICE_OPTIONS,
    PREFERRED_TIME_OPTIONS,
    CallbackRequest,
    ContactMessage,
    InquiryKind,
    InquiryRecord,
    MembershipInquiry,
    NewsletterSubscription,
    RequestContext,
    SubmissionReceipt,
)
from glowlogy.domain.entities.rate_limit import RateLimitPolicy


@dataclass(frozen=True)
class IntakePolicy:
    collection: str
    initial_status: str | None
    rate_limit: RateLimitPolicy
    success_message: str
    failure_message: str = "Failed to submit. Please try again."


DEFAULT_INTAKE_POLICIES: dict[InquiryKind, IntakePolicy] = {
    InquiryKind.contact: IntakePolicy(
        collection="contacts",
        initial_status="new",
        rate_limit=RateLimitPolicy(max_requests=3, window_seconds=60 * 60, scope="contact"),
        success_message="Thanks for reaching out! We will get back to you soon.",
    ),
    InquiryKind.membership: IntakePolicy(
        collection="membership_inquiries",
        initial_status="pending",
        rate_limit=RateLimitPolicy(max_requests=3, window_seconds=60 * 60, scope="membership"),
        success_message="We've received your membership inquiry. Our team will contact you within 24 hours.",
        failure_message="Failed to submit. Please try again or call us.",
    ),
    InquiryKind.callback: IntakePolicy(
        collection="callback_requests",
        initial_status="pending",
        rate_limit=RateLimitPolicy(max_requests=3, window_seconds=24 * 60 * 60, scope="callback"),
        success_message="We will call you back shortly!",
        failure_message="Failed to submit request. Please try again or call us directly.",
    ),
    InquiryKind.newsletter: IntakePolicy(
        collection="newsletter",
        initial_status=None,
        rate_limit=RateLimitPolicy(max_requests=3, window_seconds=60 * 60, scope="newsletter"),
        success_message="You're subscribed!",
        failure_message="Failed to subscribe. Please try again.",
    ),
}


class InquiryIntake:
    """Single-write intake for contact, membership, callback and newsletter forms."""

    def __init__(
        self,
        store: DocumentStorePort,
        rate_limiter: SlidingWindowRateLimiter,
        policies: dict[InquiryKind, IntakePolicy] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._rate_limiter = rate_limiter
        self._policies = {**DEFAULT_INTAKE_POLICIES, **(policies or {})}
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def policy_for(self, kind: InquiryKind) -> IntakePolicy:
        return self._policies[kind]

    async def submit(self, record: InquiryRecord, context: RequestContext | None = None) -> SubmissionReceipt:
        record, identity = _validated(record)
        policy = self._policies[record.kind]
        self._rate_limiter.enforce(identity, policy.rate_limit)

        document = record.to_document()
        if policy.initial_status is not None:
            document["status"] = policy.initial_status
        if record.kind is InquiryKind.newsletter:
            document["subscribedAt"] = SERVER_TIMESTAMP
        else:
            document["createdAt"] = SERVER_TIMESTAMP
        if record.kind is InquiryKind.callback:
            document["updatedAt"] = SERVER_TIMESTAMP
            document["metadata"] = self._metadata(context or RequestContext())

        try:
            doc_id = await self._store.insert(policy.collection, document)
        except Exception as e:
            self._logger.exception(
                "Error submitting inquiry",
                extra={"kind": record.kind.value, "collection": policy.collection, "error": str(e)},
            )
            raise RemoteWriteError(policy.failure_message) from e

        self._logger.info("Inquiry submitted", extra={"kind": record.kind.value, "collection": policy.collection})
        return SubmissionReceipt(id=doc_id, kind=record.kind, message=policy.success_message)

    async def submit_contact(
        self,
        name: str,
        email: str,
        message: str,
        phone: str | None = None,
        subject: str | None = None,
    ) -> SubmissionReceipt:
        return await self.submit(ContactMessage(name=name, email=email, message=message, phone=phone, subject=subject))

    async def submit_membership(
        self,
        plan_name: str,
        customer_name: str,
        email: str,
        phone: str,
        plan_price: int | None = None,
        user_id: str | None = None,
    ) -> SubmissionReceipt:
        return await self.submit(
            MembershipInquiry(
                plan_name=plan_name,
                customer_name=customer_name,
                email=email,
                phone=phone,
                plan_price=plan_price,
                user_id=user_id,
            )
        )

    async def submit_callback(
        self,
        name: str,
        phone: str,
        preferred_time: str | None = None,
        service: str | None = None,
        message: str | None = None,
        context: RequestContext | None = None,
    ) -> SubmissionReceipt:
        record = CallbackRequest(
            name=name,
            phone=phone,
            preferred_time=preferred_time or "anytime",
            service=service or "general",
            message=message or "",
        )
        return await self.submit(record, context)

    async def subscribe_newsletter(self, email: str) -> SubmissionReceipt:
        return await self.submit(NewsletterSubscription(email=email))

    def _metadata(self, context: RequestContext) -> dict[str, str]:
        return {
            "userAgent": context.user_agent,
            "referrer": context.referrer,
            "timestamp": datetime.fromtimestamp(self._clock(), timezone.utc).isoformat(),
        }


def preferred_time_options() -> list[dict[str, str]]:
    return [{"value": value, "label": label} for value, label in PREFERRED_TIME_OPTIONS]


def service_options() -> list[dict[str, str]]:
    return [{"value": value, "label": label} for value, label in CALLBACK_SERVICE_OPTIONS]


def _validated(record: InquiryRecord) -> tuple[InquiryRecord, str]:
    """Returns the cleaned record and the identity its rate limit is keyed by."""
    if isinstance(record, ContactMessage):
        email = validate_email(record.email)
        record = replace(
            record,
            name=require("name", record.name, "Name"),
            email=email,
            message=require("message", record.message, "Message"),
            phone=validate_phone(record.phone) if (record.phone or "").strip() else None,
        )
        return record, email

    if isinstance(record, MembershipInquiry):
        email = validate_email(record.email)
        record = replace(
            record,
            plan_name=require("plan_name", record.plan_name, "Plan"),
            customer_name=require("customer_name", record.customer_name, "Name"),
            email=email,
            phone=validate_phone(record.phone),
        )
        return record, email

    if isinstance(record, CallbackRequest):
        phone = validate_phone(record.phone)
        if record.preferred_time not in dict(PREFERRED_TIME_OPTIONS):
            raise ValidationError("preferred_time", "Please choose a preferred callback time.")
        record = replace(
            record,
            name=require("name", record.name, "Name"),
            phone=phone,
            message=(record.message or "").strip(),
        )
        return record, phone

    if isinstance(record, NewsletterSubscription):
        email = validate_email(record.email)
        return replace(record, email=email), email

    raise TypeError(f"Unsupported inquiry record: {type(record).__name__}")
