from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar


class InquiryKind(str, Enum):
    contact = "contact"
    membership = "membership"
    callback = "callback"
    newsletter = "newsletter"


PREFERRED_TIME_OPTIONS: tuple[tuple[str, str], ...] = (
    ("anytime", "Anytime"),
    ("morning", "Morning (9 AM - 12 PM)"),
    ("afternoon", "Afternoon (12 PM - 4 PM)"),
    ("evening", "Evening (4 PM - 8 PM)"),
)

CALLBACK_SERVICE_OPTIONS: tuple[tuple[str, str], ...] = (
    ("general", "General Inquiry"),
    ("massage", "Massage Therapy"),
    ("facial", "Facial Treatments"),
    ("body", "Body Treatments"),
    ("membership", "Membership Plans"),
    ("corporate", "Corporate Wellness"),
    ("booking", "Book Appointment"),
)


@dataclass(frozen=True)
class RequestContext:
    user_agent: str = ""
    referrer: str = ""


@dataclass(frozen=True)
class InquiryRecord:
    kind: ClassVar[InquiryKind]

    def to_document(self) -> dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class ContactMessage(InquiryRecord):
    kind: ClassVar[InquiryKind] = InquiryKind.contact

    name: str
    email: str
    message: str
    phone: str | None = None
    subject: str | None = None

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "name": self.name,
            "email": self.email,
            "message": self.message,
        }
        if self.phone:
            document["phone"] = self.phone
        if self.subject:
            document["subject"] = self.subject
        return document


@dataclass(frozen=True)
class MembershipInquiry(InquiryRecord):
    kind: ClassVar[InquiryKind] = InquiryKind.membership

    plan_name: str
    customer_name: str
    email: str
    phone: str
    plan_price: int | None = None
    user_id: str | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "planName": self.plan_name,
            "planPrice": self.plan_price,
            "customerName": self.customer_name,
            "email": self.email,
            "phone": self.phone,
            "userId": self.user_id,
        }


@dataclass(frozen=True)
class CallbackRequest(InquiryRecord):
    kind: ClassVar[InquiryKind] = InquiryKind.callback

    name: str
    phone: str
    preferred_time: str = "anytime"
    service: str = "general"
    message: str = ""
    priority: str = "normal"  # low, normal, high
    source: str = "website_hero"

    def to_document(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "phone": self.phone,
            "preferredTime": self.preferred_time,
            "service": self.service,
            "message": self.message,
            "priority": self.priority,
            "source": self.source,
        }


@dataclass(frozen=True)
class NewsletterSubscription(InquiryRecord):
    kind: ClassVar[InquiryKind] = InquiryKind.newsletter

    email: str
    tags: tuple[str, ...] = field(default_factory=tuple)

    def to_document(self) -> dict[str, Any]:
        return {"email": self.email, "active": True, "tags": list(self.tags)}


@dataclass(frozen=True)
class SubmissionReceipt:
    id: str
    kind: InquiryKind
    message: str
