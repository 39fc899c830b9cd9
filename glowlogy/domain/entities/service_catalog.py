from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


SERVICE_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("all", "All Services"),
    ("massage", "Massage"),
    ("facials", "Facials"),
    ("body", "Body Treatments"),
    ("hair", "Hair & Scalp"),
    ("nails", "Nail Services"),
    ("wellness", "Wellness"),
)


@dataclass(frozen=True)
class SpaService:
    id: str
    category: str
    name: str
    description: str = ""
    duration: int = 60  # minutes
    price: int = 0  # INR
    popular: bool = False
    active: bool = True

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_document(doc_id: str, data: dict[str, Any]) -> "SpaService":
        return SpaService(
            id=doc_id,
            category=str(data.get("category") or ""),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            duration=int(data.get("duration") or 60),
            price=int(data.get("price") or 0),
            popular=bool(data.get("popular", False)),
            active=bool(data.get("active", True)),
        )


@dataclass(frozen=True)
class SpaLocation:
    id: str
    name: str
    city: str
    address: str
    phone: str = ""
    email: str = ""
    hours: str = ""
    featured: bool = False
    active: bool = True
    amenities: tuple[str, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["amenities"] = list(self.amenities)
        return payload

    @staticmethod
    def from_document(doc_id: str, data: dict[str, Any]) -> "SpaLocation":
        return SpaLocation(
            id=doc_id,
            name=str(data.get("name") or ""),
            city=str(data.get("city") or ""),
            address=str(data.get("address") or ""),
            phone=str(data.get("phone") or ""),
            email=str(data.get("email") or ""),
            hours=str(data.get("hours") or ""),
            featured=bool(data.get("featured", False)),
            active=bool(data.get("active", True)),
            amenities=tuple(data.get("amenities") or ()),
        )
