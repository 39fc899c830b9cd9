from __future__ import annotations

from glowlogy.domain.entities.service_catalog import SpaLocation, SpaService


# Served when the remote catalog is empty or unreachable.
DEFAULT_SERVICES: tuple[SpaService, ...] = (
    SpaService(
        id="massage-swedish",
        category="massage",
        name="Swedish Massage",
        description="Classic relaxation massage with gentle, flowing strokes to ease tension.",
        duration=60,
        price=2500,
        popular=True,
    ),
    SpaService(
        id="massage-deep-tissue",
        category="massage",
        name="Deep Tissue Massage",
        description="Intensive therapeutic massage targeting deep muscle layers.",
        duration=75,
        price=3500,
        popular=True,
    ),
    SpaService(
        id="massage-hot-stone",
        category="massage",
        name="Hot Stone Therapy",
        description="Heated basalt stones combined with massage for deep relaxation.",
        duration=90,
        price=4000,
    ),
    SpaService(
        id="massage-aromatherapy",
        category="massage",
        name="Aromatherapy Massage",
        description="Essential oil infused massage for body and mind.",
        duration=60,
        price=3000,
    ),
    SpaService(
        id="facial-signature",
        category="facials",
        name="Signature Glow Facial",
        description="Cleansing, exfoliation and hydration for radiant skin.",
        duration=60,
        price=3000,
        popular=True,
    ),
    SpaService(
        id="facial-anti-aging",
        category="facials",
        name="Anti-Aging Facial",
        description="Peptide and retinol treatment to reduce fine lines.",
        duration=75,
        price=4500,
    ),
    SpaService(
        id="body-scrub",
        category="body",
        name="Body Scrub & Wrap",
        description="Full body exfoliation followed by a nourishing wrap.",
        duration=90,
        price=3500,
    ),
    SpaService(
        id="body-detox",
        category="body",
        name="Detox Treatment",
        description="Complete body detoxification therapy.",
        duration=120,
        price=5000,
    ),
    SpaService(
        id="hair-scalp",
        category="hair",
        name="Scalp Treatment",
        description="Deep nourishing treatment for scalp health.",
        duration=45,
        price=1500,
    ),
    SpaService(
        id="nails-manicure",
        category="nails",
        name="Luxury Manicure",
        description="Nail care with massage, shaping and polish.",
        duration=60,
        price=1200,
    ),
    SpaService(
        id="nails-pedicure",
        category="nails",
        name="Spa Pedicure",
        description="Foot soak, scrub, massage and polish.",
        duration=75,
        price=1500,
    ),
    SpaService(
        id="wellness-package",
        category="wellness",
        name="Wellness Day Package",
        description="Massage, facial and body treatment in one day.",
        duration=240,
        price=8000,
        popular=True,
    ),
)

DEFAULT_LOCATIONS: tuple[SpaLocation, ...] = (
    SpaLocation(
        id="jammu-gandhi-nagar",
        name="Gandhi Nagar",
        city="Jammu",
        address="Main Road, Gandhi Nagar, Jammu - 180004",
        phone="+91 98765 43210",
        hours="9:00 AM - 9:00 PM",
        featured=True,
        amenities=("Parking", "WiFi", "Locker", "Shower"),
    ),
    SpaLocation(
        id="jammu-channi-himmat",
        name="Channi Himmat",
        city="Jammu",
        address="Near Channi Himmat Crossing, Jammu - 180015",
        phone="+91 98765 43211",
        hours="9:00 AM - 9:00 PM",
        featured=True,
        amenities=("Parking", "WiFi", "Locker"),
    ),
    SpaLocation(
        id="jammu-kachi-chawni",
        name="Kachi Chawni",
        city="Jammu",
        address="Kachi Chawni Main Market, Jammu - 180001",
        phone="+91 98765 43212",
        hours="9:00 AM - 9:00 PM",
        amenities=("WiFi", "Locker"),
    ),
)
