#!/usr/bin/env python3
"""Smoke script for a running booking API (uvicorn glowlogy.main:app --port 8001)."""

import sys
from datetime import date, timedelta

import httpx


BASE_URL = "http://127.0.0.1:8001"


def banner(title: str) -> None:
    print("=" * 60)
    print(title)
    print("=" * 60)


def smoke_catalog() -> str | None:
    banner("Testing GET /api/v1/services and /api/v1/locations")
    try:
        services = httpx.get(f"{BASE_URL}/api/v1/services", params={"popular": True}, timeout=10.0)
        services.raise_for_status()
        for item in services.json()["items"]:
            print(f"  {item['name']} ({item['duration']} min, INR {item['price']})")

        locations = httpx.get(f"{BASE_URL}/api/v1/locations", timeout=10.0)
        locations.raise_for_status()
        items = locations.json()["items"]
        print(f"✅ {len(items)} locations")
        return items[0]["id"] if items else None
    except httpx.HTTPStatusError as e:
        print(f"❌ HTTP Error: {e.response.status_code}")
        print(f"Response: {e.response.text}")
        return None


def smoke_booking(location_id: str) -> None:
    banner("Testing POST /api/v1/bookings")
    day = (date.today() + timedelta(days=7)).isoformat()

    slots = httpx.get(
        f"{BASE_URL}/api/v1/bookings/slots",
        params={"date": day, "location_id": location_id},
        timeout=10.0,
    ).json()["slots"]
    if not slots:
        print(f"⚠️  No free slots on {day}")
        return

    payload = {
        "location_id": location_id,
        "service_id": "massage-swedish",
        "date": day,
        "time": slots[0],
        "customer_name": "Smoke Test",
        "email": "smoke@example.com",
        "phone": "9876543210",
    }
    response = httpx.post(f"{BASE_URL}/api/v1/bookings", json=payload, timeout=10.0)
    if response.status_code != 201:
        print(f"❌ HTTP Error: {response.status_code}")
        print(f"Response: {response.text}")
        return

    booking = response.json()
    print(f"✅ Booked {booking['booking_id']} at {booking['time']} (session {response.headers['X-Session-Id']})")

    cancelled = httpx.post(
        f"{BASE_URL}/api/v1/bookings/{booking['id']}/cancel",
        json={"reason": "smoke test"},
        timeout=10.0,
    )
    print(f"  cancel -> {cancelled.status_code} {cancelled.json().get('status')}")


def main():
    try:
        httpx.get(f"{BASE_URL}/health", timeout=5.0)
        print("✅ Server is running\n")
    except httpx.HTTPError:
        print("❌ Server is not running!")
        print("   Please start it with: uvicorn glowlogy.main:app --reload --port 8001")
        sys.exit(1)

    location_id = smoke_catalog()
    if location_id:
        smoke_booking(location_id)


if __name__ == "__main__":
    main()
