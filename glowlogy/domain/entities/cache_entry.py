from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    namespace: str
    payload: Any
    expires_at: float  # epoch seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def to_envelope(self) -> dict[str, Any]:
        """Durable-tier shape: {"data": payload, "expiry": epoch milliseconds}."""
        return {"data": self.payload, "expiry": self.expires_at * 1000}

    @staticmethod
    def from_envelope(namespace: str, envelope: Any) -> "CacheEntry":
        if not isinstance(envelope, dict) or "data" not in envelope or "expiry" not in envelope:
            raise ValueError("cache envelope must carry 'data' and 'expiry'")
        expiry = envelope["expiry"]
        if isinstance(expiry, bool) or not isinstance(expiry, (int, float)):
            raise ValueError("cache envelope expiry must be numeric")
        return CacheEntry(namespace=namespace, payload=envelope["data"], expires_at=expiry / 1000)
