from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitPolicy:
    max_requests: int
    window_seconds: float
    scope: str = "default"


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: float | None = None  # seconds, only set when not allowed
