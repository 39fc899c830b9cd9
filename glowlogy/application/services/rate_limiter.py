"""
Sliding-window rate limiting for public submission flows.

Windows live in process memory, keyed by scope and normalized identity. This
only spares users obviously futile submissions; it is not an abuse barrier.
"""

from __future__ import annotations

import logging
import re
import time
from collections import deque
from typing import Callable

from glowlogy.application.exceptions import RateLimitError
from glowlogy.domain.entities.rate_limit import RateLimitDecision, RateLimitPolicy


logger = logging.getLogger(__name__)

_PHONE_LIKE = re.compile(r"^[+\d\s().-]+$")


def normalize_identity(identity: str) -> str:
    value = (identity or "").strip()
    if "@" in value:
        return value.lower()
    if _PHONE_LIKE.match(value) and sum(ch.isdigit() for ch in value) >= 7:
        return re.sub(r"[^0-9]", "", value)
    return value


class SlidingWindowRateLimiter:
    def __init__(self, clock: Callable[[], float] = time.time, sweep_interval: int = 256) -> None:
        self._clock = clock
        self._windows: dict[tuple[str, str], deque[float]] = {}
        self._window_seconds: dict[str, float] = {}
        self._sweep_interval = sweep_interval
        self._checks = 0

    def active_windows(self) -> int:
        return len(self._windows)

    def check_and_record(
        self,
        identity: str,
        max_requests: int,
        window_seconds: float,
        scope: str = "default",
    ) -> RateLimitDecision:
        """
        Check if an action is allowed and record it.

        Args:
            identity: Session id, phone number or email
            max_requests: Allowed actions per window
            window_seconds: Window length
            scope: Keeps separate flows from sharing a window

        Returns:
            RateLimitDecision; retry_after is set when not allowed
        """
        now = self._clock()
        self._window_seconds[scope] = window_seconds
        self._checks += 1
        if self._sweep_interval and self._checks % self._sweep_interval == 0:
            self.sweep()

        key = (scope, normalize_identity(identity))
        window = self._windows.get(key)
        if window is None:
            window = deque()
            self._windows[key] = window

        self._prune(window, now, window_seconds)

        if len(window) >= max_requests:
            retry_after = window[0] + window_seconds - now if window else window_seconds
            logger.info(
                "Rate limit exceeded",
                extra={"identity": key[1], "kind": scope, "reason": f"retry_after={retry_after:.0f}s"},
            )
            if not window:
                del self._windows[key]
            return RateLimitDecision(allowed=False, retry_after=max(retry_after, 0.0))

        window.append(now)
        return RateLimitDecision(allowed=True)

    def enforce(self, identity: str, policy: RateLimitPolicy) -> None:
        """
        Record an action under a policy.

        Raises:
            RateLimitError: If the identity is over its limit
        """
        decision = self.check_and_record(
            identity,
            policy.max_requests,
            policy.window_seconds,
            scope=policy.scope,
        )
        if not decision.allowed:
            raise RateLimitError(retry_after=decision.retry_after or 0.0)

    def get_stats(self, identity: str, policy: RateLimitPolicy) -> dict:
        now = self._clock()
        normalized = normalize_identity(identity)
        window = self._windows.get((policy.scope, normalized))
        if window is not None:
            self._prune(window, now, policy.window_seconds)
            if not window:
                del self._windows[(policy.scope, normalized)]
                window = None
        used = len(window) if window else 0
        return {
            "identity": normalized,
            "scope": policy.scope,
            "requests_in_window": used,
            "max_requests": policy.max_requests,
            "remaining": max(policy.max_requests - used, 0),
            "window_seconds": policy.window_seconds,
        }

    def reset(self, identity: str | None = None) -> None:
        """
        Reset windows for one identity (across scopes) or for everyone.
        """
        if identity is None:
            self._windows.clear()
            return
        normalized = normalize_identity(identity)
        for key in [k for k in self._windows if k[1] == normalized]:
            del self._windows[key]

    def sweep(self) -> int:
        """Drop windows whose requests have all aged out. Returns how many went."""
        now = self._clock()
        stale = []
        for key, window in self._windows.items():
            window_seconds = self._window_seconds.get(key[0])
            if window_seconds is not None:
                self._prune(window, now, window_seconds)
            if not window:
                stale.append(key)
        for key in stale:
            del self._windows[key]
        if stale:
            logger.debug("Rate limit windows swept", extra={"reason": f"dropped={len(stale)}"})
        return len(stale)

    @staticmethod
    def _prune(window: deque[float], now: float, window_seconds: float) -> None:
        while window and now - window[0] >= window_seconds:
            window.popleft()
