from __future__ import annotations

import secrets
import time
from typing import Callable


_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding expects a non-negative integer")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


class BookingIdGenerator:
    """
    Builds ids shaped GLW-<base36 ms timestamp>-<4 random base36 chars>.

    The timestamp part never repeats within a process: two ids requested in the
    same millisecond get consecutive millisecond values.
    """

    def __init__(self, prefix: str = "GLW", clock: Callable[[], float] = time.time) -> None:
        self._prefix = prefix
        self._clock = clock
        self._last_ms = 0

    def __call__(self) -> str:
        now_ms = int(self._clock() * 1000)
        self._last_ms = max(now_ms, self._last_ms + 1)
        suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
        return f"{self._prefix}-{to_base36(self._last_ms)}-{suffix}"
