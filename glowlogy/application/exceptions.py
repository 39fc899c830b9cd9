import math


class IntakeError(Exception):
    """Base class for errors surfaced to booking and inquiry callers."""

    message: str = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        if message:
            self.message = message
        super().__init__(self.message)


class ValidationError(IntakeError):
    """Raised when required input is missing or malformed. Never retried."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class InvalidStatusTransitionError(ValidationError):
    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__("status", f"A {current} booking cannot be marked {target}.")


class SlotUnavailableError(ValidationError):
    def __init__(self, date: str, time: str) -> None:
        super().__init__("time", f"The {time} slot on {date} is no longer available. Please pick another time.")


class BookingNotFoundError(ValidationError):
    def __init__(self, booking_id: str) -> None:
        self.booking_id = booking_id
        super().__init__("id", f"Booking {booking_id} was not found.")


class RateLimitError(IntakeError):
    """Raised when an identity exceeded its allowed action count for the current window."""

    def __init__(self, retry_after: float, message: str | None = None) -> None:
        self.retry_after = max(0.0, retry_after)
        super().__init__(
            message
            or f"Too many requests. Please try again in {self.retry_after_minutes} minutes."
        )

    @property
    def retry_after_minutes(self) -> int:
        return max(1, math.ceil(self.retry_after / 60))


class RemoteStoreError(IntakeError):
    """Raised when the remote document store fails (network, permission, quota)."""


class RemoteReadError(RemoteStoreError):
    pass


class RemoteWriteError(RemoteStoreError):
    pass


class CacheCorruptionError(RuntimeError):
    """Raised internally when a durable cache entry cannot be decoded."""
    pass
