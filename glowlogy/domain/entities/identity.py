from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    id: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
