from abc import ABC, abstractmethod
from typing import Callable

from glowlogy.domain.entities.identity import Identity


IdentityListener = Callable[[Identity | None], None]


class IdentityPort(ABC):
    @abstractmethod
    async def current(self) -> Identity | None:
        """Signed-in identity, or None for a guest."""
        raise NotImplementedError

    @abstractmethod
    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a listener for sign-in/sign-out. Returns an unsubscribe callable."""
        raise NotImplementedError
