from __future__ import annotations

import logging
from typing import Callable

from glowlogy.application.ports.identity import IdentityListener, IdentityPort
from glowlogy.domain.entities.identity import Identity


class StaticIdentitySource(IdentityPort):
    """Identity held in process; sign-in and sign-out are pushed by the host app."""

    def __init__(self, identity: Identity | None = None) -> None:
        self._identity = identity
        self._listeners: list[IdentityListener] = []
        self._logger = logging.getLogger(__name__)

    async def current(self) -> Identity | None:
        return self._identity

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self._identity)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_identity(self, identity: Identity | None) -> None:
        self._identity = identity
        self._logger.info("Identity changed", extra={"identity": identity.id if identity else None})
        for listener in list(self._listeners):
            listener(identity)
