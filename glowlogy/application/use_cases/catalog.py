from __future__ import annotations

import logging
from typing import Iterable

from glowlogy.application.ports.document_store import DocumentStorePort, Filter, OrderBy
from glowlogy.application.services.request_coordinator import RequestCoordinator
from glowlogy.application.services.tiered_cache import TieredCache
from glowlogy.domain.entities.service_catalog import SERVICE_CATEGORIES, SpaLocation, SpaService


SERVICES_COLLECTION = "services"
LOCATIONS_COLLECTION = "locations"


def service_categories() -> list[dict[str, str]]:
    """Fixed category filter list; "all" comes first."""
    return [{"id": category_id, "name": name} for category_id, name in SERVICE_CATEGORIES]


class CatalogReader:
    """
    Cached reads of the near-static service and location catalogs.

    Remote reads are de-duplicated; an empty or unreachable catalog falls back
    to the built-in defaults, which are cached only when the remote read worked.
    """

    def __init__(
        self,
        store: DocumentStorePort,
        cache: TieredCache,
        coordinator: RequestCoordinator,
        default_services: Iterable[SpaService] = (),
        default_locations: Iterable[SpaLocation] = (),
    ) -> None:
        self._store = store
        self._cache = cache
        self._coordinator = coordinator
        self._default_services = tuple(default_services)
        self._default_locations = tuple(default_locations)
        self._logger = logging.getLogger(__name__)

    async def get_services(
        self,
        category: str | None = None,
        limit: int | None = None,
        use_cache: bool = True,
    ) -> list[SpaService]:
        services = None
        if use_cache:
            cached = self._cache.get(SERVICES_COLLECTION)
            if cached is not None:
                services = [SpaService.from_document(payload["id"], payload) for payload in cached]
        if services is None:
            services = await self._coordinator.dedupe(SERVICES_COLLECTION, self._fetch_services)

        if category:
            services = [service for service in services if service.category == category]
        if limit:
            services = services[:limit]
        return services

    async def get_service_by_id(self, service_id: str) -> SpaService | None:
        cached = self._cache.get(SERVICES_COLLECTION)
        if cached is not None:
            for payload in cached:
                if payload.get("id") == service_id:
                    return SpaService.from_document(payload["id"], payload)

        try:
            document = await self._store.get_by_id(SERVICES_COLLECTION, service_id)
        except Exception as e:
            self._logger.warning("Error fetching service", extra={"error": str(e)})
            document = None
        if document is not None:
            return SpaService.from_document(document.id, document.data)
        return next((s for s in self._default_services if s.id == service_id), None)

    async def get_services_by_ids(self, service_ids: list[str]) -> list[SpaService]:
        return await self._coordinator.batch(SERVICES_COLLECTION, service_ids, self._fetch_services_by_ids)

    async def get_popular_services(self, limit: int = 6) -> list[SpaService]:
        services = await self.get_services()
        return [service for service in services if service.popular][:limit]

    async def get_locations(
        self,
        city: str | None = None,
        featured: bool | None = None,
        use_cache: bool = True,
    ) -> list[SpaLocation]:
        locations = None
        if use_cache:
            cached = self._cache.get(LOCATIONS_COLLECTION)
            if cached is not None:
                locations = [SpaLocation.from_document(payload["id"], payload) for payload in cached]
        if locations is None:
            locations = await self._coordinator.dedupe(LOCATIONS_COLLECTION, self._fetch_locations)

        if city:
            locations = [location for location in locations if location.city == city]
        if featured is not None:
            locations = [location for location in locations if location.featured == featured]
        return locations

    async def get_location_by_id(self, location_id: str) -> SpaLocation | None:
        locations = await self.get_locations()
        return next((location for location in locations if location.id == location_id), None)

    async def get_cities(self) -> list[str]:
        locations = await self.get_locations()
        return list(dict.fromkeys(location.city for location in locations))

    async def search_locations(self, query: str) -> list[SpaLocation]:
        needle = (query or "").strip().lower()
        locations = await self.get_locations()
        if not needle:
            return locations
        return [
            location
            for location in locations
            if needle in location.name.lower()
            or needle in location.city.lower()
            or needle in location.address.lower()
        ]

    async def _fetch_services(self) -> list[SpaService]:
        generation = self._cache.generation(SERVICES_COLLECTION)
        try:
            documents = await self._store.query(
                SERVICES_COLLECTION,
                filters=[Filter("active", "==", True)],
                order_by=[OrderBy("popular", descending=True)],
            )
        except Exception as e:
            self._logger.warning(
                "Error fetching services; using defaults",
                extra={"collection": SERVICES_COLLECTION, "error": str(e)},
            )
            return list(self._default_services)

        services = [SpaService.from_document(document.id, document.data) for document in documents]
        if not services:
            services = list(self._default_services)
        self._cache.set(
            SERVICES_COLLECTION, [service.to_payload() for service in services], generation=generation
        )
        return services

    async def _fetch_services_by_ids(self, service_ids: list[str]) -> list[SpaService]:
        try:
            documents = await self._store.get_many(SERVICES_COLLECTION, service_ids)
        except Exception as e:
            self._logger.warning(
                "Error fetching services; using defaults",
                extra={"collection": SERVICES_COLLECTION, "error": str(e)},
            )
            documents = []
        found = {document.id: SpaService.from_document(document.id, document.data) for document in documents}
        for service in self._default_services:
            if service.id in service_ids and service.id not in found:
                found[service.id] = service
        return list(found.values())

    async def _fetch_locations(self) -> list[SpaLocation]:
        generation = self._cache.generation(LOCATIONS_COLLECTION)
        try:
            documents = await self._store.query(
                LOCATIONS_COLLECTION,
                filters=[Filter("active", "==", True)],
                order_by=[OrderBy("featured", descending=True)],
            )
        except Exception as e:
            self._logger.warning(
                "Error fetching locations; using defaults",
                extra={"collection": LOCATIONS_COLLECTION, "error": str(e)},
            )
            return list(self._default_locations)

        locations = [SpaLocation.from_document(document.id, document.data) for document in documents]
        if not locations:
            locations = list(self._default_locations)
        self._cache.set(
            LOCATIONS_COLLECTION, [location.to_payload() for location in locations], generation=generation
        )
        return locations
