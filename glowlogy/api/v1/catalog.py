from fastapi import APIRouter, Depends, HTTPException, Query

from glowlogy.api.v1.schemas import CatalogResponseSchema
from glowlogy.application.use_cases.catalog import CatalogReader, service_categories
from glowlogy.wiring.dependencies import get_catalog_reader

router = APIRouter()


@router.get("/services", response_model=CatalogResponseSchema)
async def list_services(
    category: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1),
    popular: bool = Query(default=False),
    uc: CatalogReader = Depends(get_catalog_reader),
):
    if popular:
        services = await uc.get_popular_services(limit or 6)
    else:
        services = await uc.get_services(category=category, limit=limit)
    return CatalogResponseSchema(items=[service.to_payload() for service in services])


@router.get("/services/categories")
async def list_categories() -> dict[str, list[dict[str, str]]]:
    return {"categories": service_categories()}


@router.get("/services/{service_id}")
async def get_service(service_id: str, uc: CatalogReader = Depends(get_catalog_reader)):
    service = await uc.get_service_by_id(service_id)
    if service is None:
        raise HTTPException(status_code=404, detail=f"Service {service_id} was not found.")
    return service.to_payload()


@router.get("/locations", response_model=CatalogResponseSchema)
async def list_locations(
    city: str | None = Query(default=None),
    featured: bool | None = Query(default=None),
    q: str | None = Query(default=None),
    uc: CatalogReader = Depends(get_catalog_reader),
):
    if q:
        locations = await uc.search_locations(q)
    else:
        locations = await uc.get_locations(city=city, featured=featured)
    return CatalogResponseSchema(items=[location.to_payload() for location in locations])


@router.get("/locations/cities")
async def list_cities(uc: CatalogReader = Depends(get_catalog_reader)) -> dict[str, list[str]]:
    return {"cities": await uc.get_cities()}


@router.get("/locations/{location_id}")
async def get_location(location_id: str, uc: CatalogReader = Depends(get_catalog_reader)):
    location = await uc.get_location_by_id(location_id)
    if location is None:
        raise HTTPException(status_code=404, detail=f"Location {location_id} was not found.")
    return location.to_payload()
