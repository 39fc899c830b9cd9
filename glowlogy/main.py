from fastapi import FastAPI

from glowlogy.api.errors import register_exception_handlers
from glowlogy.api.v1.bookings import router as bookings_router
from glowlogy.api.v1.catalog import router as catalog_router
from glowlogy.api.v1.inquiries import router as inquiries_router
from glowlogy.core.config import settings
from glowlogy.core.logging import configure_logging

configure_logging(settings.LOG_LEVEL)

app = FastAPI(title="Glowlogy Booking API", version="1.0.0")
register_exception_handlers(app)

app.include_router(bookings_router, prefix="/api/v1/bookings", tags=["bookings"])
app.include_router(inquiries_router, prefix="/api/v1", tags=["inquiries"])
app.include_router(catalog_router, prefix="/api/v1", tags=["catalog"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
