import logging
import math

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from glowlogy.application.exceptions import (
    BookingNotFoundError,
    IntakeError,
    RateLimitError,
    RemoteStoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _body(error: str, exc: IntakeError, **fields) -> dict:
    body = {"error": error, "message": exc.message}
    body.update({key: value for key, value in fields.items() if value is not None})
    return body


async def _not_found(request: Request, exc: BookingNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content=_body("not_found", exc, field=exc.field))


async def _validation(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content=_body("validation_error", exc, field=exc.field))


async def _rate_limited(request: Request, exc: RateLimitError) -> JSONResponse:
    retry_after = max(1, math.ceil(exc.retry_after))
    logger.info("Rate limit hit", extra={"source": request.url.path, "reason": f"retry_after={retry_after}"})
    return JSONResponse(
        status_code=429,
        content=_body("rate_limited", exc, retry_after_seconds=retry_after),
        headers={"Retry-After": str(retry_after)},
    )


async def _remote_store(request: Request, exc: RemoteStoreError) -> JSONResponse:
    return JSONResponse(status_code=502, content=_body("remote_store_error", exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingNotFoundError, _not_found)
    app.add_exception_handler(ValidationError, _validation)
    app.add_exception_handler(RateLimitError, _rate_limited)
    app.add_exception_handler(RemoteStoreError, _remote_store)
