"""
Maps domain errors onto HTTP responses.

Services raise BookingError subclasses carrying their own status code;
routes never translate them by hand.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reservations.core.exceptions import BookingError
from reservations.core.logging import get_logger

logger = get_logger(__name__)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    logger.warning(
        "booking_error",
        error=exc.kind,
        detail=exc.message,
        status_code=exc.status_code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
