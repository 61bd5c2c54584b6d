"""
Maps reservation errors to JSON responses.
"""

from typing import Any, Callable, Coroutine

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from app.core.exceptions import BookingError, StorageFailure, ValidationError
from app.core.logging import get_logger

logger = get_logger(__name__)

ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]


async def booking_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, BookingError) else BookingError(str(exc))
    content = {"detail": error.message, "code": error.code}
    if isinstance(error, ValidationError) and error.field:
        content["field"] = error.field
    return JSONResponse(status_code=error.status_code, content=content)


async def storage_failure_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("storage_failure", error=str(exc), cause=repr(exc.__cause__))
    return JSONResponse(
        status_code=StorageFailure.status_code,
        content={"detail": "Storage temporarily unavailable, please retry", "code": StorageFailure.code},
    )


EXCEPTION_HANDLERS: dict[type[Exception], ExceptionHandler] = {
    StorageFailure: storage_failure_handler,
    BookingError: booking_error_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
