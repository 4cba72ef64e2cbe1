# hotel/handlers.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from hotel.exceptions import (
    BusinessRuleError,
    ConstraintViolationError,
    InvalidDateRangeError,
    NotFoundError,
    PurgeNotAllowedError,
    StorageFault,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal error. Contact support"

# Fault category -> (status code, fixed client message or None to pass the error text through)
ERROR_STATUS = {
    NotFoundError: (status.HTTP_404_NOT_FOUND, None),
    InvalidDateRangeError: (status.HTTP_400_BAD_REQUEST, None),
    BusinessRuleError: (status.HTTP_400_BAD_REQUEST, None),
    ConstraintViolationError: (status.HTTP_409_CONFLICT, None),
    PurgeNotAllowedError: (status.HTTP_403_FORBIDDEN, None),
    StorageFault: (status.HTTP_503_SERVICE_UNAVAILABLE, "Storage unavailable"),
}


async def handle_known_error(request: Request, exc: Exception):
    # Starlette dispatches on the exception's MRO, so walk it the same way here
    for exc_class in type(exc).__mro__:
        if exc_class in ERROR_STATUS:
            status_code, message = ERROR_STATUS[exc_class]
            break
    logger.info("%s %s -> %s: %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(status_code=status_code, content={"detail": message or str(exc)})


async def handle_unexpected_error(request: Request, exc: Exception):
    """
    Last line of defence: log the real fault server-side and hand the client
    a fixed message that reveals nothing about the internals.
    """
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return PlainTextResponse(INTERNAL_ERROR_MESSAGE, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    for exc_class in ERROR_STATUS:
        app.add_exception_handler(exc_class, handle_known_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
