"""
Exception handlers that map repository errors onto HTTP responses.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..orders.errors import AlreadyExists, Cancelled, NotFound, OrderStoreError

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    AlreadyExists: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
    Cancelled: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: OrderStoreError) -> int:
    """HTTP status for a repository error; anything unlisted is a 500."""
    for error_type, code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "status_code": status_code}
    )


async def order_store_exception_handler(request: Request, exc: OrderStoreError):
    """Log and render a repository error."""
    status_code = status_for(exc)
    log_message = f"[{status_code}] {request.method} {request.url.path} - {exc}"

    if status_code >= 500:
        logger.error(log_message, exc_info=exc)
        # Store internals stay in the log
        detail = exc.describe()
    else:
        logger.warning(log_message)
        detail = str(exc)

    return _error_response(status_code, detail)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed input is a 400, not FastAPI's default 422."""
    messages = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", []))
        messages.append(f"{field}: {error.get('msg', 'invalid')}")

    logger.warning(f"[400] {request.method} {request.url.path} - {'; '.join(messages)}")
    return _error_response(status.HTTP_400_BAD_REQUEST, "; ".join(messages))


async def value_error_handler(request: Request, exc: ValueError):
    logger.warning(f"[400] {request.method} {request.url.path} - {exc}")
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OrderStoreError, order_store_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValueError, value_error_handler)
