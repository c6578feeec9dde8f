"""
Mapping of domain errors to HTTP responses
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from bookkeeper.domain.errors import (
    BookkeepingError,
    ConflictError,
    InsufficientFundsError,
    NotFoundError,
    PreconditionFailedError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# First match wins
_STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InsufficientFundsError, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (PreconditionFailedError, status.HTTP_412_PRECONDITION_FAILED),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: BookkeepingError) -> int:
    for error_cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(exc: BookkeepingError) -> dict:
    body = {"error": str(exc), "kind": type(exc).__name__}
    if isinstance(exc, InsufficientFundsError):
        body["current"] = str(exc.current)
        body["required"] = str(exc.required)
    return body


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookkeepingError)
    async def bookkeeping_error_handler(request: Request, exc: BookkeepingError):
        code = status_for(exc)
        if code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
            return JSONResponse(status_code=code, content={"error": "Internal error, nothing was changed", "kind": type(exc).__name__})
        return JSONResponse(status_code=code, content=error_body(exc))
