"""Maps domain exceptions to HTTP responses.

The first matching class wins, so more specific classes come first.
IdentityUnavailableError is both an IdentityError and a RemoteServiceError
and is reported as 400 like every other identity failure.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from orderhub.domain.exceptions import (
    DomainException,
    ForbiddenError,
    IdentityError,
    OrderNotFoundError,
    PersistenceError,
    RemoteServiceError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[DomainException], int], ...] = (
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (OrderNotFoundError, status.HTTP_404_NOT_FOUND),
    (IdentityError, status.HTTP_400_BAD_REQUEST),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (RemoteServiceError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (DomainException, status.HTTP_400_BAD_REQUEST),
)


def status_for(exc: DomainException) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def _body(code: str, message: str, details: dict | None = None) -> dict:
    body = {"error": code, "message": message}
    body.update(details or {})
    return body


async def _domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    code = status_for(exc)
    if code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc)
    return JSONResponse(status_code=code, content=_body(exc.code, str(exc), exc.details()))


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_body("invalid_request", f"Invalid request body: {problems}"),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, _domain_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
