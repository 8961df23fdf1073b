"""
cambright.api.errors

Exception handlers that turn failures into JSON responses.

Responsibilities:
- Map `DomainError` subclasses to their HTTP status with an `{"error": ...}` body.
- Give `HTTPException` responses (auth, not-found routes) the same body shape.
- Catch anything unhandled, log it with request context and answer a generic 500.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from cambright.errors import DomainError
from cambright.observability.logging import get_logger

log = get_logger(__name__)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("domain_error", error=exc.message, error_type=type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Same `{"error": ...}` shape as domain errors; auth challenges keep their headers.
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "Internal Error"}
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)


# --- Module Notes -----------------------------------------------------------
# Starlette re-raises unhandled exceptions after the 500 response is sent so the
# server can log them too; in-process test clients need `raise_app_exceptions=False`
# to observe the response.
