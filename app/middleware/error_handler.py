"""
Error Handling
Maps every failure to the API's `{"error": ..., "message": ...}` body

- Validation problems → 400 with the reason
- Integrity / store failures → 500 (503 on lock contention), details hidden in production
- Unknown routes → 404 "Route not found"
"""
import logging
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.core.config import settings
from app.core.errors import IdentityError

logger = logging.getLogger(__name__)

GENERIC_SERVER_MESSAGE = "Something went wrong"


def _server_error_body(detail: str) -> Dict[str, Any]:
    return {
        "error": "Internal server error",
        "message": GENERIC_SERVER_MESSAGE if settings.is_production else detail,
    }


def _validation_message(exc: RequestValidationError) -> str:
    """First validation problem, phrased for API clients."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    # No JSON object at all is the same problem as an empty one
    if first.get("type") == "missing" and tuple(first.get("loc", ())) == ("body",):
        return "Either email or phoneNumber must be provided"

    message = str(first.get("msg", "Invalid request"))
    return message.removeprefix("Value error, ")


def register_exception_handlers(app: FastAPI) -> None:
    """Register error handlers on the FastAPI app."""

    @app.exception_handler(IdentityError)
    async def _identity_error_handler(request: Request, exc: IdentityError) -> JSONResponse:
        if exc.status_code < 500:
            return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

        logger.error(
            f"{exc.code} on {request.method} {request.url.path}: {exc.message} {exc.meta or ''}",
            exc_info=exc
        )
        return JSONResponse(status_code=exc.status_code, content=_server_error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Route not found",
                    "message": f"Cannot {request.method} {request.url.path}",
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=dict(exc.headers or {}),
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content=_server_error_body(str(exc)))
