"""
Exception handlers - Map domain errors to HTTP responses.

Every failure returns a JSON body of the form {"error": "..."}:
- 400 for missing fields or a malformed request body
- 500 when the device registry or push transport is unavailable
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.domain.exceptions import (
    MissingRequiredFields,
    RegistryUnavailable,
    TransportUnavailable,
)

logger = logging.getLogger(__name__)


async def missing_fields_handler(request: Request, exc: MissingRequiredFields) -> JSONResponse:
    logger.warning("Received %s request with missing fields: %s", request.url.path, exc.missing)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    logger.warning("Received malformed %s request: %s", request.url.path, errors)
    detail = errors[0]["msg"] if errors else "expected a JSON object of string fields"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"Invalid request body: {detail}"},
    )


async def unavailable_handler(
    request: Request, exc: RegistryUnavailable | TransportUnavailable
) -> JSONResponse:
    logger.error("Error in %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": f"Server error processing call acceptance: {exc}"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain exception handlers on an application."""
    app.add_exception_handler(MissingRequiredFields, missing_fields_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(RegistryUnavailable, unavailable_handler)
    app.add_exception_handler(TransportUnavailable, unavailable_handler)
