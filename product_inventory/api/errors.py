"""
Exception handlers producing the JSON error body shared by all endpoints:

    {timestamp, status, error, message, errorCode, details?, path, errors?}
"""

from datetime import datetime, timezone
from http import HTTPStatus
from typing import Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from product_inventory.exceptions import (
    ProductBadRequestError,
    ProductError,
    ProductInternalServerError,
)
from product_inventory.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)

REQUEST_SOURCES = {"body", "query", "path", "header", "cookie"}


def error_body(
    request: Request,
    status_code: int,
    message: str,
    error_code: str,
    details: Optional[str] = None,
    errors: Optional[dict[str, str]] = None,
) -> dict:
    """Render the error body as JSON-ready data."""
    body = ErrorResponse(
        timestamp=datetime.now(timezone.utc),
        status=status_code,
        error=HTTPStatus(status_code).phrase,
        message=message,
        error_code=error_code,
        details=details,
        path=request.url.path,
        errors=errors,
    )
    return body.model_dump(mode="json", by_alias=True, exclude_none=True)


def _field_name(loc: tuple) -> str:
    """('body', 'price') -> 'price'; ('query', 'version') -> 'version'."""
    parts = [str(part) for part in loc]
    if len(parts) > 1 and parts[0] in REQUEST_SOURCES:
        parts = parts[1:]
    return ".".join(parts)


async def product_error_handler(request: Request, exc: ProductError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.url.path}: {exc.message}", exc_info=exc)
    else:
        logger.warning(f"{exc.error_code} on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, exc.message, exc.error_code, exc.details),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Schema and parameter validation failures are bad requests, not 422s."""
    errors: dict[str, str] = {}
    malformed = False
    for error in exc.errors():
        if error.get("type") == "json_invalid":
            malformed = True
        errors.setdefault(_field_name(error.get("loc", ())), error.get("msg", "Invalid value"))

    message = "Malformed JSON request" if malformed else "Validation failed for the request"
    logger.warning(f"Validation failed on {request.url.path}: {errors}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            request,
            status.HTTP_400_BAD_REQUEST,
            message,
            ProductBadRequestError.error_code,
            ProductBadRequestError.default_details,
            errors,
        ),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred.",
            ProductInternalServerError.error_code,
            ProductInternalServerError.default_details,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProductError, product_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
