"""
Exception handlers for the Quickshare API.

Every error leaves the API as ``{"error": <message>}``, with ``details``
added when there is more to say.
"""

import logging
from typing import Any, Optional

import pydantic
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from quickshare_api.exceptions import (
    BackendError,
    DeletionInProgressError,
    NotFoundError,
    PostValidationError,
    QuickshareError,
    UploadValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    DeletionInProgressError: status.HTTP_409_CONFLICT,
    UploadValidationError: status.HTTP_400_BAD_REQUEST,
    PostValidationError: status.HTTP_400_BAD_REQUEST,
    BackendError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(status_code: int, error: str, details: Optional[Any] = None, **extra: Any) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    content.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


async def handle_quickshare_errors(request: Request, exc: QuickshareError) -> JSONResponse:
    status_code = next(
        (code for error_cls, code in STATUS_BY_ERROR.items() if isinstance(exc, error_cls)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return error_response(status_code, str(exc))


async def handle_http_exceptions(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def handle_request_validation_errors(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        422,
        "Invalid request",
        details=exc.errors(),
    )


async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    logger.error(f"Backend returned data that failed validation: {exc}")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        details=exc.errors(include_url=False),
    )


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that propagates during request processing."""
    try:
        return await call_next(request)
    except Exception as e:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            details=str(e),
        )
