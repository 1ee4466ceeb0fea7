"""Exception handlers rendering errors in the response envelope."""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core import response
from ..exceptions import InternalError, LockboxException
from ..schemas.validation import errors_to_map

logger = logging.getLogger(__name__)


async def lockbox_exception_handler(request: Request, exc: LockboxException) -> JSONResponse:
    """
    Handle custom exceptions and return structured JSON responses.

    Args:
        request: FastAPI request object
        exc: LockboxException instance

    Returns:
        JSONResponse with the error envelope
    """
    log_extra = {
        "error_code": exc.error_code.value,
        "path": request.url.path,
        "method": request.method,
        "status_code": exc.status_code,
    }
    if isinstance(exc, InternalError) and exc.original_error is not None:
        logger.error(
            f"LockboxException: {exc.error_code.value}",
            extra=log_extra,
            exc_info=exc.original_error,
        )
    elif exc.status_code >= 500:
        logger.error(f"LockboxException: {exc.error_code.value}", extra=log_extra)
    else:
        logger.info(f"LockboxException: {exc.error_code.value}", extra=log_extra)

    return JSONResponse(
        status_code=exc.status_code,
        content=response.error(request, exc.message, exc.status_code, exc.details),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI request validation failures as a field-level error map."""
    errors = errors_to_map(exc.errors(), strip_prefix=("body", "query", "path"))
    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=400,
        content=response.error(request, "Could not validate the request data.", 400, errors),
    )
