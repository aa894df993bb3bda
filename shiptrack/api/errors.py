"""
Exception handlers mapping service errors to HTTP responses
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from shiptrack.core.exceptions import (
    ShipTrackError, ValidationError, EditPermissionError, NotFoundError,
    StorageError, SequenceConflictError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ValidationError: 422,
    EditPermissionError: 403,
    NotFoundError: 404,
    SequenceConflictError: 409,
    StorageError: 503,
}


async def shiptrack_error_handler(request: Request, exc: ShipTrackError) -> JSONResponse:
    status_code = next(
        (code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)),
        400,
    )
    content = {"detail": exc.message}
    if isinstance(exc, ValidationError) and exc.missing_fields:
        content["missing_fields"] = exc.missing_fields
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShipTrackError, shiptrack_error_handler)
