"""Translate domain errors into HTTP responses.

Services raise ProgressError subclasses and never know about HTTP; this
is the one place that maps them to status codes.  The body keeps
FastAPI's `detail` key and adds a machine-readable `code`.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from heritage360.core.errors import (
    AlreadyEnrolledError,
    ConflictError,
    NotEligibleError,
    NotFoundError,
    ProgressError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[ProgressError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    NotEligibleError: status.HTTP_422_UNPROCESSABLE_CONTENT,
    ConflictError: status.HTTP_409_CONFLICT,
    AlreadyEnrolledError: status.HTTP_409_CONFLICT,
}


def status_for(exc: ProgressError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    return status.HTTP_400_BAD_REQUEST


async def progress_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, ProgressError)
    code = status_for(exc)
    logger.info(
        "Request rejected %s %s status=%d code=%s: %s",
        request.method,
        request.url.path,
        code,
        exc.code,
        exc.message,
    )
    return JSONResponse(
        status_code=code,
        content={"detail": exc.message, "code": exc.code},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProgressError, progress_error_handler)
