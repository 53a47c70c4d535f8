"""
Exception handlers.

Maps the OptimizerException hierarchy onto HTTP status codes by error
category and renders the shared error payload. Anything unexpected becomes
an `internal` error without leaking its message.

Dependencies: fastapi, doc_optimizer.core.exceptions
System role: Boundary error translation
"""

import logging
import math

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from doc_optimizer.core.exceptions import ErrorCategory, OptimizerException
from doc_optimizer.observability.log_utils import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)

CATEGORY_STATUS = {
    ErrorCategory.BAD_INPUT: 400,
    ErrorCategory.UNPROCESSABLE: 422,
    ErrorCategory.UNAVAILABLE: 503,
    ErrorCategory.INTERNAL: 500,
}


class InternalServerError(OptimizerException):
    """Wraps an unexpected exception at the boundary."""

    stage = "request"


def status_for(exc: OptimizerException) -> int:
    return CATEGORY_STATUS[exc.category]


def error_response(exc: OptimizerException) -> JSONResponse:
    """Render an OptimizerException as its JSON error payload."""
    headers = None
    retry_after = exc.details.get("retry_after_seconds")
    if retry_after:
        headers = {"Retry-After": str(max(math.ceil(retry_after), 1))}
    return JSONResponse(status_code=status_for(exc), content=exc.to_payload(), headers=headers)


async def optimizer_exception_handler(request: Request, exc: OptimizerException) -> JSONResponse:
    level = logging.ERROR if exc.category is ErrorCategory.INTERNAL else logging.WARNING
    log_with_context(
        logger,
        level,
        "Request failed",
        path=request.url.path,
        error_code=exc.code,
        category=exc.category,
        stage=exc.stage,
        error=exc.message,
    )
    return error_response(exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log_exception_with_context(logger, "Unhandled exception", exc, path=request.url.path)
    return error_response(InternalServerError("Internal server error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OptimizerException, optimizer_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
