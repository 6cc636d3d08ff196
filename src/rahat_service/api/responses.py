"""Response envelope and exception handlers.

Every success is wrapped as ``{success, status, message, data, timestamp}``;
every failure as ``{success, status, title, message, errors, meta, timestamp}``.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rahat_service.core.errors import CaseServiceError
from rahat_service.models import ApiEnvelope, ErrorEnvelope

logger = logging.getLogger(__name__)


def respond(data: Any = None, status_code: int = status.HTTP_200_OK, message: str = "") -> JSONResponse:
    envelope = ApiEnvelope(
        status=status_code,
        message=message,
        data=jsonable_encoder(data),
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(envelope))


def error_response(status_code: int, title: str, message: str, errors=None, meta=None) -> JSONResponse:
    envelope = ErrorEnvelope(
        status=status_code,
        title=title,
        message=message,
        errors=errors or [],
        meta=meta or {},
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(envelope))


async def case_service_error_handler(request: Request, exc: CaseServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return error_response(exc.status_code, exc.title, exc.message, exc.errors, exc.meta)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "Invalid input data",
        errors=jsonable_encoder(exc.errors()),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal Server Error",
        str(exc),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CaseServiceError, case_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
