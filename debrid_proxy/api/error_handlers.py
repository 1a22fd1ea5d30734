"""
Exception handlers.

Translate domain exceptions, request validation failures and unmatched
routes into the {"success": false, "error", "details"} envelope.

Dependencies: fastapi, starlette, debrid_proxy.core.exceptions
System role: Uniform error responses for every route
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from debrid_proxy.core.exceptions import DebridProxyException
from debrid_proxy.models.common import ErrorResponse

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "internalError"


def error_response(status_code: int, error: str, details=None) -> JSONResponse:
    payload = ErrorResponse(error=error, details=details or None)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


async def handle_domain_exception(request: Request, exc: DebridProxyException) -> JSONResponse:
    extra = {
        "path": request.url.path,
        "status_code": exc.status_code,
        "error_type": type(exc).__name__,
        "details": exc.details,
    }
    if exc.status_code >= 500:
        logger.error(exc.message, extra=extra, exc_info=exc)
    else:
        logger.warning(exc.message, extra=extra)
    return error_response(exc.status_code, exc.message, exc.details)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "error_count": len(errors)},
    )
    return error_response(400, "Invalid request", {"errors": errors})


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code in (404, 405):
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        return error_response(404, f"Endpoint {target} is not defined")
    return error_response(exc.status_code, str(exc.detail))


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception",
        extra={"path": request.url.path, "error_type": type(exc).__name__},
        exc_info=exc,
    )
    return error_response(500, INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DebridProxyException, handle_domain_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_exception)
