"""
Chow Service - Mapping domain errors to HTTP responses

This is the one place where an error list becomes an HTTP status and a JSON
body of the form {status, errors: [{message, options: {code, ...}}]}.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chowdown.core.errors import AppErrorsException, ErrorCode, ErrorDetail

logger = logging.getLogger(__name__)

# codes not listed here map to 400 BAD REQUEST
ERROR_STATUS = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.DB: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_status(errors: list[ErrorDetail]) -> int:
    """
    Status of the first error with a mapped code, except that
    500 INTERNAL SERVER ERROR dominates every other status.
    """
    result = None
    for error in errors:
        error_status = ERROR_STATUS.get(error.code)
        if result is None:
            result = error_status
        if error_status == status.HTTP_500_INTERNAL_SERVER_ERROR:
            result = error_status
    return result or status.HTTP_400_BAD_REQUEST


def error_response(errors: list[ErrorDetail]) -> JSONResponse:
    code = http_status(errors)
    if code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Request failed: %s", [e.message for e in errors])
    return JSONResponse(
        status_code=code,
        content={"status": code, "errors": [e.to_dict() for e in errors]},
    )


async def app_errors_handler(request: Request, exc: AppErrorsException) -> JSONResponse:
    return error_response(exc.errors)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        message = f"{request.method} not supported for {request.url.path}"
        return error_response([ErrorDetail(message, ErrorCode.NOT_FOUND)])
    code = ErrorCode.INTERNAL if exc.status_code >= 500 else ErrorCode.BAD_REQ
    return error_response([ErrorDetail(str(exc.detail), code)])


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        ErrorDetail(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}", ErrorCode.BAD_REQ)
        for e in exc.errors()
    ]
    return error_response(errors)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error for %s %s", request.method, request.url.path)
    return error_response([ErrorDetail(str(exc) or exc.__class__.__name__, ErrorCode.INTERNAL)])


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppErrorsException, app_errors_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
