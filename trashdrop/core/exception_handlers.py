import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .exceptions import BaseAPIException, ConflictError, InternalServerError, TransientFailure

logger = logging.getLogger("trashdrop")

# seconds a client should wait before replaying a TransientFailure
RETRY_AFTER_SECONDS = 5


def _describe(request: Request) -> str:
    client = request.client.host if request.client else "-"
    return f"{request.method} {request.url} from {client}"


def _envelope(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details or {}},
    }


def _log(kind: str, request: Request, status_code: int, detail: Any, exc: Optional[BaseException] = None) -> None:
    message = f"[{kind}] {_describe(request)} -> {status_code}: {detail}"
    if status_code < 500:
        logger.warning(message)
        return
    if exc is not None:
        tb_str = "".join(traceback.format_tb(exc.__traceback__))
        message = f"{message}\n\nStack Trace:\n{tb_str}"
    logger.error(message)


async def handle_base_api_exception(request: Request, exc: BaseAPIException):
    _log(type(exc).__name__, request, exc.status_code, exc.message)
    headers = None
    if isinstance(exc, TransientFailure):
        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)}
    return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=headers)  # type: ignore[arg-type]


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    _log("HTTPException", request, exc.status_code, exc.detail, exc)
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = exc.detail
    else:
        content = _envelope("HTTP_ERROR", str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    _log("ValidationError", request, 422, exc.errors())
    content = _envelope(
        "VALIDATION_001", "Validation failed", {"errors": jsonable_errors(exc.errors())}
    )
    return JSONResponse(status_code=422, content=content)


async def handle_integrity_error(request: Request, exc: IntegrityError):
    """Unique/foreign-key violations that slipped past the service checks"""
    conflict = ConflictError("Conflicting write", details={"reason": str(exc.orig)})
    _log("IntegrityError", request, conflict.status_code, exc.orig)
    return JSONResponse(status_code=conflict.status_code, content=conflict.detail)  # type: ignore[arg-type]


async def handle_unexpected_error(request: Request, exc: Exception):
    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        f"[Unhandled Error] {_describe(request)}\n"
        f"Exception Type: {type(exc).__name__}\n"
        f"Exception Message: {str(exc)}\n\n"
        f"Full Stack Trace:\n{tb_str}"
    )

    internal = InternalServerError()
    return JSONResponse(status_code=internal.status_code, content=internal.detail)  # type: ignore[arg-type]


def jsonable_errors(errors):
    """pydantic error dicts may carry exception objects under ctx"""
    cleaned = []
    for error in errors:
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        cleaned.append(error)
    return cleaned


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
