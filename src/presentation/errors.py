"""Exception handlers rendering the JSON error body used by every endpoint."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core import errors
from core.config import settings

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, code: str,
                   headers: dict | None = None, **extra) -> JSONResponse:
    body = {"success": False, "message": message, "code": code}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = getattr(exc, "code", None) or errors.code_for_status(exc.status_code)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if exc.status_code == 404 and message == "Not Found":
        message = f"Can't find {request.url.path} on this server!"
    elif exc.status_code == 405:
        message = f"Method {request.method} Not Allowed"
    return error_response(exc.status_code, message, code,
                          headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request,
                                       exc: RequestValidationError):
    details = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"),
         "message": err["msg"]}
        for err in exc.errors()
    ]
    summary = ". ".join(f"{d['field']}: {d['message']}" for d in details)
    return error_response(400, f"Invalid input: {summary}",
                          errors.VALIDATION_ERROR, errors=details)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method,
                     request.url.path)
    message = "Internal Server Error" if settings.is_production else str(exc)
    return error_response(500, message, errors.INTERNAL_SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError,
                              validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
