"""Exception handlers rendering errors in the ``{success, message}`` envelope."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from lifeline.exceptions import LifeLineError, StoreUnavailableError
from lifeline.schemas.common import fail

logger = logging.getLogger(__name__)


def _describe(errors: list) -> str:
    parts = []
    for error in errors:
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LifeLineError)
    async def lifeline_error_handler(request: Request, exc: LifeLineError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=fail(exc.message))

    @app.exception_handler(OperationalError)
    @app.exception_handler(InterfaceError)
    async def database_error_handler(request: Request, exc: Exception):
        logger.error("%s %s: database error: %s", request.method, request.url.path, exc)
        unavailable = StoreUnavailableError()
        return JSONResponse(status_code=unavailable.status_code, content=fail(unavailable.message))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=fail(_describe(exc.errors())),
        )
