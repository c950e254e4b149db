"""Translation of failures into structured HTTP error responses"""
from typing import Any, Dict

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from switchboard.errors import ErrorKind, GatewayError
from switchboard.middleware.logging import get_correlation_id

logger = structlog.get_logger()

KIND_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UPSTREAM: 502,
    ErrorKind.BACKEND: 500,
    ErrorKind.PROTOCOL: 400,
}

MUTATION_PREFIX = "/api/providers/"


def error_status(error: GatewayError) -> int:
    if error.code == "payload_too_large":
        return 413
    return KIND_STATUS[error.kind]


def error_body(request: Request, error: GatewayError) -> Dict[str, Any]:
    """``{ok: false, error}`` for provider mutations, ``{error}`` elsewhere"""
    if error.kind is not ErrorKind.PROTOCOL and request.url.path.startswith(MUTATION_PREFIX):
        return {"ok": False, "error": error.message}
    return {"error": error.message}


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    status = error_status(exc)
    log = logger.error if status >= 500 else logger.warning
    log("Request rejected", path=request.url.path, http_status=status, **exc.to_dict())
    return JSONResponse(status_code=status, content=error_body(request, exc))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    codes = {404: "not_found", 405: "method_not_allowed"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": codes.get(exc.status_code, str(exc.detail))},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled request error",
                     path=request.url.path,
                     correlation_id=get_correlation_id(),
                     error_type=type(exc).__name__)
    return JSONResponse(status_code=500, content={"error": "internal_error"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
