"""Request logging middleware for Switchboard

Binds a correlation id to every log line emitted while a request is being
handled, logs request start and completion with timing, and echoes the
correlation id back in the response headers.
"""

import time
import uuid
from contextvars import ContextVar
from typing import Optional

import structlog
from fastapi import Request
from structlog.contextvars import bind_contextvars, clear_contextvars

logger = structlog.get_logger()

SLOW_REQUEST_SECONDS = 5.0

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


async def request_logging_middleware(request: Request, call_next):
    """Request logging middleware with correlation ID and performance tracking"""
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    correlation_id_var.set(correlation_id)
    bind_contextvars(correlation_id=correlation_id)

    start_time = time.time()

    logger.info("Request started",
                method=request.method,
                path=request.url.path,
                client_ip=request.client.host if request.client else None)

    try:
        response = await call_next(request)
        duration = time.time() - start_time

        logger.info("Request completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round(duration * 1000, 2))

        response.headers["X-Correlation-ID"] = correlation_id

        if duration > SLOW_REQUEST_SECONDS:
            logger.warning("Slow request detected",
                           duration_ms=round(duration * 1000, 2),
                           path=request.url.path)
        return response

    except Exception as e:
        duration = time.time() - start_time
        logger.error("Request failed",
                     method=request.method,
                     path=request.url.path,
                     duration_ms=round(duration * 1000, 2),
                     error=str(e),
                     error_type=type(e).__name__)
        raise

    finally:
        clear_contextvars()


def get_correlation_id() -> Optional[str]:
    """Get current request correlation ID"""
    return correlation_id_var.get()
