"""Middleware package for Switchboard"""

from .logging import get_correlation_id, request_logging_middleware

__all__ = [
    "get_correlation_id",
    "request_logging_middleware",
]
