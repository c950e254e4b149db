"""Error taxonomy shared by the gateway, the dispatcher and the HTTP surface"""

from enum import Enum
from typing import Any, Dict, Optional

EXCERPT_LIMIT = 180


class ErrorKind(str, Enum):
    """Closed set of failure categories"""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"
    BACKEND = "backend"
    PROTOCOL = "protocol"


class GatewayError(Exception):
    """Base exception carrying a machine-readable code and its kind

    ``str(error)`` renders the wire message, e.g. ``chat_failed:401:bad key``
    for upstream failures that carry a status code and body excerpt.
    """

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(
        self,
        code: str,
        *,
        status_code: Optional[int] = None,
        excerpt: Optional[str] = None,
        provider: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        self.code = code
        self.status_code = status_code
        self.excerpt = excerpt
        self.provider = provider
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.detail:
            return self.detail
        if self.status_code is not None:
            return f"{self.code}:{self.status_code}:{self.excerpt or ''}"
        return self.code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "code": self.code,
            "status_code": self.status_code,
            "provider": self.provider,
        }


class ValidationError(GatewayError):
    """Malformed or incomplete client input"""
    kind = ErrorKind.VALIDATION


class NotFoundError(GatewayError):
    """Referenced provider or id does not exist"""
    kind = ErrorKind.NOT_FOUND


class UpstreamError(GatewayError):
    """Remote provider API failed or returned an unusable body"""
    kind = ErrorKind.UPSTREAM


class BackendError(GatewayError):
    """Agent execution reported a failure"""
    kind = ErrorKind.BACKEND


class ProtocolError(GatewayError):
    """Request body could not be accepted"""
    kind = ErrorKind.PROTOCOL


def excerpt(text: str, limit: int = EXCERPT_LIMIT) -> str:
    """Bound a response body before it reaches an error message or a log line"""
    return (text or "")[:limit]
