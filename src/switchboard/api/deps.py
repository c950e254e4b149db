"""Request dependencies: service access and JSON body parsing"""
import json
from typing import Any, Dict

from fastapi import Request

from switchboard.errors import ProtocolError
from switchboard.services.container import Services


def get_services(request: Request) -> Services:
    return request.app.state.services


async def json_body(request: Request) -> Dict[str, Any]:
    """Read a size-capped JSON object body

    An empty body reads as ``{}``; a JSON value that is not an object is
    treated the same way.
    """
    limit = request.app.state.services.settings.max_body_bytes

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise ProtocolError("payload_too_large")

    raw = bytearray()
    async for chunk in request.stream():
        raw.extend(chunk)
        if len(raw) > limit:
            raise ProtocolError("payload_too_large")

    try:
        text = bytes(raw).decode("utf-8")
    except UnicodeDecodeError as e:
        raise ProtocolError("invalid_json") from e
    if not text.strip():
        return {}
    try:
        data = json.loads(text)
    except ValueError as e:
        raise ProtocolError("invalid_json") from e
    return data if isinstance(data, dict) else {}
