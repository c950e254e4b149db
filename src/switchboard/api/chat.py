"""Chat and history endpoints"""
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from switchboard.api.deps import get_services, json_body
from switchboard.errors import BackendError, UpstreamError
from switchboard.services.container import Services

router = APIRouter()
logger = structlog.get_logger()


@router.post("/chat")
async def chat(
    payload: Dict[str, Any] = Depends(json_body),
    services: Services = Depends(get_services),
):
    """Send a message to the selected (or default) provider"""
    provider_id = payload.get("providerId")
    model = payload.get("model")
    try:
        result = await services.chat.chat(
            payload.get("message"),
            provider_id=provider_id if isinstance(provider_id, str) else None,
            model=model if isinstance(model, str) else None,
        )
    except (UpstreamError, BackendError) as e:
        logger.error("Web chat request failed", **e.to_dict())
        return JSONResponse(status_code=500, content={"error": e.message})
    return {"reply": result.reply, "provider": result.provider}


@router.get("/history")
async def history(services: Services = Depends(get_services)):
    """Most recent messages of the web conversation, oldest first"""
    messages = await services.chat.history(services.settings.history_limit)
    return {"messages": messages}
