"""Provider API Endpoints"""
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends

from switchboard.api.deps import get_services, json_body
from switchboard.services.container import Services

router = APIRouter()
logger = structlog.get_logger()


@router.get("")
async def list_providers(services: Services = Depends(get_services)):
    """List providers with secrets masked"""
    return await services.admin.list_masked()


@router.post("/bootstrap")
async def bootstrap_providers(services: Services = Depends(get_services)):
    """Merge the preset providers without touching existing ids"""
    count = await services.admin.bootstrap()
    return {"ok": True, "count": count}


@router.post("/upsert")
async def upsert_provider(
    payload: Dict[str, Any] = Depends(json_body),
    services: Services = Depends(get_services),
):
    """Create or update a provider"""
    default_id = await services.admin.upsert(payload)
    return {"ok": True, "defaultProviderId": default_id}


@router.post("/delete")
async def delete_provider(
    payload: Dict[str, Any] = Depends(json_body),
    services: Services = Depends(get_services),
):
    default_id = await services.admin.delete(payload)
    return {"ok": True, "defaultProviderId": default_id}


@router.post("/set-default")
async def set_default_provider(
    payload: Dict[str, Any] = Depends(json_body),
    services: Services = Depends(get_services),
):
    default_id = await services.admin.set_default(payload)
    return {"ok": True, "defaultProviderId": default_id}


@router.post("/models/refresh")
async def refresh_models(
    payload: Dict[str, Any] = Depends(json_body),
    services: Services = Depends(get_services),
):
    """Query the provider's API for its models and store them"""
    provider_id = payload.get("id")
    models = await services.catalog.refresh(
        services.store, provider_id if isinstance(provider_id, str) else None
    )
    return {"ok": True, "models": models}
