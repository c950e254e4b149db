"""Status and configuration endpoints"""
from fastapi import APIRouter, Depends

from switchboard.api.deps import get_services
from switchboard.services.container import Services

router = APIRouter()


@router.get("/status")
async def status(services: Services = Depends(get_services)):
    summary = await services.admin.summary()
    return {
        "runtimeReady": services.runtime.ready,
        "runtimeError": services.runtime.error,
        "providerCount": summary["providerCount"],
        "defaultProviderId": summary["defaultProviderId"],
    }


@router.get("/config")
async def config(services: Services = Depends(get_services)):
    summary = await services.admin.summary()
    return {
        "assistantName": summary["assistantName"],
        "defaultProviderId": summary["defaultProviderId"],
    }
