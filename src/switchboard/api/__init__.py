"""API endpoints for Switchboard"""

from fastapi import APIRouter

from .chat import router as chat_router
from .providers import router as providers_router
from .status import router as status_router

# Create main router
router = APIRouter()

router.include_router(status_router, tags=["status"])
router.include_router(providers_router, prefix="/providers", tags=["providers"])
router.include_router(chat_router, tags=["chat"])

__all__ = ["router"]
