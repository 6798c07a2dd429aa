import logging
from fastapi import APIRouter
from ....core.config import settings
from ....services.health_service import SystemHealthService

logger = logging.getLogger(__name__)

router = APIRouter()
health_service = SystemHealthService()


@router.get("/health")
async def health_check():
    return {"status": "OK", "app": settings.APP_NAME, "version": settings.VERSION}


@router.get("/system/status")
async def system_status():
    """Returns the last known status of the transcriber and the LLM provider."""
    return health_service.get_status()
