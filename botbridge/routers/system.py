from typing import Any

from fastapi import APIRouter, Depends

from botbridge.config import Settings
from botbridge.core.registry import CHANNEL_IDS, AdapterRegistry
from botbridge.routers.utils.dependencies import get_app_settings, get_registry

router = APIRouter(
    prefix="/system",
    tags=["system"],
    responses={404: {"description": "Not found"}},
)


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/channels")
def channels(
    settings: Settings = Depends(get_app_settings),
    registry: AdapterRegistry = Depends(get_registry),
) -> dict[str, Any]:
    """Report which channels are enabled (no credentials)."""
    return {
        "app": settings.app_name,
        "environment": settings.environment,
        "enabled": registry.list_channels(),
        "supported": list(CHANNEL_IDS),
    }
