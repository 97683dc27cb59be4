from fastapi import APIRouter

from app.core.config import settings
from app.infrastructure.external.inventory_api_client import InventoryAPIClient

router = APIRouter()


@router.get("/")
async def health():
    return {
        "status": "ok",
        "message": "Export Invoice Service Running",
        "environment": settings.ENVIRONMENT,
        "inventory_api_configured": InventoryAPIClient.is_configured(),
    }
