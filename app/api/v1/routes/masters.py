# app/api/v1/routes/masters.py
"""Master data used to populate the sales form drop-downs."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.api.v1.deps import get_inventory_client
from app.api.v1.envelope import ok
from app.domain.services.master_data import load_master_data
from app.infrastructure.external.inventory_api_client import InventoryAPIClient

router = APIRouter(prefix="/masters", tags=["Master Data"])


@router.get("", response_model=dict)
async def get_master_data(
    limit: int = Query(default=100, ge=1, le=500),
    client: InventoryAPIClient = Depends(get_inventory_client),
):
    """Companies, parties, items, brokers and CHAs, loaded concurrently.

    Resources that failed to load are listed under ``errors``; the rest are
    still returned.
    """
    bundle = await load_master_data(client, limit=limit)
    message = "Some master data could not be loaded" if bundle.errors else None
    return ok(data=bundle.to_dict(), message=message)
