# app/api/v1/deps.py
"""
FastAPI dependencies for the v1 API layer.

``get_bearer_token`` extracts the caller's Bearer token from the
Authorization header; ``get_inventory_client`` builds an inventory API client
that forwards it upstream.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Header, status

from app.infrastructure.external.inventory_api_client import InventoryAPIClient


async def get_bearer_token(authorization: str | None = Header(None)) -> str:
    """
    FastAPI dependency: returns the token from ``Authorization: Bearer <token>``.

    Raises HTTP 401 if the header is missing or malformed.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header. Expected: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[7:].strip()  # strip "Bearer "
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Empty bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


async def get_inventory_client(token: str = Depends(get_bearer_token)) -> InventoryAPIClient:
    return InventoryAPIClient(token=token)
