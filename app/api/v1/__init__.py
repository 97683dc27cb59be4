# app/api/v1/__init__.py
"""
Versioned API v1: aggregates all sub-routers under ``/api/v1``.

Usage in ``main.py``::

    from app.api.v1 import v1_router
    app.include_router(v1_router)
"""

from fastapi import APIRouter

from app.api.v1.routes.masters import router as masters_router
from app.api.v1.routes.sales import router as sales_router

v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(masters_router)
v1_router.include_router(sales_router)

__all__ = ["v1_router"]
