# app/api/v1/envelope.py
"""
Standardized API response envelope used by all v1 endpoints.

Matches the inventory API's own envelope so front-ends can share handling:
    {
        "success": true | false,
        "data": <payload>,
        "message": <optional string>,
        "pagination": <optional dict>,
        "errors": <optional list of detail dicts>
    }
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from app.domain.models.masters import Pagination

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard envelope for all v1 API responses."""

    success: bool = True
    data: T | None = None
    message: str | None = None
    pagination: Pagination | None = None
    errors: list[dict[str, Any]] | None = None


# ---------------------------------------------------------------------------
# Helpers for building responses
# ---------------------------------------------------------------------------

def ok(data: Any = None, message: str | None = None) -> dict:
    """Build a success response dict."""
    return ApiResponse(success=True, data=data, message=message).model_dump(exclude_none=True)


def error(message: str, errors: list[dict[str, Any]] | None = None) -> dict:
    """Build an error response dict."""
    return ApiResponse(success=False, message=message, errors=errors).model_dump(exclude_none=True)


def paginated(items: list, pagination: Pagination) -> dict:
    """Build a paginated success response dict."""
    return ApiResponse(success=True, data=items, pagination=pagination).model_dump(exclude_none=True)
