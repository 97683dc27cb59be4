# app/infrastructure/external/inventory_api_client.py
"""
Inventory REST API client (companies, parties, items, brokers, CHAs and
sales transactions).

Every response uses the envelope::

    {"success": bool, "data": ..., "message": str?, "pagination": {...}?}

Authentication: ``Authorization: Bearer <token>`` on every call.
"""

from __future__ import annotations

import logging
from typing import Any, Dict
from urllib.parse import quote

import httpx

from app.core.config import settings
from app.domain.models.masters import (
    Broker,
    Cha,
    Company,
    CreditParty,
    DebitParty,
    Item,
    Page,
    Pagination,
)
from app.domain.models.sales import SalesTransaction

logger = logging.getLogger("inventory_api_client")

RESOURCES: Dict[str, str] = {
    "companies": "/companies",
    "debit_parties": "/debit-parties",
    "credit_parties": "/master-data/credit-parties",
    "items": "/master-data/items",
    "brokers": "/master-data/brokers",
    "chas": "/master-data/chas",
    "sales_transactions": "/sales-transactions",
}

# camelCase query names used by the API for sales-transaction filters
_SALES_FILTERS = {
    "company_id": "companyId",
    "start_date": "startDate",
    "end_date": "endDate",
    "currency": "currency",
    "status": "status",
}


def _segment(value: Any) -> str:
    """Encode ``value`` as one path segment ("/", "?" and "#" included)."""
    return quote(str(value), safe="")


class InventoryAPIError(Exception):
    """Raised when the inventory API fails or answers ``success: false``."""

    def __init__(self, message: str, status_code: int = 0, response: dict | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response or {}


class InventoryAPIClient:
    """Async client for the inventory REST API."""

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base = (base_url or settings.INVENTORY_API_BASE_URL).rstrip("/")
        self.token = token if token is not None else settings.INVENTORY_API_TOKEN
        self.timeout = timeout or settings.INVENTORY_API_TIMEOUT
        self._transport = transport

    @classmethod
    def is_configured(cls) -> bool:
        return bool(settings.INVENTORY_API_BASE_URL)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json_body: dict | None = None,
    ) -> Dict[str, Any]:
        """Make an HTTP request and return the decoded envelope."""
        url = f"{self.base}{path}"
        logger.info("Inventory API %s %s", method, path)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                r = await client.request(
                    method, url, headers=self._headers(), params=params, json=json_body,
                )
                r.raise_for_status()
            except httpx.HTTPStatusError as exc:
                body: dict = {}
                try:
                    body = exc.response.json()
                except ValueError:
                    pass
                logger.error("Inventory API HTTP error: %s %s -> %d", method, path, exc.response.status_code)
                message = body.get("message") if isinstance(body, dict) else None
                raise InventoryAPIError(
                    message or f"Inventory API error: {exc.response.status_code}",
                    status_code=exc.response.status_code,
                    response=body if isinstance(body, dict) else {},
                ) from exc
            except httpx.TimeoutException as exc:
                raise InventoryAPIError("Inventory API timeout") from exc
            except httpx.HTTPError as exc:
                raise InventoryAPIError(f"Inventory API unreachable: {exc}") from exc

        try:
            body = r.json()
        except ValueError as exc:
            raise InventoryAPIError("Inventory API returned a non-JSON response", status_code=r.status_code) from exc

        if not isinstance(body, dict) or not body.get("success", False):
            message = body.get("message") if isinstance(body, dict) else None
            raise InventoryAPIError(
                message or "Inventory API request failed",
                status_code=r.status_code,
                response=body if isinstance(body, dict) else {},
            )
        return body

    # ----------------------------------------------------------------
    # Generic resource operations
    # ----------------------------------------------------------------

    async def list_resource(
        self,
        resource: str,
        page: int = 1,
        limit: int = 100,
        search: str | None = None,
        is_active: bool | None = None,
        **filters: Any,
    ) -> tuple[list[dict], Pagination]:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if search:
            params["search"] = search
        if is_active is not None:
            params["isActive"] = "true" if is_active else "false"
        params.update({k: v for k, v in filters.items() if v not in (None, "")})

        body = await self._request("GET", RESOURCES[resource], params=params)
        data = body.get("data") or []
        if not isinstance(data, list):
            data = [data]
        return data, Pagination.from_api(body.get("pagination"), item_count=len(data))

    async def get_resource(self, resource: str, record_id: str) -> dict:
        body = await self._request("GET", f"{RESOURCES[resource]}/{_segment(record_id)}")
        return body.get("data") or {}

    async def create_resource(self, resource: str, payload: dict) -> dict:
        body = await self._request("POST", RESOURCES[resource], json_body=payload)
        return body.get("data") or {}

    async def update_resource(self, resource: str, record_id: str, payload: dict) -> dict:
        body = await self._request("PUT", f"{RESOURCES[resource]}/{_segment(record_id)}", json_body=payload)
        return body.get("data") or {}

    async def delete_resource(self, resource: str, record_id: str) -> None:
        await self._request("DELETE", f"{RESOURCES[resource]}/{_segment(record_id)}")

    # ----------------------------------------------------------------
    # Master data
    # ----------------------------------------------------------------

    async def list_companies(self, **kwargs) -> list[Company]:
        data, _ = await self.list_resource("companies", **kwargs)
        return [Company.from_api(r) for r in data]

    async def list_debit_parties(self, **kwargs) -> list[DebitParty]:
        data, _ = await self.list_resource("debit_parties", **kwargs)
        return [DebitParty.from_api(r) for r in data]

    async def list_credit_parties(self, **kwargs) -> list[CreditParty]:
        data, _ = await self.list_resource("credit_parties", **kwargs)
        return [CreditParty.from_api(r) for r in data]

    async def list_items(self, **kwargs) -> list[Item]:
        data, _ = await self.list_resource("items", **kwargs)
        return [Item.from_api(r) for r in data]

    async def list_brokers(self, **kwargs) -> list[Broker]:
        data, _ = await self.list_resource("brokers", **kwargs)
        return [Broker.from_api(r) for r in data]

    async def list_chas(self, **kwargs) -> list[Cha]:
        data, _ = await self.list_resource("chas", **kwargs)
        return [Cha.from_api(r) for r in data]

    # ----------------------------------------------------------------
    # Sales transactions
    # ----------------------------------------------------------------

    async def list_sales_transactions(
        self,
        page: int = 1,
        limit: int = 100,
        search: str | None = None,
        **filters: Any,
    ) -> Page[SalesTransaction]:
        api_filters = {_SALES_FILTERS[k]: v for k, v in filters.items() if k in _SALES_FILTERS}
        data, pagination = await self.list_resource(
            "sales_transactions", page=page, limit=limit, search=search, **api_filters,
        )
        return Page[SalesTransaction](
            items=[SalesTransaction.from_api(r) for r in data],
            pagination=pagination,
        )

    async def get_sales_transaction(self, transaction_id: str) -> SalesTransaction:
        return SalesTransaction.from_api(await self.get_resource("sales_transactions", transaction_id))

    async def create_sales_transaction(self, payload: dict) -> SalesTransaction:
        return SalesTransaction.from_api(await self.create_resource("sales_transactions", payload))

    async def update_sales_transaction(self, transaction_id: str, payload: dict) -> SalesTransaction:
        return SalesTransaction.from_api(
            await self.update_resource("sales_transactions", transaction_id, payload)
        )

    async def delete_sales_transaction(self, transaction_id: str) -> None:
        await self.delete_resource("sales_transactions", transaction_id)

    async def _search(self, path: str) -> list[SalesTransaction]:
        body = await self._request("GET", path)
        data = body.get("data") or []
        if isinstance(data, dict):
            data = [data]
        return [SalesTransaction.from_api(r) for r in data]

    async def search_by_invoice_number(self, invoice_number: str) -> list[SalesTransaction]:
        return await self._search(f"/sales-transactions/search/invoice/{_segment(invoice_number)}")

    async def search_by_transaction_number(self, transaction_number: str) -> list[SalesTransaction]:
        return await self._search(f"/sales-transactions/search/transaction/{_segment(transaction_number)}")
