# tests/test_inventory_api_client.py
"""Tests for the inventory REST API client (httpx MockTransport)."""

import json

import httpx
import pytest

from app.infrastructure.external.inventory_api_client import (
    InventoryAPIClient,
    InventoryAPIError,
)

BASE = "http://inventory.test/api"


def _client(handler, token="tok-123") -> InventoryAPIClient:
    return InventoryAPIClient(token=token, base_url=BASE, transport=httpx.MockTransport(handler))


def _ok(data, **extra) -> httpx.Response:
    return httpx.Response(200, json={"success": True, "data": data, **extra})


# ---------------------------------------------------------------------------
# Envelope / errors
# ---------------------------------------------------------------------------

def test_bearer_token_and_query(event_loop):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return _ok([{"_id": "c1", "companyName": "Sharma Exports"}])

    companies = event_loop.run_until_complete(_client(handler).list_companies(limit=50, is_active=True))

    assert seen["auth"] == "Bearer tok-123"
    assert seen["path"] == "/api/companies"
    assert seen["params"] == {"page": "1", "limit": "50", "isActive": "true"}
    assert companies[0].name == "Sharma Exports"


def test_no_token_sends_no_auth_header(event_loop):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return _ok([])

    event_loop.run_until_complete(_client(handler, token="").list_brokers())
    assert seen["auth"] is None


def test_success_false_raises(event_loop):
    def handler(request):
        return httpx.Response(200, json={"success": False, "message": "Company not linked"})

    with pytest.raises(InventoryAPIError) as exc:
        event_loop.run_until_complete(_client(handler).list_items())
    assert exc.value.message == "Company not linked"


def test_http_error_uses_body_message(event_loop):
    def handler(request):
        return httpx.Response(404, json={"success": False, "message": "Sales transaction not found"})

    with pytest.raises(InventoryAPIError) as exc:
        event_loop.run_until_complete(_client(handler).get_sales_transaction("missing"))
    assert exc.value.status_code == 404
    assert exc.value.message == "Sales transaction not found"


def test_http_error_without_json_body(event_loop):
    def handler(request):
        return httpx.Response(502, text="Bad Gateway")

    with pytest.raises(InventoryAPIError) as exc:
        event_loop.run_until_complete(_client(handler).list_chas())
    assert exc.value.status_code == 502
    assert "502" in exc.value.message


def test_timeout(event_loop):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(InventoryAPIError) as exc:
        event_loop.run_until_complete(_client(handler).list_companies())
    assert exc.value.message == "Inventory API timeout"


def test_connection_error(event_loop):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(InventoryAPIError) as exc:
        event_loop.run_until_complete(_client(handler).list_companies())
    assert "unreachable" in exc.value.message


def test_non_json_success_response(event_loop):
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(InventoryAPIError):
        event_loop.run_until_complete(_client(handler).list_companies())


# ---------------------------------------------------------------------------
# Sales transactions
# ---------------------------------------------------------------------------

def test_list_sales_transactions_with_filters(event_loop, api_transaction_record):
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return _ok(
            [api_transaction_record],
            pagination={"page": 1, "limit": 1, "total": 3},
        )

    page = event_loop.run_until_complete(
        _client(handler).list_sales_transactions(
            limit=1, company_id="c1", start_date="2025-01-01", currency=None,
        )
    )

    assert seen["params"] == {"page": "1", "limit": "1", "companyId": "c1", "startDate": "2025-01-01"}
    assert page.items[0].invoice_number == "EXP/2025/042"
    assert page.pagination.total_pages == 3


def test_create_sales_transaction_posts_payload(event_loop, two_item_transaction):
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        body = json.loads(request.content)
        seen["body"] = body
        return httpx.Response(201, json={"success": True, "data": {**body, "_id": "new1", "invoiceNumber": "EXP-1"}})

    created = event_loop.run_until_complete(
        _client(handler).create_sales_transaction(two_item_transaction.to_api_payload())
    )

    assert seen["method"] == "POST"
    assert seen["path"] == "/api/sales-transactions"
    assert seen["body"]["items"][0]["exchangeRate"] == "83"
    assert created.id == "new1"
    assert created.invoice_number == "EXP-1"


def test_update_and_delete(event_loop, api_transaction_record):
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path))
        if request.method == "DELETE":
            return _ok(None, message="Deleted")
        return _ok(api_transaction_record)

    client = _client(handler)
    event_loop.run_until_complete(client.update_sales_transaction("t1", {"remarks": "x"}))
    event_loop.run_until_complete(client.delete_sales_transaction("t1"))
    assert calls == [("PUT", "/api/sales-transactions/t1"), ("DELETE", "/api/sales-transactions/t1")]


def test_search_by_invoice_number_accepts_single_record(event_loop, api_transaction_record):
    def handler(request):
        assert request.url.path == "/api/sales-transactions/search/invoice/EXP-42"
        return _ok(api_transaction_record)

    found = event_loop.run_until_complete(_client(handler).search_by_invoice_number("EXP-42"))
    assert [t.id for t in found] == ["665f1c2e9b1d4a0012ab34cd"]


def test_search_by_transaction_number(event_loop):
    def handler(request):
        assert request.url.path == "/api/sales-transactions/search/transaction/TXN-1"
        return _ok([])

    assert event_loop.run_until_complete(_client(handler).search_by_transaction_number("TXN-1")) == []


def test_search_values_are_encoded_as_one_segment(event_loop):
    seen = []

    def handler(request):
        seen.append(request.url.raw_path)
        return _ok([])

    client = _client(handler)
    event_loop.run_until_complete(client.search_by_invoice_number("EXP/2025/042"))
    event_loop.run_until_complete(client.search_by_transaction_number("TXN 7?#1"))
    assert seen == [
        b"/api/sales-transactions/search/invoice/EXP%2F2025%2F042",
        b"/api/sales-transactions/search/transaction/TXN%207%3F%231",
    ]


def test_record_id_is_encoded(event_loop, api_transaction_record):
    seen = {}

    def handler(request):
        seen["raw_path"] = request.url.raw_path
        return _ok(api_transaction_record)

    event_loop.run_until_complete(_client(handler).get_sales_transaction("a/b"))
    assert seen["raw_path"] == b"/api/sales-transactions/a%2Fb"
