"""Shared test fixtures for the export invoice service test suite."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from app.domain.models.sales import SalesItem, SalesTransaction


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def two_item_transaction() -> SalesTransaction:
    """USD export with two lines at 83 INR/USD and 18% IGST."""
    return SalesTransaction(
        invoice_number="EXP-2025-001",
        transaction_number="TXN-0001",
        transaction_date=date(2025, 1, 15),
        currency="USD",
        company_id="c1",
        items=(
            SalesItem(
                item_id="i1",
                hsn_code="52010010",
                description="Raw cotton bales",
                quantity=Decimal("100"),
                unit="KGS",
                rate=Decimal("10"),
                exchange_rate=Decimal("83"),
                igst_rate=Decimal("18"),
            ),
            SalesItem(
                item_id="i2",
                hsn_code="52051100",
                description="Cotton yarn",
                quantity=Decimal("50"),
                unit="KGS",
                rate=Decimal("20"),
                exchange_rate=Decimal("83"),
                igst_rate=Decimal("18"),
            ),
        ),
    )


@pytest.fixture
def api_transaction_record() -> dict:
    """A sales transaction as the inventory API returns it."""
    return {
        "_id": "665f1c2e9b1d4a0012ab34cd",
        "invoiceNumber": "EXP/2025/042",
        "transactionNumber": "TXN-0042",
        "transactionDate": "2025-02-03T00:00:00.000Z",
        "currency": "usd",
        "status": "completed",
        "companyId": "c1",
        "debitPartyId": "d1",
        "creditPartyId": "cp1",
        "brokerId": "b1",
        "chaId": "ch1",
        "consignee": {"name": "Gulf Traders LLC", "address": "Deira, Dubai", "country": "UAE"},
        "exportSchemes": {"drawback": True, "rodtep": True},
        "shippingBill": {"billNo": "SB-7781", "billDate": "2025-02-05"},
        "items": [
            {
                "itemId": "i1",
                "hsnCode": "52010010",
                "description": "Raw cotton bales",
                "quantity": "12.5",
                "unit": "MT",
                "rate": "1450.40",
                "exchangeRate": "83.25",
                "igstRate": "0",
            }
        ],
        "createdAt": "2025-02-03T10:11:12.000Z",
    }
