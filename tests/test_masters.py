"""Tests for master-data and sales-transaction normalization."""

from datetime import date
from decimal import Decimal

from app.domain.models.masters import (
    Broker,
    Cha,
    Company,
    CreditParty,
    DebitParty,
    Item,
    Pagination,
)
from app.domain.models.sales import SalesTransaction, TransactionStatus


class TestMasterRecords:

    def test_company_address_lines_and_aliases(self):
        c = Company.from_api(
            {
                "_id": "c1",
                "companyName": "Sharma Exports Pvt Ltd",
                "firmAddress1": "Plot 12, GIDC",
                "firmAddress2": "",
                "firmAddress3": "Ahmedabad",
                "pinCode": "380015",
                "gstNo": "24AABCS1234F1Z5",
                "emailId": "accounts@sharma.example",
            }
        )
        assert c.id == "c1"
        assert c.name == "Sharma Exports Pvt Ltd"
        assert c.address_lines == ("Plot 12, GIDC", "Ahmedabad")
        assert c.email == "accounts@sharma.example"
        assert c.is_active is True

    def test_debit_party_epcg_licenses(self):
        d = DebitParty.from_api(
            {
                "id": "d1",
                "partyName": "Gulf Traders",
                "iecNo": "0312345678",
                "epcgLicNo": {"lic1": "EPCG-1", "lic2": "", "lic3": "EPCG-3"},
                "isActive": False,
            }
        )
        assert d.epcg_licenses == ("EPCG-1", "EPCG-3")
        assert d.iec_no == "0312345678"
        assert d.is_active is False

    def test_credit_party_falls_back_to_plain_address(self):
        cp = CreditParty.from_api({"_id": "cp1", "name": "Dubai Imports", "address": "Deira", "country": "UAE"})
        assert cp.name == "Dubai Imports"
        assert cp.address_lines == ("Deira",)
        assert cp.country == "UAE"

    def test_item_rate_fallbacks(self):
        nested = Item.from_api({"_id": "i1", "itemName": "Yarn", "itemRate": {"inr": 250, "usd": "3.1"}})
        flat = Item.from_api({"id": "i2", "name": "Bales", "purchasePrice": "1000", "sellingPrice": "12.5", "status": "inactive"})

        assert nested.rate_for("INR") == Decimal("250")
        assert nested.rate_for("usd") == Decimal("3.1")
        assert flat.rate_for("INR") == Decimal("1000")
        assert flat.rate_for("EUR") == Decimal("12.5")
        assert flat.is_active is False

    def test_item_with_garbage_rate(self):
        item = Item.from_api({"_id": "i3", "itemName": "X", "itemRate": {"usd": "n/a"}})
        assert item.rate_for("USD") is None

    def test_zero_item_rate_is_kept(self):
        item = Item.from_api(
            {"_id": "i4", "itemName": "Samples", "itemRate": {"inr": 0, "usd": "0"}, "purchasePrice": "900", "sellingPrice": "11"}
        )
        assert item.rate_for("INR") == Decimal("0")
        assert item.rate_for("USD") == Decimal("0")

    def test_is_active_strings(self):
        assert Broker.from_api({"_id": "b2", "brokerName": "K", "isActive": "false"}).is_active is False
        assert Broker.from_api({"_id": "b3", "brokerName": "K", "isActive": "0"}).is_active is False
        assert Broker.from_api({"_id": "b4", "brokerName": "K", "isActive": "true"}).is_active is True
        assert Broker.from_api({"_id": "b5", "brokerName": "K", "status": "Inactive"}).is_active is False
        assert Broker.from_api({"_id": "b6", "brokerName": "K"}).is_active is True

    def test_broker_and_cha_names(self):
        assert Broker.from_api({"_id": "b1", "brokerName": "R. Mehta"}).name == "R. Mehta"
        cha = Cha.from_api({"_id": "ch1", "chaName": "Swift Clearing", "licenseNumber": "CHA/123"})
        assert cha.name == "Swift Clearing"
        assert cha.license_no == "CHA/123"


class TestPagination:

    def test_canonical_keys(self):
        p = Pagination.from_api({"currentPage": 2, "totalPages": 5, "totalItems": 48, "itemsPerPage": 10})
        assert (p.current_page, p.total_pages, p.total_items, p.items_per_page) == (2, 5, 48, 10)

    def test_short_keys_compute_total_pages(self):
        p = Pagination.from_api({"page": 1, "total": 21, "limit": 10})
        assert p.total_pages == 3
        assert p.items_per_page == 10

    def test_missing_pagination_uses_item_count(self):
        p = Pagination.from_api(None, item_count=4)
        assert p.current_page == 1
        assert p.total_items == 4
        assert p.total_pages == 1

    def test_empty_result_has_one_page(self):
        assert Pagination.from_api({"total": 0, "limit": 10}).total_pages == 1


class TestSalesTransactionRecord:

    def test_from_api(self, api_transaction_record):
        txn = SalesTransaction.from_api(api_transaction_record)
        assert txn.id == "665f1c2e9b1d4a0012ab34cd"
        assert txn.invoice_number == "EXP/2025/042"
        assert txn.transaction_date == date(2025, 2, 3)
        assert txn.currency == "USD"
        assert txn.status == TransactionStatus.COMPLETED
        assert txn.shipping_bill.bill_date == date(2025, 2, 5)
        assert txn.export_schemes.enabled() == ["Drawback", "RoDTEP"]
        assert txn.items[0].quantity == Decimal("12.5")
        assert txn.items[0].exchange_rate == Decimal("83.25")

    def test_payload_is_camel_case_without_server_ids(self, api_transaction_record):
        payload = SalesTransaction.from_api(api_transaction_record).to_api_payload()
        assert "id" not in payload
        assert "invoiceNumber" not in payload
        assert payload["debitPartyId"] == "d1"
        assert payload["transactionDate"] == "2025-02-03"
        assert payload["items"][0]["igstRate"] == "0"
