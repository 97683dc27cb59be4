"""Tests for concurrent master-data loading."""

from unittest.mock import AsyncMock

from app.domain.models.masters import Broker, Company, CreditParty, DebitParty, Item
from app.domain.models.sales import SalesTransaction
from app.domain.services.master_data import MASTER_RESOURCES, load_master_data, resolve_parties
from app.infrastructure.external.inventory_api_client import InventoryAPIError


def _mock_client():
    client = AsyncMock()
    client.list_companies.return_value = [Company(id="c1", name="Sharma Exports")]
    client.list_debit_parties.return_value = [DebitParty(id="d1", name="Gulf Traders")]
    client.list_credit_parties.return_value = [CreditParty(id="cp1", name="Dubai Imports")]
    client.list_items.return_value = [Item(id="i1", name="Yarn")]
    client.list_brokers.return_value = [Broker(id="b1", name="R. Mehta")]
    client.list_chas.return_value = []
    return client


def test_loads_every_resource(event_loop):
    client = _mock_client()
    bundle = event_loop.run_until_complete(load_master_data(client, limit=25))

    assert bundle.ready is True
    assert bundle.errors == {}
    assert bundle.companies[0].name == "Sharma Exports"
    assert bundle.chas == []
    client.list_items.assert_awaited_once_with(limit=25)


def test_one_failure_does_not_block_others(event_loop):
    client = _mock_client()
    client.list_brokers.side_effect = InventoryAPIError("Brokers service down", status_code=503)
    client.list_chas.side_effect = RuntimeError("boom")

    bundle = event_loop.run_until_complete(load_master_data(client))

    assert bundle.ready is True
    assert bundle.errors == {"brokers": "Brokers service down", "chas": "Failed to load"}
    assert bundle.brokers == []
    assert len(bundle.items) == 1
    assert len(bundle.debit_parties) == 1


def test_to_dict(event_loop):
    bundle = event_loop.run_until_complete(load_master_data(_mock_client()))
    data = bundle.to_dict()
    assert set(data) == set(MASTER_RESOURCES) | {"errors", "ready"}
    assert data["companies"][0]["id"] == "c1"
    assert data["ready"] is True


def test_resolve_parties(event_loop):
    bundle = event_loop.run_until_complete(load_master_data(_mock_client()))
    txn = SalesTransaction(company_id="c1", debit_party_id="d1", broker_id="missing")
    parties = resolve_parties(txn, bundle)

    assert parties.company.name == "Sharma Exports"
    assert parties.debit_party.name == "Gulf Traders"
    assert parties.credit_party is None
    assert parties.broker is None
