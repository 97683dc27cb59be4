# app/domain/services/master_data.py
"""
Load the master records that populate the sales form and the invoice.

The six list reads are independent, so they run concurrently; one failing
read is recorded and does not hold up the rest.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from app.domain.models.masters import (
    Broker,
    Cha,
    Company,
    CreditParty,
    DebitParty,
    InvoiceParties,
    Item,
)
from app.domain.models.sales import SalesTransaction
from app.infrastructure.external.inventory_api_client import InventoryAPIClient, InventoryAPIError

logger = logging.getLogger("master_data")

MASTER_RESOURCES = ("companies", "debit_parties", "credit_parties", "items", "brokers", "chas")


@dataclass
class MasterDataBundle:
    companies: list[Company] = field(default_factory=list)
    debit_parties: list[DebitParty] = field(default_factory=list)
    credit_parties: list[CreditParty] = field(default_factory=list)
    items: list[Item] = field(default_factory=list)
    brokers: list[Broker] = field(default_factory=list)
    chas: list[Cha] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
    ready: bool = False

    def to_dict(self) -> dict:
        return {
            name: [r.model_dump(mode="json") for r in getattr(self, name)]
            for name in MASTER_RESOURCES
        } | {"errors": dict(self.errors), "ready": self.ready}


def _by_id(records, record_id):
    if not record_id:
        return None
    return next((r for r in records if r.id == record_id), None)


async def load_master_data(client: InventoryAPIClient, limit: int = 100) -> MasterDataBundle:
    """Fetch all master lists concurrently.

    ``bundle.ready`` is set once every read has finished, whether it
    succeeded or not; failures are listed in ``bundle.errors``.
    """
    loaders = {
        "companies": client.list_companies,
        "debit_parties": client.list_debit_parties,
        "credit_parties": client.list_credit_parties,
        "items": client.list_items,
        "brokers": client.list_brokers,
        "chas": client.list_chas,
    }
    results = await asyncio.gather(
        *(loader(limit=limit) for loader in loaders.values()),
        return_exceptions=True,
    )

    bundle = MasterDataBundle()
    for name, result in zip(loaders, results):
        if isinstance(result, InventoryAPIError):
            logger.warning("Master data %s failed: %s", name, result)
            bundle.errors[name] = result.message
        elif isinstance(result, BaseException):
            if isinstance(result, asyncio.CancelledError):
                raise result
            logger.error("Master data %s failed unexpectedly: %r", name, result)
            bundle.errors[name] = "Failed to load"
        else:
            setattr(bundle, name, result)

    bundle.ready = True
    logger.info(
        "Master data loaded: %s",
        ", ".join(f"{n}={len(getattr(bundle, n))}" for n in MASTER_RESOURCES),
    )
    return bundle


def resolve_parties(txn: SalesTransaction, bundle: MasterDataBundle) -> InvoiceParties:
    """Look up the master records a transaction references by id."""
    return InvoiceParties(
        company=_by_id(bundle.companies, txn.company_id),
        debit_party=_by_id(bundle.debit_parties, txn.debit_party_id),
        credit_party=_by_id(bundle.credit_parties, txn.credit_party_id),
        broker=_by_id(bundle.brokers, txn.broker_id),
        cha=_by_id(bundle.chas, txn.cha_id),
    )
