# app/domain/services/sales_service.py
"""
Sales-transaction use cases: save through the inventory API, build and
render the export invoice, summarize exports.

Errors from the inventory API (``InventoryAPIError``) are not caught here;
they reach the caller unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from app.domain.exceptions import ComputationError
from app.domain.models.sales import ComputedTransaction, SalesTransaction, TransactionStatus
from app.domain.services.invoice_computation import (
    compute_transaction,
    summarize_exports,
    validate_for_completion,
)
from app.domain.services.invoice_document import InvoiceDocument, build_invoice_document
from app.domain.services.invoice_renderer import invoice_filename, render_invoice_pdf_async
from app.domain.services.master_data import load_master_data, resolve_parties
from app.infrastructure.external.inventory_api_client import InventoryAPIClient

logger = logging.getLogger("sales_service")

_SUMMARY_PAGE_SIZE = 100


def build_payload(computed: ComputedTransaction, status: TransactionStatus) -> dict:
    """API payload: raw fields plus derived per-line values and totals."""
    payload = computed.transaction.to_api_payload()
    payload["status"] = status.value
    payload["items"] = [
        {
            **line.item.model_dump(mode="json", by_alias=True),
            "amount": str(line.amount),
            "taxableValue": str(line.taxable_value),
            "igstAmount": str(line.igst_amount),
        }
        for line in computed.lines
    ]
    payload.update(computed.totals_payload())
    return payload


async def save_transaction(
    client: InventoryAPIClient,
    txn: SalesTransaction,
) -> ComputedTransaction:
    """Compute, then create (or update) the transaction upstream.

    Requires at least one item. A cancelled transaction keeps its status;
    anything else is saved as completed and gets its invoice number from
    the API.
    """
    computed = validate_for_completion(txn)
    status = TransactionStatus.CANCELLED if txn.status == TransactionStatus.CANCELLED else TransactionStatus.COMPLETED
    payload = build_payload(computed, status)

    if txn.id:
        persisted = await client.update_sales_transaction(txn.id, payload)
    else:
        persisted = await client.create_sales_transaction(payload)

    logger.info(
        "Sales transaction saved: id=%s invoice=%s total=%s %s",
        persisted.id, persisted.invoice_number, computed.totals.total_amount, txn.currency,
    )
    return compute_transaction(persisted)


async def prepare_invoice_document(
    client: InventoryAPIClient,
    transaction_id: str,
) -> tuple[SalesTransaction, InvoiceDocument]:
    """Fetch the transaction and master data, compute and lay out the invoice."""
    txn, bundle = await asyncio.gather(
        client.get_sales_transaction(transaction_id),
        load_master_data(client),
    )
    computed = compute_transaction(txn)
    return txn, build_invoice_document(computed, resolve_parties(txn, bundle))


async def render_transaction_invoice(
    client: InventoryAPIClient,
    transaction_id: str,
) -> tuple[str, bytes]:
    """Return ``(filename, pdf_bytes)`` for a stored transaction."""
    txn, document = await prepare_invoice_document(client, transaction_id)
    filename = invoice_filename(txn)
    pdf = await render_invoice_pdf_async(document, title=filename)
    return filename, pdf


async def export_summary(client: InventoryAPIClient, **filters: Any) -> dict[str, dict]:
    """Per-currency export totals over every matching transaction."""
    computed: list[ComputedTransaction] = []
    page = 1
    while True:
        result = await client.list_sales_transactions(page=page, limit=_SUMMARY_PAGE_SIZE, **filters)
        for txn in result.items:
            try:
                computed.append(compute_transaction(txn))
            except ComputationError as e:
                logger.warning("Skipping transaction %s in export summary: %s", txn.id, e)
        if page >= result.pagination.total_pages or not result.items:
            break
        page += 1

    return summarize_exports(computed)
