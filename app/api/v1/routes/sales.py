# app/api/v1/routes/sales.py
"""
Export sales: invoice computation, form transitions, save, summary and PDF
download endpoints.
"""

from __future__ import annotations

import io
import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from app.api.v1.deps import get_inventory_client
from app.api.v1.envelope import ok, paginated
from app.api.v1.schemas.sales import ComputedLineOut, ComputeResponse, FormActionRequest
from app.domain.models.sales import ComputedTransaction, SalesTransaction
from app.domain.services.invoice_computation import compute_transaction
from app.domain.services.sales_form import (
    SalesFormState,
    action_from_dict,
    apply_action,
    initial_state,
    recompute,
)
from app.domain.services.sales_service import (
    export_summary,
    render_transaction_invoice,
    save_transaction,
)
from app.infrastructure.external.inventory_api_client import InventoryAPIClient

logger = logging.getLogger("api.v1.sales")

router = APIRouter(prefix="/sales", tags=["Sales"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _computed_to_response(ct: ComputedTransaction) -> dict:
    return ComputeResponse(
        lines=[
            ComputedLineOut(
                line_no=line.line_no,
                item_id=line.item.item_id,
                description=line.item.description,
                quantity=str(line.item.quantity),
                rate=str(line.item.rate),
                amount=str(line.amount),
                taxable_value=str(line.taxable_value),
                igst_amount=str(line.igst_amount),
            )
            for line in ct.lines
        ],
        total_amount=str(ct.totals.total_amount),
        total_taxable_value=str(ct.totals.total_taxable_value),
        total_igst_amount=str(ct.totals.total_igst_amount),
        amount_in_words=ct.totals.amount_in_words,
        currency=ct.transaction.currency,
    ).model_dump()


def _state_to_dict(state: SalesFormState) -> dict:
    return {
        "transaction": state.transaction.model_dump(mode="json", by_alias=True),
        "computed": _computed_to_response(state.computed) if state.computed else None,
        "error": state.error,
    }


# ---------------------------------------------------------------------------
# Computation
# ---------------------------------------------------------------------------

@router.post("/compute", response_model=dict)
async def compute_invoice(txn: SalesTransaction):
    """Derive line amounts, taxable values, IGST and totals for a raw transaction."""
    return ok(data=_computed_to_response(compute_transaction(txn)))


# ---------------------------------------------------------------------------
# Form state
# ---------------------------------------------------------------------------

@router.get("/form/initial", response_model=dict)
async def initial_form(currency: str | None = Query(default=None, max_length=3)):
    """A blank draft with one item line."""
    return ok(data=_state_to_dict(initial_state(currency=currency)))


@router.post("/form/actions", response_model=dict)
async def form_action(body: FormActionRequest):
    """Apply one edit to the posted draft and return the recomputed state."""
    try:
        action = action_from_dict(body.action)
    except (KeyError, ValueError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid action: {e}")

    state = recompute(SalesFormState(transaction=body.transaction))
    try:
        state = apply_action(state, action)
    except (KeyError, IndexError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid field path: {e}")
    return ok(data=_state_to_dict(state))


# ---------------------------------------------------------------------------
# Persist / summary
# ---------------------------------------------------------------------------

@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def save_sales_transaction(
    txn: SalesTransaction,
    client: InventoryAPIClient = Depends(get_inventory_client),
):
    """Compute and save a transaction through the inventory API."""
    computed = await save_transaction(client, txn)
    logger.info("Saved sales transaction %s", computed.transaction.id)
    return ok(
        data={
            "transaction": computed.transaction.model_dump(mode="json", by_alias=True),
            "computed": _computed_to_response(computed),
        },
        message="Sales transaction saved successfully",
    )


@router.get("", response_model=dict)
async def list_sales_transactions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    search: str | None = Query(default=None),
    company_id: str | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias="status"),
    client: InventoryAPIClient = Depends(get_inventory_client),
):
    result = await client.list_sales_transactions(
        page=page, limit=limit, search=search, company_id=company_id, status=status_filter,
    )
    items = [t.model_dump(mode="json", by_alias=True) for t in result.items]
    return paginated(items, result.pagination)


@router.get("/search", response_model=dict)
async def search_sales_transactions(
    invoice_number: str | None = Query(default=None),
    transaction_number: str | None = Query(default=None),
    client: InventoryAPIClient = Depends(get_inventory_client),
):
    """Look up transactions by exact invoice or transaction number."""
    if invoice_number:
        found = await client.search_by_invoice_number(invoice_number)
    elif transaction_number:
        found = await client.search_by_transaction_number(transaction_number)
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide invoice_number or transaction_number",
        )
    return ok(data=[t.model_dump(mode="json", by_alias=True) for t in found])


@router.get("/summary", response_model=dict)
async def sales_export_summary(
    company_id: str | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    currency: str | None = Query(default=None, max_length=3),
    client: InventoryAPIClient = Depends(get_inventory_client),
):
    """Per-currency export totals; cancelled transactions are excluded."""
    summary = await export_summary(
        client,
        company_id=company_id,
        start_date=start_date.isoformat() if start_date else None,
        end_date=end_date.isoformat() if end_date else None,
        currency=currency,
    )
    data = {
        cur: {k: (str(v) if k != "transaction_count" else v) for k, v in bucket.items()}
        for cur, bucket in summary.items()
    }
    return ok(data=data)


# ---------------------------------------------------------------------------
# Invoice PDF
# ---------------------------------------------------------------------------

@router.get("/{transaction_id}/invoice.pdf")
async def download_invoice_pdf(
    transaction_id: str,
    client: InventoryAPIClient = Depends(get_inventory_client),
):
    """Render the export invoice of a stored transaction as a PDF download."""
    filename, pdf = await render_transaction_invoice(client, transaction_id)
    logger.info("Invoice PDF %s generated (%d bytes)", filename, len(pdf))
    return StreamingResponse(
        io.BytesIO(pdf),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
