# app/domain/services/invoice_computation.py
"""
Export invoice computation engine.

Pure functions: amount = quantity x rate, taxable value = amount x exchange
rate (home currency), IGST = taxable value x IGST rate / 100.

Rounding: every derived line value is rounded half-up to 2 decimals where it
is computed (taxable value from the rounded amount, IGST from the rounded
taxable value). Totals are exact sums of the rounded line values, so they do
not depend on line order.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, Overflow
from typing import Any

from app.domain.exceptions import ComputationError
from app.domain.models.sales import (
    ComputedLine,
    ComputedTransaction,
    InvoiceTotals,
    SalesItem,
    SalesTransaction,
    TransactionStatus,
)
from app.domain.services.amount_words import MAX_AMOUNT, amount_to_words

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def round_money(value: Decimal) -> Decimal:
    """Round half-up to 2 decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _where(field: str, item_index: int | None) -> str:
    if item_index is None:
        return field
    return f"{field} of item {item_index + 1}"


def to_decimal(value: Any, field: str, item_index: int | None = None) -> Decimal:
    """Convert ``value`` to a finite Decimal or raise ComputationError."""
    if isinstance(value, bool) or value is None:
        raise ComputationError(
            f"{_where(field, item_index)} must be a number", field=field, item_index=item_index
        )
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise ComputationError(
            f"{_where(field, item_index)} must be a number, got {value!r}",
            field=field,
            item_index=item_index,
        )
    if not d.is_finite():
        raise ComputationError(
            f"{_where(field, item_index)} must be a finite number", field=field, item_index=item_index
        )
    return d


def _non_negative(value: Any, field: str, item_index: int | None) -> Decimal:
    d = to_decimal(value, field, item_index)
    if d < 0:
        raise ComputationError(
            f"{_where(field, item_index)} cannot be negative", field=field, item_index=item_index
        )
    return d


def _money_product(a: Decimal, b: Decimal, field: str, item_index: int | None) -> Decimal:
    """Return ``a x b`` rounded to money; products must stay below MAX_AMOUNT."""
    try:
        product = a * b
    except Overflow:
        product = None
    if product is None or product >= MAX_AMOUNT:
        raise ComputationError(
            f"{_where(field, item_index)} gives a value too large to invoice",
            field=field,
            item_index=item_index,
        )
    return round_money(product)


def compute_line_amount(quantity: Any, rate: Any, *, item_index: int | None = None) -> Decimal:
    """amount = quantity x rate, in transaction currency."""
    q = _non_negative(quantity, "quantity", item_index)
    r = _non_negative(rate, "rate", item_index)
    return _money_product(q, r, "quantity" if q >= r else "rate", item_index)


def compute_line_tax(
    amount: Any,
    exchange_rate: Any,
    igst_rate: Any,
    *,
    item_index: int | None = None,
) -> tuple[Decimal, Decimal]:
    """Return ``(taxable_value, igst_amount)`` in home currency."""
    amt = _non_negative(amount, "amount", item_index)
    fx = to_decimal(exchange_rate, "exchange_rate", item_index)
    if fx <= 0:
        raise ComputationError(
            f"{_where('exchange_rate', item_index)} must be greater than zero",
            field="exchange_rate",
            item_index=item_index,
        )
    rate = to_decimal(igst_rate, "igst_rate", item_index)
    if rate < 0 or rate > HUNDRED:
        raise ComputationError(
            f"{_where('igst_rate', item_index)} must be between 0 and 100",
            field="igst_rate",
            item_index=item_index,
        )

    taxable_value = _money_product(amt, fx, "exchange_rate", item_index)
    igst_amount = round_money(taxable_value * rate / HUNDRED)
    return taxable_value, igst_amount


def compute_line(item: SalesItem, index: int) -> ComputedLine:
    amount = compute_line_amount(item.quantity, item.rate, item_index=index)
    taxable_value, igst_amount = compute_line_tax(
        amount, item.exchange_rate, item.igst_rate, item_index=index
    )
    return ComputedLine(
        line_no=index + 1,
        item=item,
        amount=amount,
        taxable_value=taxable_value,
        igst_amount=igst_amount,
    )


def compute_totals(lines: Iterable[ComputedLine]) -> tuple[Decimal, Decimal, Decimal]:
    """Sum already-rounded line values: ``(amount, taxable_value, igst_amount)``."""
    total_amount = ZERO
    total_taxable = ZERO
    total_igst = ZERO
    for line in lines:
        total_amount += line.amount
        total_taxable += line.taxable_value
        total_igst += line.igst_amount
    return total_amount, total_taxable, total_igst


def compute_transaction(txn: SalesTransaction) -> ComputedTransaction:
    """Compute every derived figure for ``txn``.

    All-or-nothing: the first invalid line raises ComputationError and
    nothing is returned. Works the same for draft, completed and cancelled
    transactions.
    """
    lines = tuple(compute_line(item, i) for i, item in enumerate(txn.items))
    total_amount, total_taxable, total_igst = compute_totals(lines)

    return ComputedTransaction(
        transaction=txn,
        lines=lines,
        totals=InvoiceTotals(
            total_amount=total_amount,
            total_taxable_value=total_taxable,
            total_igst_amount=total_igst,
            amount_in_words=amount_to_words(total_amount, txn.currency),
        ),
    )


def validate_for_completion(txn: SalesTransaction) -> ComputedTransaction:
    """Compute ``txn`` and require at least one item line."""
    if not txn.items:
        raise ComputationError("Add at least one item before saving the invoice", field="items")
    return compute_transaction(txn)


# ---------------------------------------------------------------------------
# Export summary
# ---------------------------------------------------------------------------

def summarize_exports(computed: Iterable[ComputedTransaction]) -> dict[str, dict]:
    """Per-currency totals across transactions. Cancelled ones are skipped."""
    summary: dict[str, dict] = {}
    for ct in computed:
        if ct.transaction.status == TransactionStatus.CANCELLED:
            continue
        bucket = summary.setdefault(
            ct.transaction.currency,
            {
                "transaction_count": 0,
                "total_amount": ZERO,
                "total_taxable_value": ZERO,
                "total_igst_amount": ZERO,
            },
        )
        bucket["transaction_count"] += 1
        bucket["total_amount"] += ct.totals.total_amount
        bucket["total_taxable_value"] += ct.totals.total_taxable_value
        bucket["total_igst_amount"] += ct.totals.total_igst_amount
    return summary
