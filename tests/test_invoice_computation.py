# tests/test_invoice_computation.py
"""Tests for the export invoice computation engine."""

from decimal import Decimal

import pytest

from app.domain.exceptions import ComputationError
from app.domain.models.sales import SalesItem, SalesTransaction, TransactionStatus
from app.domain.services.invoice_computation import (
    compute_line_amount,
    compute_line_tax,
    compute_transaction,
    round_money,
    summarize_exports,
    to_decimal,
    validate_for_completion,
)


class TestLineFormulas:

    def test_amount_is_quantity_times_rate(self):
        assert compute_line_amount(Decimal("100"), Decimal("10")) == Decimal("1000.00")

    def test_amount_rounds_half_up(self):
        # 3 x 0.335 = 1.005
        assert compute_line_amount("3", "0.335") == Decimal("1.01")

    def test_zero_quantity_gives_zero(self):
        assert compute_line_amount(0, "99.99") == Decimal("0.00")

    def test_tax_uses_rounded_taxable_value(self):
        taxable, igst = compute_line_tax(Decimal("1000.00"), Decimal("83"), Decimal("18"))
        assert taxable == Decimal("83000.00")
        assert igst == Decimal("14940.00")

    def test_tax_rounding(self):
        taxable, igst = compute_line_tax(Decimal("1.01"), Decimal("1"), Decimal("18"))
        assert taxable == Decimal("1.01")
        assert igst == Decimal("0.18")

    def test_zero_igst(self):
        _, igst = compute_line_tax(Decimal("500"), Decimal("82.5"), Decimal("0"))
        assert igst == Decimal("0.00")

    def test_round_money(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("2.344")) == Decimal("2.34")


class TestInvalidInputs:

    def test_negative_quantity(self):
        with pytest.raises(ComputationError) as exc:
            compute_line_amount("-1", "10", item_index=2)
        assert exc.value.field == "quantity"
        assert exc.value.item_index == 2

    def test_non_numeric_rate(self):
        with pytest.raises(ComputationError) as exc:
            compute_line_amount("5", "ten")
        assert exc.value.field == "rate"
        assert exc.value.item_index is None

    def test_nan_rejected(self):
        with pytest.raises(ComputationError):
            to_decimal(Decimal("NaN"), "rate")

    def test_bool_and_none_rejected(self):
        with pytest.raises(ComputationError):
            to_decimal(True, "quantity")
        with pytest.raises(ComputationError):
            to_decimal(None, "quantity")

    def test_exchange_rate_must_be_positive(self):
        with pytest.raises(ComputationError) as exc:
            compute_line_tax("100", "0", "18", item_index=0)
        assert exc.value.field == "exchange_rate"

    def test_igst_rate_above_hundred(self):
        with pytest.raises(ComputationError) as exc:
            compute_line_tax("100", "83", "101")
        assert exc.value.field == "igst_rate"

    def test_huge_amount_is_rejected(self):
        with pytest.raises(ComputationError) as exc:
            compute_line_amount(Decimal("1e27"), Decimal("1"), item_index=2)
        assert exc.value.field == "quantity"
        assert exc.value.item_index == 2

    def test_huge_rate_names_rate(self):
        with pytest.raises(ComputationError) as exc:
            compute_line_amount("2", "1e20")
        assert exc.value.field == "rate"

    def test_exponent_overflow_is_rejected(self):
        with pytest.raises(ComputationError):
            compute_line_amount("9e999999", "9e999999", item_index=0)

    def test_huge_taxable_value_is_rejected(self):
        with pytest.raises(ComputationError) as exc:
            compute_line_tax("1000000000", "1e10", "18", item_index=0)
        assert exc.value.field == "exchange_rate"
        assert exc.value.item_index == 0

    def test_error_to_dict(self):
        err = ComputationError("quantity of item 1 cannot be negative", field="quantity", item_index=0)
        assert err.to_dict() == {
            "message": "quantity of item 1 cannot be negative",
            "field": "quantity",
            "item_index": 0,
        }


class TestComputeTransaction:

    def test_two_item_totals(self, two_item_transaction):
        ct = compute_transaction(two_item_transaction)
        assert [line.amount for line in ct.lines] == [Decimal("1000.00"), Decimal("1000.00")]
        assert ct.totals.total_amount == Decimal("2000.00")
        assert ct.totals.total_taxable_value == Decimal("166000.00")
        assert ct.totals.total_igst_amount == Decimal("29880.00")
        assert ct.totals.amount_in_words == "TWO THOUSAND AND 00/100 US DOLLARS"

    def test_line_numbers_start_at_one(self, two_item_transaction):
        ct = compute_transaction(two_item_transaction)
        assert [line.line_no for line in ct.lines] == [1, 2]

    def test_totals_do_not_depend_on_line_order(self):
        items = (
            SalesItem(quantity=Decimal("3"), rate=Decimal("0.335"), exchange_rate=Decimal("83.17"), igst_rate=Decimal("18")),
            SalesItem(quantity=Decimal("7"), rate=Decimal("1.115"), exchange_rate=Decimal("83.17"), igst_rate=Decimal("5")),
            SalesItem(quantity=Decimal("1"), rate=Decimal("0.005"), exchange_rate=Decimal("1"), igst_rate=Decimal("12")),
        )
        forward = compute_transaction(SalesTransaction(items=items)).totals
        backward = compute_transaction(SalesTransaction(items=tuple(reversed(items)))).totals
        assert forward == backward

    def test_totals_equal_sum_of_rounded_lines(self):
        items = tuple(
            SalesItem(quantity=Decimal("1"), rate=Decimal("0.125"), exchange_rate=Decimal("1"), igst_rate=Decimal("18"))
            for _ in range(3)
        )
        ct = compute_transaction(SalesTransaction(items=items))
        # Each line rounds 0.125 -> 0.13 before summing
        assert ct.totals.total_amount == Decimal("0.39")
        assert ct.totals.total_igst_amount == sum(line.igst_amount for line in ct.lines)

    def test_no_items_gives_zero_totals(self):
        ct = compute_transaction(SalesTransaction(currency="INR"))
        assert ct.lines == ()
        assert ct.totals.total_amount == Decimal("0.00")
        assert ct.totals.amount_in_words == "ZERO AND 00/100 INDIAN RUPEES"

    def test_invalid_line_reports_index(self, two_item_transaction):
        bad = two_item_transaction.items[1].model_copy(update={"quantity": Decimal("-5")})
        txn = two_item_transaction.model_copy(update={"items": (two_item_transaction.items[0], bad)})
        with pytest.raises(ComputationError) as exc:
            compute_transaction(txn)
        assert exc.value.field == "quantity"
        assert exc.value.item_index == 1

    def test_oversized_line_raises_computation_error(self, two_item_transaction):
        big = two_item_transaction.items[0].model_copy(update={"quantity": Decimal("1e27")})
        txn = two_item_transaction.model_copy(update={"items": (big,)})
        with pytest.raises(ComputationError) as exc:
            compute_transaction(txn)
        assert exc.value.item_index == 0

    def test_cancelled_transactions_still_compute(self, two_item_transaction):
        txn = two_item_transaction.model_copy(update={"status": TransactionStatus.CANCELLED})
        assert compute_transaction(txn).totals.total_amount == Decimal("2000.00")

    def test_completion_requires_items(self):
        with pytest.raises(ComputationError) as exc:
            validate_for_completion(SalesTransaction())
        assert exc.value.field == "items"


class TestExportSummary:

    def test_groups_by_currency_and_skips_cancelled(self, two_item_transaction):
        usd = compute_transaction(two_item_transaction)
        cancelled = compute_transaction(
            two_item_transaction.model_copy(update={"status": TransactionStatus.CANCELLED})
        )
        inr = compute_transaction(
            SalesTransaction(
                currency="INR",
                items=(SalesItem(quantity=Decimal("2"), rate=Decimal("500"), igst_rate=Decimal("12")),),
            )
        )
        summary = summarize_exports([usd, cancelled, inr, usd])

        assert set(summary) == {"USD", "INR"}
        assert summary["USD"]["transaction_count"] == 2
        assert summary["USD"]["total_amount"] == Decimal("4000.00")
        assert summary["USD"]["total_igst_amount"] == Decimal("59760.00")
        assert summary["INR"]["total_taxable_value"] == Decimal("1000.00")
        assert summary["INR"]["total_igst_amount"] == Decimal("120.00")

    def test_empty(self):
        assert summarize_exports([]) == {}
