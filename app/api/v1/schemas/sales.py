# app/api/v1/schemas/sales.py
"""Request and response schemas for sales / invoice endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from app.domain.models.sales import SalesTransaction


class FormActionRequest(BaseModel):
    """Apply one edit to a sales form state.

    ``action`` is ``{"type": "set_field" | "add_item" | "remove_item" |
    "apply_item_master" | "reset", ...}``.
    """

    transaction: SalesTransaction
    action: dict[str, Any]


class ComputedLineOut(BaseModel):
    line_no: int
    item_id: str
    description: str
    quantity: str
    rate: str
    amount: str
    taxable_value: str
    igst_amount: str


class ComputeResponse(BaseModel):
    lines: list[ComputedLineOut]
    total_amount: str
    total_taxable_value: str
    total_igst_amount: str
    amount_in_words: str
    currency: str
