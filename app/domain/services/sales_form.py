# app/domain/services/sales_form.py
"""
Sales-transaction form state as an immutable value.

Every user edit is an action applied by ``apply_action``, which returns a new
``SalesFormState``; derived totals are recomputed after each transition.
Field paths are dotted: ``currency``, ``consignee.trn``, ``items.1.rate``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from app.core.config import settings
from app.domain.exceptions import ComputationError
from app.domain.models.masters import Item
from app.domain.models.sales import ComputedTransaction, SalesItem, SalesTransaction
from app.domain.services.invoice_computation import compute_transaction


class SalesFormState(BaseModel):
    model_config = ConfigDict(frozen=True)

    transaction: SalesTransaction
    computed: ComputedTransaction | None = None
    error: dict | None = None


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SetField:
    path: str
    value: Any


@dataclass(frozen=True)
class AddItem:
    item: SalesItem | None = None


@dataclass(frozen=True)
class RemoveItem:
    index: int


@dataclass(frozen=True)
class ApplyItemMaster:
    """Fill a line from the item master (HSN, unit, description, default rate)."""
    index: int
    item: Item


@dataclass(frozen=True)
class Reset:
    """Blank draft; keeps the current currency and date unless given."""
    currency: str | None = None
    transaction_date: date | None = None


FormAction = Union[SetField, AddItem, RemoveItem, ApplyItemMaster, Reset]


def action_from_dict(raw: dict) -> FormAction:
    """Decode ``{"type": "set_field", ...}`` request bodies."""
    kind = raw.get("type")
    if kind == "set_field":
        return SetField(path=str(raw["path"]), value=raw.get("value"))
    if kind == "add_item":
        item = raw.get("item")
        return AddItem(item=SalesItem.model_validate(item) if item else None)
    if kind == "remove_item":
        return RemoveItem(index=int(raw["index"]))
    if kind == "apply_item_master":
        return ApplyItemMaster(index=int(raw["index"]), item=Item.from_api(raw["item"]))
    if kind == "reset":
        raw_date = raw.get("transaction_date")
        return Reset(
            currency=raw.get("currency"),
            transaction_date=date.fromisoformat(raw_date) if raw_date else None,
        )
    raise ValueError(f"Unknown form action type: {kind!r}")


# ---------------------------------------------------------------------------
# Path updates
# ---------------------------------------------------------------------------

def _index(part: str, size: int) -> int:
    try:
        idx = int(part)
    except ValueError:
        raise KeyError(part)
    if idx < 0 or idx >= size:
        raise IndexError(f"index {idx} out of range (0..{size - 1})")
    return idx


def _replace_field(node: BaseModel, name: str, value: Any) -> BaseModel:
    data = node.model_dump()
    data[name] = value
    return type(node).model_validate(data)


def _set_path(node: Any, parts: list[str], value: Any) -> Any:
    if isinstance(node, BaseModel):
        name = parts[0]
        if name not in type(node).model_fields:
            raise KeyError(name)
        if len(parts) == 1:
            return _replace_field(node, name, value)
        child = _set_path(getattr(node, name), parts[1:], value)
        return node.model_copy(update={name: child})

    if isinstance(node, tuple):
        idx = _index(parts[0], len(node))
        element = node[idx]
        if len(parts) == 1:
            new_element = type(element).model_validate(value) if isinstance(element, BaseModel) else value
        else:
            new_element = _set_path(element, parts[1:], value)
        return node[:idx] + (new_element,) + node[idx + 1:]

    raise KeyError(parts[0])


def set_field(txn: SalesTransaction, path: str, value: Any) -> SalesTransaction:
    """Return a copy of ``txn`` with the dotted ``path`` set to ``value``."""
    parts = [p for p in path.split(".") if p]
    if not parts:
        raise KeyError(path)
    return _set_path(txn, parts, value)


def _item_index_of(path: str) -> int | None:
    parts = path.split(".")
    if len(parts) > 1 and parts[0] == "items" and parts[1].isdigit():
        return int(parts[1])
    return None


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------

def initial_state(currency: str | None = None, transaction_date: date | None = None) -> SalesFormState:
    """New draft with one blank item line."""
    txn = SalesTransaction(
        currency=currency or settings.DEFAULT_CURRENCY,
        transaction_date=transaction_date or date.today(),
        items=(SalesItem(),),
    )
    return recompute(SalesFormState(transaction=txn))


def recompute(state: SalesFormState) -> SalesFormState:
    """Run the computation engine; failures land in ``state.error``."""
    try:
        computed = compute_transaction(state.transaction)
    except ComputationError as e:
        return state.model_copy(update={"computed": None, "error": e.to_dict()})
    return state.model_copy(update={"computed": computed, "error": None})


def _transition(txn: SalesTransaction, action: FormAction) -> SalesTransaction:
    if isinstance(action, SetField):
        return set_field(txn, action.path, action.value)

    if isinstance(action, AddItem):
        return txn.model_copy(update={"items": txn.items + (action.item or SalesItem(),)})

    if isinstance(action, RemoveItem):
        idx = _index(str(action.index), len(txn.items))
        return txn.model_copy(update={"items": txn.items[:idx] + txn.items[idx + 1:]})

    if isinstance(action, ApplyItemMaster):
        idx = _index(str(action.index), len(txn.items))
        master = action.item
        update: dict[str, Any] = {"item_id": master.id}
        if master.hsn_code:
            update["hsn_code"] = master.hsn_code
        if master.unit:
            update["unit"] = master.unit
        if master.description or master.name:
            update["description"] = master.description or master.name
        rate = master.rate_for(txn.currency)
        if rate is not None:
            update["rate"] = rate
        line = txn.items[idx].model_copy(update=update)
        return txn.model_copy(update={"items": txn.items[:idx] + (line,) + txn.items[idx + 1:]})

    if isinstance(action, Reset):
        return SalesTransaction(
            currency=action.currency or txn.currency,
            transaction_date=action.transaction_date or txn.transaction_date,
            items=(SalesItem(),),
        )

    raise TypeError(f"Unsupported form action: {action!r}")


def apply_action(state: SalesFormState, action: FormAction) -> SalesFormState:
    """Apply one action and recompute. The input state is never modified.

    A value that fails field validation (e.g. ``"abc"`` for a rate) leaves the
    transaction unchanged and reports the problem in ``error``.
    """
    try:
        txn = _transition(state.transaction, action)
    except ValidationError as e:
        path = action.path if isinstance(action, SetField) else None
        first = e.errors()[0] if e.errors() else {}
        return state.model_copy(
            update={
                "error": {
                    "message": f"Invalid value for {path}: {first.get('msg', str(e))}",
                    "field": path,
                    "item_index": _item_index_of(path) if path else None,
                }
            }
        )
    return recompute(state.model_copy(update={"transaction": txn}))
