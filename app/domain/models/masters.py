# app/domain/models/masters.py
"""
Normalized master-data records read from the inventory API.

The API returns loosely shaped JSON (``_id`` vs ``id``, ``itemName`` vs
``name``, nested ``itemRate`` objects ...). Each ``from_api`` resolves those
fallbacks once so the computation and rendering code always sees one shape.
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


def _first(raw: dict, *keys: str, default: Any = None) -> Any:
    """Return the first non-empty value among ``keys``."""
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return default


def _text(raw: dict, *keys: str) -> str | None:
    value = _first(raw, *keys)
    if value is None:
        return None
    return str(value).strip() or None


def _decimal(value: Any) -> Decimal | None:
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _record_id(raw: dict) -> str:
    value = _first(raw, "_id", "id", default="")
    return str(value)


class MasterRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    is_active: bool = True


class Company(MasterRecord):
    firm_id: str | None = None
    address_lines: tuple[str, ...] = ()
    pin_code: str | None = None
    gst_no: str | None = None
    pan_no: str | None = None
    contact_no: str | None = None
    email: str | None = None

    @classmethod
    def from_api(cls, raw: dict) -> "Company":
        return cls(
            id=_record_id(raw),
            name=_text(raw, "companyName", "name"),
            is_active=_active(raw),
            firm_id=_text(raw, "firmId"),
            address_lines=_address_lines(raw, "firmAddress"),
            pin_code=_text(raw, "pinCode"),
            gst_no=_text(raw, "gstNo", "gstNumber"),
            pan_no=_text(raw, "panNo", "panNumber"),
            contact_no=_text(raw, "contactNo", "phone"),
            email=_text(raw, "emailId", "email"),
        )


class DebitParty(MasterRecord):
    address_lines: tuple[str, ...] = ()
    pin_code: str | None = None
    gst_no: str | None = None
    pan_no: str | None = None
    iec_no: str | None = None
    epcg_licenses: tuple[str, ...] = ()
    epcg_license_date: str | None = None

    @classmethod
    def from_api(cls, raw: dict) -> "DebitParty":
        lic = raw.get("epcgLicNo") or {}
        if isinstance(lic, dict):
            licenses = tuple(
                str(lic[k]).strip() for k in ("lic1", "lic2", "lic3") if lic.get(k)
            )
        elif lic:
            licenses = (str(lic).strip(),)
        else:
            licenses = ()
        return cls(
            id=_record_id(raw),
            name=_text(raw, "partyName", "name"),
            is_active=_active(raw),
            address_lines=_address_lines(raw, "partyAddress"),
            pin_code=_text(raw, "pinCode"),
            gst_no=_text(raw, "gstNo", "gstNumber"),
            pan_no=_text(raw, "panNo", "panNumber"),
            iec_no=_text(raw, "iecNo"),
            epcg_licenses=licenses,
            epcg_license_date=_text(raw, "epcgLicDate"),
        )


class CreditParty(MasterRecord):
    address_lines: tuple[str, ...] = ()
    pin_code: str | None = None
    country: str | None = None
    port: str | None = None

    @classmethod
    def from_api(cls, raw: dict) -> "CreditParty":
        return cls(
            id=_record_id(raw),
            name=_text(raw, "partyName", "name"),
            is_active=_active(raw),
            address_lines=_address_lines(raw, "partyAddress", fallback="address"),
            pin_code=_text(raw, "pinCode"),
            country=_text(raw, "country"),
            port=_text(raw, "port"),
        )


class Item(MasterRecord):
    hsn_code: str | None = None
    unit: str | None = None
    rate_inr: Decimal | None = None
    rate_usd: Decimal | None = None
    description: str | None = None

    @classmethod
    def from_api(cls, raw: dict) -> "Item":
        item_rate = raw.get("itemRate") or {}
        if not isinstance(item_rate, dict):
            item_rate = {}
        return cls(
            id=_record_id(raw),
            name=_text(raw, "itemName", "name"),
            is_active=_active(raw),
            hsn_code=_text(raw, "itemHsn", "hsnCode"),
            unit=_text(raw, "itemUnits", "unit"),
            rate_inr=_decimal(_first(item_rate, "inr", default=raw.get("purchasePrice"))),
            rate_usd=_decimal(_first(item_rate, "usd", default=raw.get("sellingPrice"))),
            description=_text(raw, "remarks", "description"),
        )

    def rate_for(self, currency: str) -> Decimal | None:
        """Default rate for a transaction currency (USD or INR price list)."""
        if currency.upper() == "INR":
            return self.rate_inr
        return self.rate_usd


class Broker(MasterRecord):
    address: str | None = None
    phone: str | None = None
    email: str | None = None

    @classmethod
    def from_api(cls, raw: dict) -> "Broker":
        return cls(
            id=_record_id(raw),
            name=_text(raw, "brokerName", "name"),
            is_active=_active(raw),
            address=_text(raw, "address", "brokerAddress"),
            phone=_text(raw, "phone", "contactNo"),
            email=_text(raw, "email", "emailId"),
        )


class Cha(MasterRecord):
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    license_no: str | None = None

    @classmethod
    def from_api(cls, raw: dict) -> "Cha":
        return cls(
            id=_record_id(raw),
            name=_text(raw, "chaName", "name"),
            is_active=_active(raw),
            address=_text(raw, "address", "chaAddress"),
            phone=_text(raw, "phone", "contactNo"),
            email=_text(raw, "email", "emailId"),
            license_no=_text(raw, "licenseNumber", "licenseNo"),
        )


_INACTIVE = ("false", "0", "no", "off", "inactive")


def _active(raw: dict) -> bool:
    value = raw.get("isActive")
    if value is None:
        value = raw.get("status", "active")
    if isinstance(value, str):
        return value.strip().lower() not in _INACTIVE
    return bool(value)


def _address_lines(raw: dict, prefix: str, fallback: str | None = None) -> tuple[str, ...]:
    lines = [raw.get(f"{prefix}{n}") for n in (1, 2, 3)]
    if not any(lines) and fallback:
        lines = [raw.get(fallback)]
    return tuple(str(line).strip() for line in lines if line and str(line).strip())


# ---------------------------------------------------------------------------
# Pagination / envelopes
# ---------------------------------------------------------------------------

class Pagination(BaseModel):
    current_page: int = 1
    total_pages: int = 1
    total_items: int = 0
    items_per_page: int = 10

    @classmethod
    def from_api(cls, raw: dict | None, item_count: int = 0) -> "Pagination":
        """Resolve ``currentPage|page`` and ``itemsPerPage|limit`` variants."""
        raw = raw or {}
        limit = int(_first(raw, "itemsPerPage", "limit", default=item_count or 10))
        total = int(_first(raw, "totalItems", "total", default=item_count))
        pages = _first(raw, "totalPages")
        if pages is None:
            pages = max(1, math.ceil(total / limit)) if limit else 1
        return cls(
            current_page=int(_first(raw, "currentPage", "page", default=1)),
            total_pages=int(pages),
            total_items=total,
            items_per_page=limit,
        )


class Page(BaseModel, Generic[T]):
    items: list[T] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class InvoiceParties(BaseModel):
    """Master records referenced by one sales transaction."""

    model_config = ConfigDict(frozen=True)

    company: Company | None = None
    debit_party: DebitParty | None = None
    credit_party: CreditParty | None = None
    broker: Broker | None = None
    cha: Cha | None = None
