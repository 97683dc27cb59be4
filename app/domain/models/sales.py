# app/domain/models/sales.py
"""
Export sales-transaction records.

Raw, user-editable input lives in ``SalesTransaction`` / ``SalesItem``.
Derived money figures are never stored on these records; they are produced by
``app.domain.services.invoice_computation`` as ``ComputedTransaction``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def _date_only(value: Any) -> Any:
    """Accept ``YYYY-MM-DD`` as well as full ISO timestamps from the API."""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        return value[:10]
    return value


class ApiRecord(BaseModel):
    """Base for records exchanged with the inventory API (camelCase on the wire)."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _mongo_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and "_id" in data and "id" not in data:
            data = {**data, "id": data["_id"]}
        return data


class TransactionStatus(str, Enum):
    DRAFT = "draft"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SalesItem(ApiRecord):
    item_id: str = ""
    hsn_code: str = ""
    description: str = ""
    quantity: Decimal = Field(default=Decimal("0"), allow_inf_nan=True)
    unit: str = ""
    rate: Decimal = Field(default=Decimal("0"), allow_inf_nan=True)
    exchange_rate: Decimal = Field(default=Decimal("1"), allow_inf_nan=True)
    igst_rate: Decimal = Field(default=Decimal("0"), allow_inf_nan=True)
    marks: str = ""


class ExporterDetails(ApiRecord):
    name: str | None = None
    address: str | None = None
    iec_no: str | None = None
    gstin: str | None = None
    pan_no: str | None = None


class ConsigneeDetails(ApiRecord):
    name: str | None = None
    address: str | None = None
    country: str | None = None
    trn: str | None = None


class BuyerDetails(ApiRecord):
    name: str | None = None
    address: str | None = None
    country: str | None = None


class ExportDetails(ApiRecord):
    country_of_origin: str | None = None
    country_of_destination: str | None = None
    port_of_loading: str | None = None
    port_of_discharge: str | None = None
    final_destination: str | None = None
    pre_carriage_by: str | None = None
    vessel_flight_no: str | None = None
    terms_of_delivery: str | None = None
    terms_of_payment: str | None = None


class BankDetails(ApiRecord):
    bank_name: str | None = None
    branch: str | None = None
    account_no: str | None = None
    swift_code: str | None = None
    ifsc_code: str | None = None
    ad_code: str | None = None


class ShippingDetails(ApiRecord):
    total_cartons: str | None = None
    net_weight: str | None = None
    gross_weight: str | None = None
    container_no: str | None = None
    seal_no: str | None = None


class ShippingBill(ApiRecord):
    bill_no: str | None = None
    bill_date: date | None = None

    @field_validator("bill_date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any) -> Any:
        return _date_only(v)


class ExportSchemes(ApiRecord):
    drawback: bool = False
    rodtep: bool = False
    rosctl: bool = False
    dfia: bool = False
    epcg: bool = False

    def enabled(self) -> list[str]:
        """Names of the toggled schemes, in display order."""
        labels = [
            ("drawback", "Drawback"),
            ("rodtep", "RoDTEP"),
            ("rosctl", "RoSCTL"),
            ("dfia", "DFIA"),
            ("epcg", "EPCG"),
        ]
        return [label for key, label in labels if getattr(self, key)]


class EpcgAuthorization(ApiRecord):
    license_no: str = ""
    license_date: date | None = None

    @field_validator("license_date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any) -> Any:
        return _date_only(v)


class PurchaseReference(ApiRecord):
    supplier_name: str = ""
    license_no: str = ""
    bill_no: str = ""
    bill_date: date | None = None

    @field_validator("bill_date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any) -> Any:
        return _date_only(v)


class SalesTransaction(ApiRecord):
    # Assigned by the inventory API on persist
    id: str | None = None
    invoice_number: str | None = None
    transaction_number: str | None = None

    transaction_date: date | None = None
    currency: str = "USD"
    status: TransactionStatus = TransactionStatus.DRAFT

    company_id: str | None = None
    debit_party_id: str | None = None
    credit_party_id: str | None = None
    broker_id: str | None = None
    cha_id: str | None = None

    exporter: ExporterDetails = Field(default_factory=ExporterDetails)
    consignee: ConsigneeDetails = Field(default_factory=ConsigneeDetails)
    buyer: BuyerDetails = Field(default_factory=BuyerDetails)
    export_details: ExportDetails = Field(default_factory=ExportDetails)
    bank: BankDetails = Field(default_factory=BankDetails)
    shipping: ShippingDetails = Field(default_factory=ShippingDetails)
    shipping_bill: ShippingBill = Field(default_factory=ShippingBill)
    export_schemes: ExportSchemes = Field(default_factory=ExportSchemes)
    epcg_authorizations: tuple[EpcgAuthorization, ...] = ()
    purchase_references: tuple[PurchaseReference, ...] = ()

    items: tuple[SalesItem, ...] = ()

    remarks: str = ""
    custom_field1: str = ""

    @field_validator("transaction_date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any) -> Any:
        return _date_only(v)

    @field_validator("currency", mode="before")
    @classmethod
    def _upper_currency(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper() or "USD"
        return v

    @classmethod
    def from_api(cls, raw: dict) -> "SalesTransaction":
        """Build from an inventory API record (``_id`` and camelCase keys)."""
        return cls.model_validate(raw)

    def to_api_payload(self) -> dict:
        """Serialize for POST/PUT to the inventory API. Server-owned ids are omitted."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"id", "invoice_number", "transaction_number"},
        )


# ---------------------------------------------------------------------------
# Computed results
# ---------------------------------------------------------------------------

class ComputedLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    line_no: int
    item: SalesItem
    amount: Decimal
    taxable_value: Decimal
    igst_amount: Decimal


class InvoiceTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_amount: Decimal = Decimal("0.00")
    total_taxable_value: Decimal = Decimal("0.00")
    total_igst_amount: Decimal = Decimal("0.00")
    amount_in_words: str = ""


class ComputedTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    transaction: SalesTransaction
    lines: tuple[ComputedLine, ...] = ()
    totals: InvoiceTotals = Field(default_factory=InvoiceTotals)

    def totals_payload(self) -> dict:
        """Derived figures in the inventory API's field naming."""
        return {
            "totalAmount": str(self.totals.total_amount),
            "totalTaxableValue": str(self.totals.total_taxable_value),
            "totalIgstAmount": str(self.totals.total_igst_amount),
            "amountInWords": self.totals.amount_in_words,
        }
