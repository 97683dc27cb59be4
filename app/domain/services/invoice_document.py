# app/domain/services/invoice_document.py
"""
Build the export invoice as a tree of typed layout nodes.

The layout is fixed; only values change. Any missing value is shown as
``N/A`` so that a half-filled draft still produces a complete document.
A rendering backend (``invoice_renderer``) walks the tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Union

from app.core.config import settings
from app.domain.models.masters import InvoiceParties
from app.domain.models.sales import ComputedTransaction

NA = "N/A"


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Heading:
    title: str
    rows: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class KeyValueBlock:
    title: str
    rows: tuple[tuple[str, str], ...] = ()

    def get(self, label: str) -> str | None:
        for key, value in self.rows:
            if key == label:
                return value
        return None


@dataclass(frozen=True)
class ColumnsBlock:
    title: str
    columns: tuple[KeyValueBlock, ...] = ()

    def column(self, title: str) -> KeyValueBlock | None:
        return next((c for c in self.columns if c.title == title), None)


@dataclass(frozen=True)
class TableBlock:
    title: str
    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...] = ()
    weights: tuple[int, ...] = ()
    align: tuple[str, ...] = ()  # "left" | "right" | "center" per column


@dataclass(frozen=True)
class TextBlock:
    title: str
    text: str


@dataclass(frozen=True)
class SignatureBlock:
    declaration: str
    signatory_for: str
    label: str = "Authorised Signatory"


Section = Union[Heading, KeyValueBlock, ColumnsBlock, TableBlock, TextBlock, SignatureBlock]


@dataclass(frozen=True)
class InvoiceDocument:
    sections: tuple[Section, ...] = field(default_factory=tuple)

    def section(self, title: str) -> Section | None:
        for s in self.sections:
            if getattr(s, "title", None) == title:
                return s
        return None


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def text_or_na(value: Any) -> str:
    if value is None:
        return NA
    if isinstance(value, date):
        return value.strftime("%d-%m-%Y")
    text = str(value).strip()
    return text or NA


def fmt_money(value: Decimal | None) -> str:
    if value is None:
        return NA
    return f"{value:,.2f}"


def fmt_quantity(value: Decimal) -> str:
    if not value.is_finite():
        return NA
    return f"{value.normalize():f}"


def _join(parts: Any, sep: str = ", ") -> str:
    cleaned = [str(p).strip() for p in parts if p and str(p).strip()]
    return sep.join(cleaned) if cleaned else NA


def _rows(*pairs: tuple[str, Any]) -> tuple[tuple[str, str], ...]:
    return tuple((label, text_or_na(value)) for label, value in pairs)


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

ITEM_HEADERS = ("S.No.", "Description / HSN", "Qty", "Unit", "Rate", "Amount")
ITEM_WEIGHTS = (6, 40, 12, 10, 14, 18)
ITEM_ALIGN = ("center", "left", "right", "center", "right", "right")

DECLARATION = (
    "We declare that this invoice shows the actual price of the goods "
    "described and that all particulars are true and correct."
)


def _header(ct: ComputedTransaction) -> Heading:
    txn = ct.transaction
    return Heading(
        title="EXPORT INVOICE",
        rows=_rows(
            ("Invoice No", txn.invoice_number),
            ("Invoice Date", txn.transaction_date),
            ("Transaction No", txn.transaction_number),
            ("Currency", txn.currency),
            ("Status", txn.status.value.upper()),
        ),
    )


def _parties(parties: InvoiceParties) -> ColumnsBlock:
    company = parties.company
    debit = parties.debit_party
    credit = parties.credit_party
    return ColumnsBlock(
        title="Parties",
        columns=(
            KeyValueBlock(
                title="Company",
                rows=_rows(
                    ("Name", company and company.name),
                    ("Address", company and _join(company.address_lines + ((company.pin_code,) if company.pin_code else ()))),
                    ("GSTIN", company and company.gst_no),
                    ("PAN", company and company.pan_no),
                    ("Contact", company and company.contact_no),
                    ("Email", company and company.email),
                ),
            ),
            KeyValueBlock(
                title="Debit Party",
                rows=_rows(
                    ("Name", debit and debit.name),
                    ("Address", debit and _join(debit.address_lines + ((debit.pin_code,) if debit.pin_code else ()))),
                    ("GSTIN", debit and debit.gst_no),
                    ("IEC No", debit and debit.iec_no),
                    ("PAN", debit and debit.pan_no),
                ),
            ),
            KeyValueBlock(
                title="Credit Party",
                rows=_rows(
                    ("Name", credit and credit.name),
                    ("Address", credit and _join(credit.address_lines + ((credit.pin_code,) if credit.pin_code else ()))),
                    ("Country", credit and credit.country),
                    ("Port", credit and credit.port),
                ),
            ),
        ),
    )


def _exporter_consignee(ct: ComputedTransaction) -> ColumnsBlock:
    exp = ct.transaction.exporter
    con = ct.transaction.consignee
    return ColumnsBlock(
        title="Exporter / Consignee",
        columns=(
            KeyValueBlock(
                title="Exporter",
                rows=_rows(
                    ("Name", exp.name),
                    ("Address", exp.address),
                    ("IEC No", exp.iec_no),
                    ("GSTIN", exp.gstin),
                    ("PAN", exp.pan_no),
                ),
            ),
            KeyValueBlock(
                title="Consignee",
                rows=_rows(
                    ("Name", con.name),
                    ("Address", con.address),
                    ("Country", con.country),
                    ("TRN", con.trn),
                ),
            ),
        ),
    )


def _export_details(ct: ComputedTransaction) -> KeyValueBlock:
    txn = ct.transaction
    ed = txn.export_details
    bank = txn.bank
    return KeyValueBlock(
        title="Export Details",
        rows=_rows(
            ("Buyer (if other than consignee)", txn.buyer.name),
            ("Buyer Address", txn.buyer.address),
            ("Buyer Country", txn.buyer.country),
            ("Country of Origin", ed.country_of_origin),
            ("Country of Final Destination", ed.country_of_destination),
            ("Pre-Carriage By", ed.pre_carriage_by),
            ("Vessel / Flight No", ed.vessel_flight_no),
            ("Port of Loading", ed.port_of_loading),
            ("Port of Discharge", ed.port_of_discharge),
            ("Final Destination", ed.final_destination),
            ("Terms of Delivery", ed.terms_of_delivery),
            ("Terms of Payment", ed.terms_of_payment),
            ("Bank", _join([bank.bank_name, bank.branch])),
            ("Account No", bank.account_no),
            ("SWIFT Code", bank.swift_code),
            ("IFSC Code", bank.ifsc_code),
            ("AD Code", bank.ad_code),
        ),
    )


def _items(ct: ComputedTransaction) -> TableBlock:
    currency = ct.transaction.currency
    rows = []
    for line in ct.lines:
        item = line.item
        desc = f"{text_or_na(item.description)}\nHSN: {text_or_na(item.hsn_code)}"
        if item.marks:
            desc += f"\nMarks: {item.marks}"
        rows.append(
            (
                str(line.line_no),
                desc,
                fmt_quantity(item.quantity),
                text_or_na(item.unit),
                fmt_money(item.rate),
                fmt_money(line.amount),
            )
        )
    headers = ITEM_HEADERS[:4] + (f"Rate ({currency})", f"Amount ({currency})")
    return TableBlock(
        title="Items",
        headers=headers,
        rows=tuple(rows),
        weights=ITEM_WEIGHTS,
        align=ITEM_ALIGN,
    )


def _totals(ct: ComputedTransaction) -> KeyValueBlock:
    currency = ct.transaction.currency
    home = settings.HOME_CURRENCY
    t = ct.totals
    return KeyValueBlock(
        title="Totals",
        rows=(
            (f"Total Amount ({currency})", fmt_money(t.total_amount)),
            (f"Taxable Value ({home})", fmt_money(t.total_taxable_value)),
            (f"IGST Amount ({home})", fmt_money(t.total_igst_amount)),
        ),
    )


def _agents(parties: InvoiceParties) -> ColumnsBlock:
    broker = parties.broker
    cha = parties.cha
    return ColumnsBlock(
        title="Broker / CHA",
        columns=(
            KeyValueBlock(
                title="Broker",
                rows=_rows(
                    ("Name", broker and broker.name),
                    ("Address", broker and broker.address),
                    ("Phone", broker and broker.phone),
                    ("Email", broker and broker.email),
                ),
            ),
            KeyValueBlock(
                title="CHA",
                rows=_rows(
                    ("Name", cha and cha.name),
                    ("License No", cha and cha.license_no),
                    ("Address", cha and cha.address),
                    ("Phone", cha and cha.phone),
                ),
            ),
        ),
    )


def _shipping(ct: ComputedTransaction) -> KeyValueBlock:
    txn = ct.transaction
    sh = txn.shipping
    epcg = [
        f"{a.license_no} dt. {text_or_na(a.license_date)}"
        for a in txn.epcg_authorizations
        if a.license_no
    ]
    purchases = [
        f"{text_or_na(p.supplier_name)} / Lic {text_or_na(p.license_no)} / "
        f"Bill {text_or_na(p.bill_no)} dt. {text_or_na(p.bill_date)}"
        for p in txn.purchase_references
    ]
    return KeyValueBlock(
        title="Shipping Details",
        rows=_rows(
            ("Total Cartons", sh.total_cartons),
            ("Net Weight", sh.net_weight),
            ("Gross Weight", sh.gross_weight),
            ("Container No", sh.container_no),
            ("Seal No", sh.seal_no),
            ("Shipping Bill No", txn.shipping_bill.bill_no),
            ("Shipping Bill Date", txn.shipping_bill.bill_date),
            ("Export Schemes", _join(txn.export_schemes.enabled())),
            ("EPCG Authorizations", _join(epcg, sep="\n")),
            ("Purchase References", _join(purchases, sep="\n")),
            ("Remarks", txn.remarks),
        ),
    )


def build_invoice_document(ct: ComputedTransaction, parties: InvoiceParties | None = None) -> InvoiceDocument:
    """Lay out ``ct`` as the fixed export-invoice template."""
    parties = parties or InvoiceParties()
    company_name = parties.company.name if parties.company and parties.company.name else None
    signatory = company_name or ct.transaction.exporter.name

    return InvoiceDocument(
        sections=(
            _header(ct),
            _parties(parties),
            _exporter_consignee(ct),
            _export_details(ct),
            _items(ct),
            _totals(ct),
            TextBlock(title="Amount in Words", text=text_or_na(ct.totals.amount_in_words)),
            _agents(parties),
            _shipping(ct),
            SignatureBlock(declaration=DECLARATION, signatory_for=f"For {text_or_na(signatory)}"),
        )
    )
