# gst_compliance/domain/services/filing_classification.py
"""
GSTR-1 table / GSTR-3B section classification.

GSTR-1 tables:
  4A   B2B supplies to registered persons
  5    B2C large: inter-state supplies > ₹2.5L to unregistered persons
  6A   Exports, under LUT or with IGST paid
  7    B2C others
  -    RCM self-invoices are inward supplies and never reported in GSTR-1

GSTR-3B sections:
  3.1(a)  Outward taxable supplies, plus import-of-services RCM
  3.1(b)  Zero-rated supplies (exports)
  3.1(d)  Inward supplies from unregistered persons under RCM
  4A(3)   ITC on tax paid under RCM

Classification is a first-match walk over ordered rule tables. Shapes no
rule recognises come back as ``UNCLASSIFIED``; nothing here raises.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable

from gst_compliance.domain.services.filing_validation import (
    TransactionForValidation,
    TransactionType,
    is_export,
)
from gst_compliance.domain.services.tax_computation import RcmType

B2C_LARGE_THRESHOLD = Decimal("250000")  # ₹2.5 lakh
RCM_ITC_SECTION = "4A(3)"

ZERO = Decimal("0")


class Gstr1Table(str, enum.Enum):
    B2B = "B2B"
    B2C_LARGE = "B2C_LARGE"
    B2C_SMALL = "B2C_SMALL"
    EXPORTS_WITH_LUT = "EXPORTS_WITH_LUT"
    EXPORTS_WITH_PAYMENT = "EXPORTS_WITH_PAYMENT"
    NOT_APPLICABLE = "NOT_APPLICABLE"
    UNCLASSIFIED = "UNCLASSIFIED"


class Gstr3bSection(str, enum.Enum):
    OUTWARD_TAXABLE = "OUTWARD_TAXABLE"
    ZERO_RATED = "ZERO_RATED"
    INWARD_RCM = "INWARD_RCM"
    UNCLASSIFIED = "UNCLASSIFIED"


GSTR1_TABLE_CODES: dict[Gstr1Table, str | None] = {
    Gstr1Table.B2B: "4A",
    Gstr1Table.B2C_LARGE: "5",
    Gstr1Table.B2C_SMALL: "7",
    Gstr1Table.EXPORTS_WITH_LUT: "6A",
    Gstr1Table.EXPORTS_WITH_PAYMENT: "6A",
    Gstr1Table.NOT_APPLICABLE: None,
    Gstr1Table.UNCLASSIFIED: None,
}

GSTR3B_SECTION_CODES: dict[Gstr3bSection, str | None] = {
    Gstr3bSection.OUTWARD_TAXABLE: "3.1(a)",
    Gstr3bSection.ZERO_RATED: "3.1(b)",
    Gstr3bSection.INWARD_RCM: "3.1(d)",
    Gstr3bSection.UNCLASSIFIED: None,
}

GSTR1_TABLE_DESCRIPTIONS: dict[Gstr1Table, str] = {
    Gstr1Table.B2B: "B2B Supplies - Invoices to registered persons",
    Gstr1Table.B2C_LARGE: "B2C Large - Inter-state supplies > ₹2.5L to unregistered",
    Gstr1Table.B2C_SMALL: "B2C Others - Supplies to unregistered persons",
    Gstr1Table.EXPORTS_WITH_LUT: "Exports with LUT - Zero-rated exports under bond",
    Gstr1Table.EXPORTS_WITH_PAYMENT: "Exports with Payment - Exports with IGST payment",
    Gstr1Table.NOT_APPLICABLE: "Not applicable for GSTR-1",
    Gstr1Table.UNCLASSIFIED: "Could not be classified - review manually",
}

GSTR3B_SECTION_DESCRIPTIONS: dict[Gstr3bSection, str] = {
    Gstr3bSection.OUTWARD_TAXABLE: "Outward taxable supplies (including import of services)",
    Gstr3bSection.ZERO_RATED: "Zero-rated supplies (exports with LUT)",
    Gstr3bSection.INWARD_RCM: "Inward supplies under reverse charge",
    Gstr3bSection.UNCLASSIFIED: "Could not be classified - review manually",
}


@dataclass(frozen=True)
class Gstr1Classification:
    table: Gstr1Table
    table_code: str | None
    taxable_value: Decimal
    igst: Decimal
    cgst: Decimal
    sgst: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table.value,
            "table_code": self.table_code,
            "taxable_value": float(self.taxable_value),
            "igst": float(self.igst),
            "cgst": float(self.cgst),
            "sgst": float(self.sgst),
        }


@dataclass(frozen=True)
class Gstr3bClassification:
    section: Gstr3bSection
    section_code: str | None
    taxable_value: Decimal
    igst: Decimal
    cgst: Decimal
    sgst: Decimal
    itc_section: str | None = None
    itc_igst: Decimal = ZERO
    itc_cgst: Decimal = ZERO
    itc_sgst: Decimal = ZERO

    @property
    def itc_total(self) -> Decimal:
        return self.itc_igst + self.itc_cgst + self.itc_sgst

    def to_dict(self) -> dict[str, Any]:
        return {
            "section": self.section.value,
            "section_code": self.section_code,
            "taxable_value": float(self.taxable_value),
            "igst": float(self.igst),
            "cgst": float(self.cgst),
            "sgst": float(self.sgst),
            "itc_section": self.itc_section,
            "itc_igst": float(self.itc_igst),
            "itc_cgst": float(self.itc_cgst),
            "itc_sgst": float(self.itc_sgst),
        }


# ---------------------------------------------------------------------------
# Rule tables (first match wins)
# ---------------------------------------------------------------------------

Predicate = Callable[[TransactionForValidation], bool]


def _is_self_invoice_or_rcm(txn: TransactionForValidation) -> bool:
    return txn.transaction_type is TransactionType.SELF_INVOICE or txn.is_reverse_charge


def _is_rcm_self_invoice(txn: TransactionForValidation) -> bool:
    return txn.is_reverse_charge and txn.transaction_type is TransactionType.SELF_INVOICE


def _rcm_type_is(rcm_type: RcmType) -> Predicate:
    def check(txn: TransactionForValidation) -> bool:
        return _is_rcm_self_invoice(txn) and txn.rcm_type == rcm_type.value
    return check


def _is_other_type(txn: TransactionForValidation) -> bool:
    return txn.transaction_type is TransactionType.OTHER


def _is_b2c_large(txn: TransactionForValidation) -> bool:
    return txn.total_inr > B2C_LARGE_THRESHOLD and txn.igst_amount > 0


GSTR1_RULES: tuple[tuple[Predicate, Gstr1Table], ...] = (
    (_is_self_invoice_or_rcm, Gstr1Table.NOT_APPLICABLE),
    (_is_other_type, Gstr1Table.UNCLASSIFIED),
    (lambda t: is_export(t) and bool(t.lut_id), Gstr1Table.EXPORTS_WITH_LUT),
    (is_export, Gstr1Table.EXPORTS_WITH_PAYMENT),
    (lambda t: bool(t.counterparty_gstin), Gstr1Table.B2B),
    (_is_b2c_large, Gstr1Table.B2C_LARGE),
    (lambda t: True, Gstr1Table.B2C_SMALL),
)

# (predicate, section, carries RCM ITC)
GSTR3B_RULES: tuple[tuple[Predicate, Gstr3bSection, bool], ...] = (
    (_is_other_type, Gstr3bSection.UNCLASSIFIED, False),
    (_rcm_type_is(RcmType.IMPORT_OF_SERVICES), Gstr3bSection.OUTWARD_TAXABLE, True),
    (_rcm_type_is(RcmType.INDIAN_UNREGISTERED), Gstr3bSection.INWARD_RCM, True),
    (_is_rcm_self_invoice, Gstr3bSection.UNCLASSIFIED, False),
    (is_export, Gstr3bSection.ZERO_RATED, False),
    (lambda t: t.transaction_type is not TransactionType.SELF_INVOICE, Gstr3bSection.OUTWARD_TAXABLE, False),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def classify_for_gstr1(txn: TransactionForValidation) -> Gstr1Classification:
    table = next((t for applies, t in GSTR1_RULES if applies(txn)), Gstr1Table.UNCLASSIFIED)
    return Gstr1Classification(
        table=table,
        table_code=GSTR1_TABLE_CODES[table],
        taxable_value=txn.total_inr,
        igst=txn.igst_amount,
        cgst=txn.cgst_amount,
        sgst=txn.sgst_amount,
    )


def classify_for_gstr3b(txn: TransactionForValidation) -> Gstr3bClassification:
    section, has_itc = Gstr3bSection.UNCLASSIFIED, False
    for applies, candidate, itc in GSTR3B_RULES:
        if applies(txn):
            section, has_itc = candidate, itc
            break

    itc: dict[str, Any] = {}
    if has_itc:
        itc = {
            "itc_section": RCM_ITC_SECTION,
            "itc_igst": txn.igst_amount,
            "itc_cgst": txn.cgst_amount,
            "itc_sgst": txn.sgst_amount,
        }
    return Gstr3bClassification(
        section=section,
        section_code=GSTR3B_SECTION_CODES[section],
        taxable_value=txn.total_inr,
        igst=txn.igst_amount,
        cgst=txn.cgst_amount,
        sgst=txn.sgst_amount,
        **itc,
    )


def gstr1_table_description(table: Gstr1Table) -> str:
    return GSTR1_TABLE_DESCRIPTIONS[table]


def gstr3b_section_description(section: Gstr3bSection) -> str:
    return GSTR3B_SECTION_DESCRIPTIONS[section]
