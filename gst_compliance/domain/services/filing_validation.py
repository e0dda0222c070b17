# gst_compliance/domain/services/filing_validation.py
"""
Pre-filing checks on a single transaction.

Every rule is an independent predicate over a read-only
``TransactionForValidation``; a rule fires at most once per pass.

Severities:
  ERROR    must be resolved before filing (e.g. expired LUT)
  WARNING  should be reviewed (e.g. missing RCM payment voucher)
  INFO     informational (e.g. high-value transaction)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable

from gst_compliance.domain.services.filing_calendar import parse_period

HIGH_VALUE_THRESHOLD = Decimal("1000000")  # ₹10 lakh

SEVERITY_PENALTY = {
    "error": 30,
    "warning": 15,
    "info": 5,
}

_INDIA_ALIASES = {"IN", "IND", "INDIA"}


class TransactionType(str, enum.Enum):
    EXPORT = "EXPORT"
    DOMESTIC_B2B = "DOMESTIC_B2B"
    DOMESTIC_B2C = "DOMESTIC_B2C"
    SELF_INVOICE = "SELF_INVOICE"
    OTHER = "OTHER"

    @classmethod
    def _missing_(cls, value: object) -> "TransactionType":
        # credit notes, debit notes and anything else recorded upstream
        return cls.OTHER


class FlagSeverity(str, enum.Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ValidationFlag:
    code: str
    message: str
    severity: FlagSeverity

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message, "severity": self.severity.value}


@dataclass(frozen=True)
class TransactionForValidation:
    transaction_type: TransactionType
    transaction_date: date
    is_reverse_charge: bool = False
    rcm_type: str | None = None
    counterparty_country: str | None = None
    counterparty_gstin: str | None = None
    lut_id: Any = None
    lut_valid_from: date | None = None
    lut_valid_till: date | None = None
    total_inr: Decimal = Decimal("0")
    igst_amount: Decimal = Decimal("0")
    cgst_amount: Decimal = Decimal("0")
    sgst_amount: Decimal = Decimal("0")
    payment_voucher_id: str | None = None


def _d(x: Any) -> Decimal:
    if x is None:
        return Decimal("0")
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x))


def transaction_from_invoice(invoice: Any) -> TransactionForValidation:
    """Project an ``Invoice`` row (with its ``lut`` loaded) onto the validation input."""
    lut = getattr(invoice, "lut", None)
    return TransactionForValidation(
        transaction_type=TransactionType(invoice.invoice_type),
        transaction_date=invoice.invoice_date,
        is_reverse_charge=bool(invoice.is_rcm),
        rcm_type=invoice.rcm_type,
        counterparty_country=invoice.client_country,
        counterparty_gstin=invoice.client_gstin,
        lut_id=invoice.lut_id,
        lut_valid_from=lut.valid_from if lut is not None else None,
        lut_valid_till=lut.valid_till if lut is not None else None,
        total_inr=_d(invoice.total_inr),
        igst_amount=_d(invoice.igst_amount),
        cgst_amount=_d(invoice.cgst_amount),
        sgst_amount=_d(invoice.sgst_amount),
        payment_voucher_id=invoice.payment_voucher_id,
    )


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def is_indian_country(country: str | None) -> bool:
    if not country:
        return False
    return country.strip().upper() in _INDIA_ALIASES


def is_export(txn: TransactionForValidation) -> bool:
    """Explicit EXPORT type, or a domestic-typed invoice to a foreign party without a GSTIN."""
    if txn.transaction_type is TransactionType.EXPORT:
        return True
    if txn.transaction_type in (TransactionType.SELF_INVOICE, TransactionType.OTHER):
        return False
    if txn.counterparty_gstin:
        return False
    return bool(txn.counterparty_country) and not is_indian_country(txn.counterparty_country)


def _export_without_lut(txn: TransactionForValidation, period: str) -> bool:
    return is_export(txn) and not txn.lut_id and _d(txn.igst_amount) == 0


def _lut_expired(txn: TransactionForValidation, period: str) -> bool:
    if not txn.lut_id:
        return False
    if txn.lut_valid_till is not None and txn.transaction_date > txn.lut_valid_till:
        return True
    if txn.lut_valid_from is not None and txn.transaction_date < txn.lut_valid_from:
        return True
    return False


def _high_value(txn: TransactionForValidation, period: str) -> bool:
    return _d(txn.total_inr) > HIGH_VALUE_THRESHOLD


def _outside_period(txn: TransactionForValidation, period: str) -> bool:
    year, month = parse_period(period)
    return (txn.transaction_date.year, txn.transaction_date.month) != (year, month)


def _rcm_without_voucher(txn: TransactionForValidation, period: str) -> bool:
    return txn.is_reverse_charge and not txn.payment_voucher_id


@dataclass(frozen=True)
class _Rule:
    code: str
    severity: FlagSeverity
    message: str
    applies: Callable[[TransactionForValidation, str], bool]


RULES: tuple[_Rule, ...] = (
    _Rule(
        "EXPORT_NO_LUT",
        FlagSeverity.WARNING,
        "Export invoice without LUT. Either file LUT or pay IGST.",
        _export_without_lut,
    ),
    _Rule(
        "LUT_EXPIRED",
        FlagSeverity.ERROR,
        "LUT was not valid on the invoice date. Renew LUT or pay IGST.",
        _lut_expired,
    ),
    _Rule(
        "RCM_NO_PAYMENT_VOUCHER",
        FlagSeverity.WARNING,
        "RCM self-invoice without payment voucher. Generate payment voucher for records.",
        _rcm_without_voucher,
    ),
    _Rule(
        "INVOICE_OUTSIDE_PERIOD",
        FlagSeverity.WARNING,
        "Invoice date is outside the filing period {period}.",
        _outside_period,
    ),
    _Rule(
        "HIGH_VALUE_TRANSACTION",
        FlagSeverity.INFO,
        "High value transaction (>₹10L). Verify details before filing.",
        _high_value,
    ),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_filing_item(txn: TransactionForValidation, period: str) -> list[ValidationFlag]:
    """
    Run every rule against ``txn`` for filing ``period`` (YYYY-MM).

    Raises InvalidPeriodError for a malformed period.
    """
    parse_period(period)
    return [
        ValidationFlag(rule.code, rule.message.format(period=period), rule.severity)
        for rule in RULES
        if rule.applies(txn, period)
    ]


def has_blocking_errors(flags: Iterable[ValidationFlag]) -> bool:
    return any(f.severity is FlagSeverity.ERROR for f in flags)


def group_flags_by_severity(flags: Iterable[ValidationFlag]) -> dict[FlagSeverity, list[ValidationFlag]]:
    grouped: dict[FlagSeverity, list[ValidationFlag]] = {s: [] for s in FlagSeverity}
    for f in flags:
        grouped[f.severity].append(f)
    return grouped


def filing_readiness_score(flags: Iterable[ValidationFlag]) -> int:
    """100 minus a fixed penalty per flag severity, floored at 0."""
    score = 100
    for f in flags:
        score -= SEVERITY_PENALTY[f.severity.value]
    return max(0, score)
