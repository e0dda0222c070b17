# gst_compliance/domain/services/period_summary.py
"""
Period tax summary (GSTR-3B view).

Aggregates output tax, eligible ITC and self-assessed RCM for a filing
period, then sets credit off against liability:

  IGST credit  → IGST, then CGST, then SGST
  CGST credit  → CGST only
  SGST credit  → SGST only

``itc_available`` includes RCM tax (creditable in the same period), so RCM
is reported for disclosure but nets to zero. ``net_payable.total`` is the
signed difference output − credit; a negative figure becomes
``accumulated_credit`` (refund candidate).

The summary is recomputed on every call and never stored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Iterable
from uuid import UUID

from gst_compliance.domain.services.filing_calendar import parse_period, period_date_range

logger = logging.getLogger("period_summary")

ZERO = Decimal("0")

HIGH_ITC_RATIO = Decimal("0.9")
HIGH_SALES_THRESHOLD = Decimal("50000")

ROW_OUTWARD = "outward"
ROW_RCM = "rcm"
ROW_PURCHASE = "purchase"


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TaxHeads:
    igst: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.igst + self.cgst + self.sgst

    def __add__(self, other: "TaxHeads") -> "TaxHeads":
        return TaxHeads(self.igst + other.igst, self.cgst + other.cgst, self.sgst + other.sgst)

    def to_dict(self) -> dict[str, float]:
        return {
            "igst": float(self.igst),
            "cgst": float(self.cgst),
            "sgst": float(self.sgst),
            "total": float(self.total),
        }


@dataclass(frozen=True)
class NetPayable:
    """Cash payable per head after set-off; ``total`` is the signed net."""
    igst: Decimal
    cgst: Decimal
    sgst: Decimal
    total: Decimal

    @property
    def cash_total(self) -> Decimal:
        return self.igst + self.cgst + self.sgst

    def to_dict(self) -> dict[str, float]:
        return {
            "igst": float(self.igst),
            "cgst": float(self.cgst),
            "sgst": float(self.sgst),
            "total": float(self.total),
        }


@dataclass(frozen=True)
class TaxRow:
    """One invoice/purchase line as the aggregator sees it."""
    kind: str          # outward / rcm / purchase
    row_date: date
    igst: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    itc_eligible: bool = True


@dataclass
class PeriodTotals:
    output: TaxHeads = field(default_factory=TaxHeads)
    itc: TaxHeads = field(default_factory=TaxHeads)
    rcm: TaxHeads = field(default_factory=TaxHeads)
    outward_count: int = 0
    inward_count: int = 0


@dataclass
class PeriodTaxSummary:
    output_liability: TaxHeads
    rcm_liability: TaxHeads
    itc_available: TaxHeads
    net_payable: NetPayable
    credit_carried_forward: TaxHeads
    accumulated_credit: Decimal
    period: str | None = None
    outward_count: int = 0
    inward_count: int = 0
    risk_flags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period,
            "output_liability": self.output_liability.to_dict(),
            "rcm_liability": self.rcm_liability.to_dict(),
            "itc_available": self.itc_available.to_dict(),
            "net_payable": self.net_payable.to_dict(),
            "credit_carried_forward": self.credit_carried_forward.to_dict(),
            "accumulated_credit": float(self.accumulated_credit),
            "outward_count": self.outward_count,
            "inward_count": self.inward_count,
            "risk_flags": list(self.risk_flags),
        }


# ---------------------------------------------------------------------------
# Set-off
# ---------------------------------------------------------------------------

def set_off_credit(liability: TaxHeads, credit: TaxHeads) -> tuple[TaxHeads, TaxHeads]:
    """
    Apply ``credit`` against ``liability``.

    Returns (cash payable per head, credit left per head). CGST and SGST
    credit are used on their own head first; IGST credit covers IGST and
    then whatever CGST and SGST remain, in that order.
    """
    cgst_due = max(ZERO, liability.cgst - credit.cgst)
    sgst_due = max(ZERO, liability.sgst - credit.sgst)
    cgst_left = max(ZERO, credit.cgst - liability.cgst)
    sgst_left = max(ZERO, credit.sgst - liability.sgst)

    igst_credit = credit.igst
    igst_due = liability.igst
    for_igst = min(igst_credit, igst_due)
    igst_due -= for_igst
    igst_credit -= for_igst

    for_cgst = min(igst_credit, cgst_due)
    cgst_due -= for_cgst
    igst_credit -= for_cgst

    for_sgst = min(igst_credit, sgst_due)
    sgst_due -= for_sgst
    igst_credit -= for_sgst

    return (
        TaxHeads(igst=igst_due, cgst=cgst_due, sgst=sgst_due),
        TaxHeads(igst=igst_credit, cgst=cgst_left, sgst=sgst_left),
    )


def compute_period_summary(output: TaxHeads, itc: TaxHeads, rcm: TaxHeads) -> PeriodTaxSummary:
    itc_available = itc + rcm
    payable, carried = set_off_credit(output, itc_available)
    signed_total = output.total - itc_available.total

    return PeriodTaxSummary(
        output_liability=output,
        rcm_liability=rcm,
        itc_available=itc_available,
        net_payable=NetPayable(
            igst=payable.igst,
            cgst=payable.cgst,
            sgst=payable.sgst,
            total=signed_total,
        ),
        credit_carried_forward=carried,
        accumulated_credit=max(ZERO, -signed_total),
    )


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def row_from_invoice(invoice: Any) -> TaxRow:
    """Outward invoice or RCM self-invoice row → TaxRow."""
    return TaxRow(
        kind=ROW_RCM if invoice.is_rcm else ROW_OUTWARD,
        row_date=invoice.invoice_date,
        igst=_dec(invoice.igst_amount),
        cgst=_dec(invoice.cgst_amount),
        sgst=_dec(invoice.sgst_amount),
    )


def row_from_purchase(purchase: Any) -> TaxRow:
    return TaxRow(
        kind=ROW_PURCHASE,
        row_date=purchase.invoice_date,
        igst=_dec(purchase.igst_amount),
        cgst=_dec(purchase.cgst_amount),
        sgst=_dec(purchase.sgst_amount),
        itc_eligible=bool(purchase.itc_eligible),
    )


def aggregate_period_totals(rows: Iterable[TaxRow], period: str) -> PeriodTotals:
    """Roll rows dated inside ``period`` into output / ITC / RCM heads."""
    year, month = parse_period(period)
    totals = PeriodTotals()

    for row in rows:
        if (row.row_date.year, row.row_date.month) != (year, month):
            continue
        heads = TaxHeads(_dec(row.igst), _dec(row.cgst), _dec(row.sgst))
        if row.kind == ROW_OUTWARD:
            totals.outward_count += 1
            totals.output = totals.output + heads
        elif row.kind == ROW_RCM:
            totals.inward_count += 1
            totals.rcm = totals.rcm + heads
        elif row.kind == ROW_PURCHASE:
            totals.inward_count += 1
            if row.itc_eligible:
                totals.itc = totals.itc + heads
        else:
            logger.warning("Skipping row of unknown kind %r", row.kind)

    return totals


def summarize_period(rows: Iterable[TaxRow], period: str) -> PeriodTaxSummary:
    totals = aggregate_period_totals(rows, period)
    summary = compute_period_summary(totals.output, totals.itc, totals.rcm)
    summary.period = period
    summary.outward_count = totals.outward_count
    summary.inward_count = totals.inward_count
    summary.risk_flags = _generate_risk_flags(summary)
    return summary


async def compute_period_summary_for_owner(owner_id: UUID, period: str, db: Any) -> PeriodTaxSummary:
    """Load an owner's invoices and purchases for ``period`` and summarise them."""
    from gst_compliance.infrastructure.db.repositories import InvoiceRepository

    start, end = period_date_range(period)
    repo = InvoiceRepository(db)

    invoices = await repo.list_for_period(owner_id, start, end)
    purchases = await repo.list_purchases_for_period(owner_id, start, end, eligible_only=False)

    rows = [row_from_invoice(inv) for inv in invoices]
    rows.extend(row_from_purchase(p) for p in purchases)
    summary = summarize_period(rows, period)

    logger.info(
        "Period summary: owner=%s, period=%s, net=%.2f (IGST=%.2f, CGST=%.2f, SGST=%.2f), "
        "accumulated_credit=%.2f, flags=%s",
        owner_id,
        period,
        summary.net_payable.total,
        summary.net_payable.igst,
        summary.net_payable.cgst,
        summary.net_payable.sgst,
        summary.accumulated_credit,
        summary.risk_flags,
    )
    return summary


# ---------------------------------------------------------------------------
# Risk flags
# ---------------------------------------------------------------------------

def _generate_risk_flags(summary: PeriodTaxSummary) -> list[str]:
    flags: list[str] = []
    output_total = summary.output_liability.total

    if summary.rcm_liability.total > ZERO:
        flags.append("RCM_PRESENT")

    if output_total > ZERO and summary.itc_available.total > output_total * HIGH_ITC_RATIO:
        flags.append("HIGH_ITC_RATIO")

    # Nothing to pay despite significant outward supply
    if summary.net_payable.total <= ZERO and output_total > HIGH_SALES_THRESHOLD:
        flags.append("NET_LIABILITY_ZERO_HIGH_SALES")

    return flags


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _dec(val: Any) -> Decimal:
    """Safely convert a value to Decimal."""
    if val is None:
        return ZERO
    try:
        return Decimal(str(val))
    except Exception:
        return ZERO
