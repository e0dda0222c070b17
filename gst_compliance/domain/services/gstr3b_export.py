# gst_compliance/domain/services/gstr3b_export.py
"""
Roll classified items up into GSTR-3B sections and build the portal JSON.

  3.1(a)  osup_det   outward taxable (incl. import-of-services RCM)
  3.1(b)  osup_zero  zero-rated exports
  3.1(d)  isup_rev   inward supplies under RCM
  4A(3)   ISRC       ITC on RCM tax
  4A(5)   OTH        all other ITC (registered purchases)
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable

from gst_compliance.domain.models.gst import Gstr3bSummary, ItcBucket, TaxBucket
from gst_compliance.domain.services.filing_calendar import parse_period, period_date_range
from gst_compliance.domain.services.filing_classification import (
    RCM_ITC_SECTION,
    Gstr3bClassification,
    Gstr3bSection,
)
from gst_compliance.domain.services.period_summary import PeriodTaxSummary

logger = logging.getLogger("gstr3b_export")

_SECTION_BUCKET = {
    Gstr3bSection.OUTWARD_TAXABLE: "outward_taxable_supplies",
    Gstr3bSection.ZERO_RATED: "outward_zero_rated",
    Gstr3bSection.INWARD_RCM: "inward_reverse_charge",
}


def _d(val: Decimal | None) -> float:
    """Convert Decimal to float for JSON serialization."""
    if val is None:
        return 0.0
    return float(val)


def _add_tax(bucket: TaxBucket, item: Gstr3bClassification) -> None:
    bucket.taxable_value += item.taxable_value
    bucket.igst += item.igst
    bucket.cgst += item.cgst
    bucket.sgst += item.sgst


def _add_itc(bucket: ItcBucket, igst: Decimal, cgst: Decimal, sgst: Decimal) -> None:
    bucket.igst += igst
    bucket.cgst += cgst
    bucket.sgst += sgst


def build_gstr3b_summary(
    items: Iterable[Gstr3bClassification],
    period: str,
    gstin: str | None = None,
    summary: PeriodTaxSummary | None = None,
) -> Gstr3bSummary:
    """
    Sum classified items per section.

    ITC on registered purchases (4A(5)) is not visible on the items; it is
    taken from ``summary`` as ITC available less the RCM credit.
    """
    start, end = period_date_range(period)
    out = Gstr3bSummary(gstin=gstin, period=period, period_start=start, period_end=end)

    for item in items:
        out.total_items += 1
        bucket_name = _SECTION_BUCKET.get(item.section)
        if bucket_name is None:
            out.unclassified_items += 1
            continue
        _add_tax(getattr(out, bucket_name), item)
        if item.itc_section == RCM_ITC_SECTION:
            _add_itc(out.itc_reverse_charge, item.itc_igst, item.itc_cgst, item.itc_sgst)

    if summary is not None:
        purchases = summary.itc_available
        rcm = summary.rcm_liability
        _add_itc(
            out.itc_other,
            purchases.igst - rcm.igst,
            purchases.cgst - rcm.cgst,
            purchases.sgst - rcm.sgst,
        )

    if out.unclassified_items:
        logger.warning(
            "GSTR-3B %s: %d of %d items could not be classified and were left out",
            period,
            out.unclassified_items,
            out.total_items,
        )
    return out


def make_gstr3b_json(gstin: str, summary: Gstr3bSummary) -> Dict[str, Any]:
    """Serialise a Gstr3bSummary in the GST portal GSTR-3B schema."""
    out = summary.outward_taxable_supplies
    zero = summary.outward_zero_rated
    rcm = summary.inward_reverse_charge
    itc_rcm = summary.itc_reverse_charge
    itc_oth = summary.itc_other

    # Filing period: MMYYYY (e.g. "012025")
    year, month = parse_period(summary.period or "")
    fp = f"{month:02d}{year}"

    itc_net = ItcBucket(
        igst=itc_rcm.igst + itc_oth.igst,
        cgst=itc_rcm.cgst + itc_oth.cgst,
        sgst=itc_rcm.sgst + itc_oth.sgst,
    )

    return {
        "gstin": gstin,
        "fp": fp,
        "sup_details": {
            "osup_det": {
                "txval": _d(out.taxable_value),
                "iamt": _d(out.igst),
                "camt": _d(out.cgst),
                "samt": _d(out.sgst),
                "csamt": _d(out.cess),
            },
            "osup_zero": {
                "txval": _d(zero.taxable_value),
                "iamt": _d(zero.igst),
                "csamt": _d(zero.cess),
            },
            "isup_rev": {
                "txval": _d(rcm.taxable_value),
                "iamt": _d(rcm.igst),
                "camt": _d(rcm.cgst),
                "samt": _d(rcm.sgst),
                "csamt": _d(rcm.cess),
            },
        },
        "itc_elg": {
            "itc_avl": [
                {
                    "ty": "ISRC",
                    "iamt": _d(itc_rcm.igst),
                    "camt": _d(itc_rcm.cgst),
                    "samt": _d(itc_rcm.sgst),
                    "csamt": _d(itc_rcm.cess),
                },
                {
                    "ty": "OTH",
                    "iamt": _d(itc_oth.igst),
                    "camt": _d(itc_oth.cgst),
                    "samt": _d(itc_oth.sgst),
                    "csamt": _d(itc_oth.cess),
                },
            ],
            "itc_rev": [],
            "itc_net": {
                "iamt": _d(itc_net.igst),
                "camt": _d(itc_net.cgst),
                "samt": _d(itc_net.sgst),
                "csamt": _d(itc_net.cess),
            },
        },
    }


def build_gstr3b_payload(
    gstin: str,
    period: str,
    items: Iterable[Gstr3bClassification],
    summary: PeriodTaxSummary | None = None,
) -> Dict[str, Any]:
    """Classified items (+ optional period summary) → GSTR-3B portal JSON."""
    gstr3b = build_gstr3b_summary(items, period, gstin=gstin, summary=summary)
    return make_gstr3b_json(gstin, gstr3b)
