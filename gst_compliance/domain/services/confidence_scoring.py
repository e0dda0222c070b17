# gst_compliance/domain/services/confidence_scoring.py
"""
Confidence score for an extracted (OCR / AI parsed) tax document.

Additive weights, clamped to 0-100:

  classification   known +20 | UNKNOWN -15
  completeness     amount +15, currency +10, date +10, vendor +10,
                   client +10, invoice number +5
  context          source type match +10, GST details on a purchase/B2B +10,
                   foreign currency on an export +5
  data quality     high +10 | medium +5 | low 0

Review tiers:  90-100 AUTO_APPROVED | 70-89 REVIEW_RECOMMENDED | <70 MANUAL_REQUIRED
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from gst_compliance.domain.services.exchange_rates import is_home_currency

AUTO_APPROVE_THRESHOLD = 90
REVIEW_THRESHOLD = 70
HIGH_VALUE_AMOUNT = Decimal("1000000")

WEIGHTS = {
    "known_classification": 20,
    "unknown_classification": -15,
    "amount": 15,
    "currency": 10,
    "date": 10,
    "vendor_name": 10,
    "client_name": 10,
    "invoice_number": 5,
    "source_type_match": 10,
    "gst_details_for_purchase": 10,
    "foreign_currency_for_export": 5,
}

QUALITY_WEIGHTS = {"high": 10, "medium": 5, "low": 0}


class DocumentClassification(str, enum.Enum):
    EXPORT_WITH_LUT = "EXPORT_WITH_LUT"
    EXPORT_WITHOUT_LUT = "EXPORT_WITHOUT_LUT"
    DOMESTIC_B2B = "DOMESTIC_B2B"
    DOMESTIC_B2C = "DOMESTIC_B2C"
    PURCHASE_ITC = "PURCHASE_ITC"
    IMPORT_OF_SERVICES = "IMPORT_OF_SERVICES"
    UNREGISTERED_RCM = "UNREGISTERED_RCM"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value: object) -> "DocumentClassification":
        return cls.UNKNOWN


class ReviewStatus(str, enum.Enum):
    AUTO_APPROVED = "AUTO_APPROVED"
    REVIEW_RECOMMENDED = "REVIEW_RECOMMENDED"
    MANUAL_REQUIRED = "MANUAL_REQUIRED"


_GST_DETAIL_CLASSES = {DocumentClassification.PURCHASE_ITC, DocumentClassification.DOMESTIC_B2B}
_EXPORT_CLASSES = {DocumentClassification.EXPORT_WITH_LUT, DocumentClassification.EXPORT_WITHOUT_LUT}


@dataclass
class ExtractionResult:
    classification: DocumentClassification
    amount: Decimal | None = None
    currency: str | None = None
    date: date | None = None
    vendor_name: str | None = None
    vendor_country: str | None = None
    vendor_gstin: str | None = None
    client_name: str | None = None
    client_country: str | None = None
    client_gstin: str | None = None
    invoice_number: str | None = None
    has_gst_details: bool = False
    source_type_match: bool = False
    data_quality: str = "low"  # high / medium / low


@dataclass(frozen=True)
class ConfidenceAdjustment:
    reason: str
    adjustment: int

    def to_dict(self) -> dict[str, Any]:
        return {"reason": self.reason, "adjustment": self.adjustment}


def calculate_confidence_score(extraction: ExtractionResult) -> int:
    score = 0
    classification = DocumentClassification(extraction.classification)

    if classification is DocumentClassification.UNKNOWN:
        score += WEIGHTS["unknown_classification"]
    else:
        score += WEIGHTS["known_classification"]

    if extraction.amount is not None and extraction.amount > 0:
        score += WEIGHTS["amount"]
    if extraction.currency:
        score += WEIGHTS["currency"]
    if extraction.date:
        score += WEIGHTS["date"]
    if extraction.vendor_name:
        score += WEIGHTS["vendor_name"]
    if extraction.client_name:
        score += WEIGHTS["client_name"]
    if extraction.invoice_number:
        score += WEIGHTS["invoice_number"]

    if extraction.source_type_match:
        score += WEIGHTS["source_type_match"]
    if extraction.has_gst_details and classification in _GST_DETAIL_CLASSES:
        score += WEIGHTS["gst_details_for_purchase"]
    if (
        extraction.currency
        and not is_home_currency(extraction.currency)
        and classification in _EXPORT_CLASSES
    ):
        score += WEIGHTS["foreign_currency_for_export"]

    score += QUALITY_WEIGHTS.get(extraction.data_quality, 0)

    return max(0, min(100, score))


def review_status_from_confidence(confidence: int | float) -> ReviewStatus:
    if confidence >= AUTO_APPROVE_THRESHOLD:
        return ReviewStatus.AUTO_APPROVED
    if confidence >= REVIEW_THRESHOLD:
        return ReviewStatus.REVIEW_RECOMMENDED
    return ReviewStatus.MANUAL_REQUIRED


def confidence_adjustments(extraction: ExtractionResult) -> list[ConfidenceAdjustment]:
    """Advisory reasons a reviewer should double-check; not applied to the score."""
    adjustments: list[ConfidenceAdjustment] = []
    classification = DocumentClassification(extraction.classification)

    if extraction.amount and extraction.amount > HIGH_VALUE_AMOUNT:
        adjustments.append(ConfidenceAdjustment("High-value transaction (>10L INR)", -5))
    if not extraction.date:
        adjustments.append(ConfidenceAdjustment("Missing invoice/transaction date", -10))
    if (
        classification is DocumentClassification.EXPORT_WITH_LUT
        and (extraction.currency or "").upper() == "INR"
    ):
        adjustments.append(
            ConfidenceAdjustment("Export classification with INR currency - verify", -15)
        )
    if classification is DocumentClassification.PURCHASE_ITC and not extraction.has_gst_details:
        adjustments.append(
            ConfidenceAdjustment("Purchase ITC classification without GST details", -10)
        )
    return adjustments
