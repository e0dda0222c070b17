# gst_compliance/domain/services/tax_computation.py
"""
GST and Reverse Charge (RCM) tax computation.

Two RCM paths, selected by ``RcmType``:

  IMPORT_OF_SERVICES   Service bought from abroad. Always a single IGST
                       component on the INR value. Foreign-currency amounts
                       need an explicit positive exchange rate.
  INDIAN_UNREGISTERED  Service from an unregistered Indian supplier.
                       Same state → CGST + SGST halves; otherwise IGST.

Self-assessed RCM tax is fully creditable: ``itc_claimable`` always equals
``rcm_liability``.

Rounding: ROUND_HALF_UP (away from zero) to 2 dp, applied to each component
independently, then summed.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from gst_compliance.domain.errors import TaxComputationError
from gst_compliance.domain.services.exchange_rates import check_exchange_rate, is_home_currency
from gst_compliance.domain.services.filing_calendar import gstr3b_due_date, period_from_date
from gst_compliance.domain.services.gstin_pan_validation import GST_STATE_CODES

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

VALID_GST_RATES = (Decimal("0"), Decimal("5"), Decimal("12"), Decimal("18"), Decimal("28"))


class RcmType(str, enum.Enum):
    IMPORT_OF_SERVICES = "IMPORT_OF_SERVICES"
    INDIAN_UNREGISTERED = "INDIAN_UNREGISTERED"


@dataclass(frozen=True)
class GstComponents:
    igst: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    cess: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.igst + self.cgst + self.sgst + self.cess

    @property
    def is_interstate(self) -> bool:
        return self.cgst == ZERO and self.sgst == ZERO

    def __add__(self, other: "GstComponents") -> "GstComponents":
        return GstComponents(
            igst=self.igst + other.igst,
            cgst=self.cgst + other.cgst,
            sgst=self.sgst + other.sgst,
            cess=self.cess + other.cess,
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "igst": float(self.igst),
            "cgst": float(self.cgst),
            "sgst": float(self.sgst),
            "cess": float(self.cess),
            "total": float(self.total),
        }


@dataclass(frozen=True)
class RcmTaxResult:
    rcm_type: RcmType
    taxable_value: Decimal               # INR
    gst_rate: Decimal
    components: GstComponents
    foreign_currency: str | None = None
    foreign_amount: Decimal | None = None
    exchange_rate: Decimal | None = None

    @property
    def rcm_liability(self) -> Decimal:
        return self.components.total

    @property
    def itc_claimable(self) -> Decimal:
        return self.components.total

    @property
    def total_amount(self) -> Decimal:
        return self.taxable_value + self.components.total

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "rcm_type": self.rcm_type.value,
            "taxable_value": float(self.taxable_value),
            "gst_rate": float(self.gst_rate),
            **self.components.to_dict(),
            "rcm_liability": float(self.rcm_liability),
            "itc_claimable": float(self.itc_claimable),
            "total_amount": float(self.total_amount),
        }
        if self.foreign_currency:
            data["foreign_currency"] = self.foreign_currency
            data["foreign_amount"] = float(self.foreign_amount or ZERO)
            data["exchange_rate"] = float(self.exchange_rate or ZERO)
        return data


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def round_money(value: Decimal | int | float | str) -> Decimal:
    """Round to paise, half away from zero."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _amount(value: Any, label: str = "Taxable amount") -> Decimal:
    try:
        amount = Decimal(str(value))
    except Exception as exc:
        raise TaxComputationError(f"{label} '{value}' is not a number") from exc
    if not amount.is_finite():
        raise TaxComputationError(f"{label} '{value}' is not a finite number")
    if amount < 0:
        raise TaxComputationError(f"{label} cannot be negative")
    return amount


def _rate(value: Any) -> Decimal:
    rate = _amount(value, "GST rate")
    if rate not in VALID_GST_RATES:
        valid = ", ".join(f"{r}%" for r in VALID_GST_RATES)
        raise TaxComputationError(f"Invalid GST rate {value}%. Valid rates are: {valid}")
    return rate


def _cess_rate(value: Any) -> Decimal:
    return _amount(value or 0, "Cess rate")


def _levy(base: Decimal, rate: Decimal) -> Decimal:
    return round_money(base * rate / HUNDRED)


def _state_code(value: Any, label: str) -> str:
    """Normalise a 1-2 digit state code ("7" -> "07") and check it is a known state/UT."""
    code = str(value or "").strip()
    if code.isdigit() and len(code) == 1:
        code = code.zfill(2)
    if code not in GST_STATE_CODES:
        raise TaxComputationError(
            f"{label} state code '{value}' is not a valid GST state code (expected 01-38, 97 or 99)"
        )
    return code


def _is_interstate(supplier_state: Any, recipient_state: Any, recipient_label: str) -> bool:
    return _state_code(supplier_state, "Supplier") != _state_code(recipient_state, recipient_label)


def is_valid_gst_rate(rate: Any) -> bool:
    try:
        return Decimal(str(rate)) in VALID_GST_RATES
    except Exception:
        return False


# ---------------------------------------------------------------------------
# Domestic (forward charge)
# ---------------------------------------------------------------------------

def compute_gst_components(
    amount: Decimal | int | float | str,
    gst_rate: Decimal | int | float | str,
    is_interstate: bool = True,
    cess_rate: Decimal | int | float | str = 0,
) -> GstComponents:
    """Split GST on ``amount`` into IGST or CGST+SGST, plus cess on the same base."""
    base = _amount(amount)
    rate = _rate(gst_rate)
    cess = _levy(base, _cess_rate(cess_rate))

    if is_interstate:
        return GstComponents(igst=_levy(base, rate), cess=cess)

    half = rate / 2
    return GstComponents(cgst=_levy(base, half), sgst=_levy(base, half), cess=cess)


def compute_domestic_gst(
    amount: Decimal | int | float | str,
    gst_rate: Decimal | int | float | str,
    supplier_state: str,
    customer_state: str,
    cess_rate: Decimal | int | float | str = 0,
) -> GstComponents:
    """Forward-charge GST where the place of supply decides IGST vs CGST+SGST."""
    if not supplier_state or not customer_state:
        raise TaxComputationError("Supplier and customer state codes are required")
    return compute_gst_components(
        amount,
        gst_rate,
        is_interstate=_is_interstate(supplier_state, customer_state, "Customer"),
        cess_rate=cess_rate,
    )


# ---------------------------------------------------------------------------
# Reverse charge
# ---------------------------------------------------------------------------

def compute_import_rcm(
    amount: Decimal | int | float | str,
    gst_rate: Decimal | int | float | str,
    currency: str = "INR",
    exchange_rate: Decimal | int | float | str | None = None,
    cess_rate: Decimal | int | float | str = 0,
) -> RcmTaxResult:
    """RCM on import of services: single IGST component on the INR value."""
    source_amount = _amount(amount)
    rate = _rate(gst_rate)

    foreign_currency = foreign_amount = fx = None
    if is_home_currency(currency):
        taxable = source_amount
    else:
        fx = check_exchange_rate(currency.upper(), exchange_rate)
        foreign_currency = currency.upper()
        foreign_amount = source_amount
        taxable = round_money(source_amount * fx)

    components = GstComponents(
        igst=_levy(taxable, rate),
        cess=_levy(taxable, _cess_rate(cess_rate)),
    )
    return RcmTaxResult(
        rcm_type=RcmType.IMPORT_OF_SERVICES,
        taxable_value=taxable,
        gst_rate=rate,
        components=components,
        foreign_currency=foreign_currency,
        foreign_amount=foreign_amount,
        exchange_rate=fx,
    )


def compute_unregistered_rcm(
    amount: Decimal | int | float | str,
    gst_rate: Decimal | int | float | str,
    supplier_state: str,
    recipient_state: str,
    cess_rate: Decimal | int | float | str = 0,
) -> RcmTaxResult:
    """RCM on supplies from an unregistered Indian supplier."""
    if not supplier_state or not recipient_state:
        raise TaxComputationError(
            "Supplier and recipient state codes are required for unregistered-supplier RCM"
        )
    taxable = _amount(amount)
    components = compute_gst_components(
        taxable,
        gst_rate,
        is_interstate=_is_interstate(supplier_state, recipient_state, "Recipient"),
        cess_rate=cess_rate,
    )
    return RcmTaxResult(
        rcm_type=RcmType.INDIAN_UNREGISTERED,
        taxable_value=taxable,
        gst_rate=_rate(gst_rate),
        components=components,
    )


def compute_rcm(rcm_type: RcmType | str, amount: Any, gst_rate: Any, **kwargs: Any) -> RcmTaxResult:
    """
    Dispatch to the RCM path for ``rcm_type``.

    IMPORT_OF_SERVICES accepts ``currency``, ``exchange_rate``, ``cess_rate``;
    INDIAN_UNREGISTERED needs ``supplier_state`` and ``recipient_state``.
    """
    try:
        rcm_type = RcmType(rcm_type)
    except ValueError as exc:
        raise TaxComputationError(f"Unknown RCM type '{rcm_type}'") from exc

    if rcm_type is RcmType.IMPORT_OF_SERVICES:
        return compute_import_rcm(
            amount,
            gst_rate,
            currency=kwargs.get("currency") or "INR",
            exchange_rate=kwargs.get("exchange_rate"),
            cess_rate=kwargs.get("cess_rate", 0),
        )
    return compute_unregistered_rcm(
        amount,
        gst_rate,
        supplier_state=kwargs.get("supplier_state", ""),
        recipient_state=kwargs.get("recipient_state", ""),
        cess_rate=kwargs.get("cess_rate", 0),
    )


def compute_rcm_for_line_items(
    rcm_type: RcmType | str,
    items: Iterable[dict[str, Any]],
    **kwargs: Any,
) -> RcmTaxResult:
    """
    Compute RCM per line item and sum the (already rounded) components.

    Each item: ``{"amount": ..., "gst_rate": ..., "cess_rate": ... (optional)}``.
    The reported ``gst_rate`` is the first item's rate.
    """
    items = list(items)
    if not items:
        raise TaxComputationError("At least one line item is required")

    results = [
        compute_rcm(
            rcm_type,
            item["amount"],
            item["gst_rate"],
            **{**kwargs, "cess_rate": item.get("cess_rate", 0)},
        )
        for item in items
    ]

    components = GstComponents()
    taxable = ZERO
    foreign_amount = None
    for r in results:
        components = components + r.components
        taxable += r.taxable_value
        if r.foreign_amount is not None:
            foreign_amount = (foreign_amount or ZERO) + r.foreign_amount

    first = results[0]
    return RcmTaxResult(
        rcm_type=first.rcm_type,
        taxable_value=taxable,
        gst_rate=first.gst_rate,
        components=components,
        foreign_currency=first.foreign_currency,
        foreign_amount=foreign_amount,
        exchange_rate=first.exchange_rate,
    )


def rcm_tax_due_date(transaction_date: date) -> date:
    """RCM tax is paid with GSTR-3B: the 20th of the following month."""
    return gstr3b_due_date(period_from_date(transaction_date))
