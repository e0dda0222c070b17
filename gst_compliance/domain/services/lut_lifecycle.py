# gst_compliance/domain/services/lut_lifecycle.py
"""
Letter of Undertaking (LUT) lifecycle rules.

An LUT lets an exporter invoice zero-rated supplies without paying IGST
upfront, for a bounded validity window (normally one financial year).

Rules:
  - valid on a date  ⇔ active AND valid_from ≤ date ≤ valid_till
  - status precedence: not_started → expired → expiring (≤ 30 days) → valid
  - only ONE active LUT per owner; activating one deactivates its siblings
  - lut_date ≤ valid_from ≤ valid_till
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Protocol, Sequence, TypeVar

from gst_compliance.domain.errors import LutNotFoundError, LutValidationError
from gst_compliance.domain.services.gstin_pan_validation import is_valid_lut_number

EXPIRY_WARNING_DAYS = 30
RENEWAL_NUDGE_DAYS = 7


class LutStatus(str, enum.Enum):
    VALID = "valid"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    NOT_STARTED = "not_started"


class LutLike(Protocol):
    """Anything shaped like an LUT: the domain dataclass or the ORM row."""
    id: Any
    lut_number: str
    valid_from: date
    valid_till: date
    is_active: bool
    reminder_sent_at: datetime | None


@dataclass
class Lut:
    owner_id: Any
    lut_number: str
    lut_date: date
    valid_from: date
    valid_till: date
    is_active: bool = True
    id: Any = None
    reminder_sent_at: datetime | None = None
    renewal_reminder_sent_at: datetime | None = None
    previous_lut_id: Any = None

    def __post_init__(self) -> None:
        if self.id is None:
            self.id = uuid.uuid4()


@dataclass(frozen=True)
class LutWarning:
    type: str      # "warning" | "error"
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "message": self.message}


L = TypeVar("L", bound=LutLike)


def _as_date(value: date | datetime | None) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


# ---------------------------------------------------------------------------
# Validity
# ---------------------------------------------------------------------------

def is_lut_valid(lut: LutLike, as_of: date | datetime) -> bool:
    d = _as_date(as_of)
    return bool(lut.is_active) and _as_date(lut.valid_from) <= d <= _as_date(lut.valid_till)


def days_until_expiry(lut: LutLike, now: date | datetime | None = None) -> int:
    """Days until ``valid_till``; 0 on the last valid day, negative once expired."""
    return (_as_date(lut.valid_till) - _as_date(now)).days


def lut_status(lut: LutLike, now: date | datetime | None = None) -> LutStatus:
    today = _as_date(now)
    if today < _as_date(lut.valid_from):
        return LutStatus.NOT_STARTED
    if today > _as_date(lut.valid_till):
        return LutStatus.EXPIRED
    if days_until_expiry(lut, today) <= EXPIRY_WARNING_DAYS:
        return LutStatus.EXPIRING
    return LutStatus.VALID


def should_send_reminder(lut: LutLike, now: date | datetime | None = None) -> bool:
    if not lut.is_active or lut.reminder_sent_at is not None:
        return False
    return 0 <= days_until_expiry(lut, now) <= EXPIRY_WARNING_DAYS


def should_send_renewal_reminder(lut: Lut, now: date | datetime | None = None) -> bool:
    """Final-week nudge, sent once, after the 30-day reminder."""
    if not lut.is_active or lut.renewal_reminder_sent_at is not None:
        return False
    return 0 <= days_until_expiry(lut, now) <= RENEWAL_NUDGE_DAYS


def expiry_warning(lut: LutLike, now: date | datetime | None = None) -> LutWarning | None:
    """Banner message for the dashboard, or None when nothing needs attention."""
    status = lut_status(lut, now)
    if status is LutStatus.EXPIRED:
        return LutWarning(
            type="error",
            message=(
                f"Your LUT {lut.lut_number} expired on {_as_date(lut.valid_till).isoformat()}. "
                "Export invoices need a valid LUT or IGST payment."
            ),
        )
    if status is LutStatus.EXPIRING:
        days = days_until_expiry(lut, now)
        when = "today" if days == 0 else f"in {days} day{'s' if days != 1 else ''}"
        return LutWarning(
            type="warning",
            message=f"Your LUT {lut.lut_number} expires {when}. Renew it to keep exporting without IGST.",
        )
    return None


def resolve_active_lut_for_date(luts: Iterable[L], on: date | datetime) -> L | None:
    """The active LUT covering ``on``. Inactive LUTs are never used as a fallback."""
    for lut in luts:
        if is_lut_valid(lut, on):
            return lut
    return None


# ---------------------------------------------------------------------------
# Write-side rules
# ---------------------------------------------------------------------------

def validate_lut_dates(lut_date: date, valid_from: date, valid_till: date) -> None:
    if valid_from > valid_till:
        raise LutValidationError("Valid from date must be before valid till date")
    if lut_date > valid_from:
        raise LutValidationError("LUT date must be before or equal to valid from date")


def validate_lut_number(lut_number: str) -> str:
    number = (lut_number or "").strip().upper()
    if len(number) < 10:
        raise LutValidationError("LUT number must be at least 10 characters")
    if len(number) > 50:
        raise LutValidationError("LUT number must not exceed 50 characters")
    if not is_valid_lut_number(number):
        raise LutValidationError("Invalid LUT number format")
    return number


def suggest_renewal_window(previous: LutLike) -> tuple[date, date]:
    """
    Suggested validity for the renewal: the day after the previous LUT ends,
    through 31 March of the financial year that day falls in.
    """
    start = _as_date(previous.valid_till) + timedelta(days=1)
    fy_end_year = start.year + 1 if start.month >= 4 else start.year
    return start, date(fy_end_year, 3, 31)


def activate_exclusively(luts: Sequence[L], lut_id: Any) -> L:
    """
    Activate ``lut_id`` and deactivate every sibling in ``luts`` (one owner's LUTs).

    Returns the activated LUT. Raises LutNotFoundError if it is not in ``luts``.
    """
    target = next((lut for lut in luts if lut.id == lut_id), None)
    if target is None:
        raise LutNotFoundError("LUT not found")
    for lut in luts:
        lut.is_active = lut is target
    return target
