# gst_compliance/domain/services/filing_calendar.py
"""
GST filing calendar.

Indian GST monthly filers:
  - GSTR-1:  11th of the month following the period
  - GSTR-3B: 20th of the month following the period

Financial year runs April to March (FY 2024-25 = Apr 2024 – Mar 2025).
"""

from __future__ import annotations

import re
from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime

from gst_compliance.domain.errors import InvalidPeriodError

GSTR1_DUE_DAY = 11
GSTR3B_DUE_DAY = 20

_PERIOD_RE = re.compile(r"^(\d{4})-(\d{2})$")

_MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


@dataclass(frozen=True)
class FilingPeriod:
    """A monthly filing period with its derived FY and statutory due dates."""
    period: str              # YYYY-MM
    fiscal_year: str         # YYYY-YY
    gstr1_due_date: date
    gstr3b_due_date: date

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "fiscal_year": self.fiscal_year,
            "gstr1_due_date": self.gstr1_due_date.isoformat(),
            "gstr3b_due_date": self.gstr3b_due_date.isoformat(),
        }


def parse_period(period: str) -> tuple[int, int]:
    """Split 'YYYY-MM' into (year, month). Raises InvalidPeriodError if malformed."""
    m = _PERIOD_RE.match((period or "").strip())
    if not m:
        raise InvalidPeriodError(f"Filing period '{period}' must be in YYYY-MM format")
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12:
        raise InvalidPeriodError(f"Filing period '{period}' has an invalid month")
    return year, month


def _next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def _prev_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def fiscal_year(period: str) -> str:
    """Convert 'YYYY-MM' to Indian financial year 'YYYY-YY'.

      - 2025-01 → 2024-25  (Jan 2025 falls in FY Apr 2024 – Mar 2025)
      - 2025-04 → 2025-26  (Apr 2025 starts FY 2025-26)
    """
    year, month = parse_period(period)
    fy_start = year if month >= 4 else year - 1
    fy_end = (fy_start + 1) % 100
    return f"{fy_start}-{fy_end:02d}"


def gstr1_due_date(period: str) -> date:
    year, month = parse_period(period)
    due_year, due_month = _next_month(year, month)
    return date(due_year, due_month, GSTR1_DUE_DAY)


def gstr3b_due_date(period: str) -> date:
    year, month = parse_period(period)
    due_year, due_month = _next_month(year, month)
    return date(due_year, due_month, GSTR3B_DUE_DAY)


def filing_period(period: str) -> FilingPeriod:
    return FilingPeriod(
        period=period,
        fiscal_year=fiscal_year(period),
        gstr1_due_date=gstr1_due_date(period),
        gstr3b_due_date=gstr3b_due_date(period),
    )


def period_from_date(d: date) -> str:
    return f"{d.year}-{d.month:02d}"


def period_date_range(period: str) -> tuple[date, date]:
    """Return (first_day, last_day) for a YYYY-MM period."""
    year, month = parse_period(period)
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def _as_date(value: date | datetime | None) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


def is_overdue(due_date: date, now: date | datetime | None = None) -> bool:
    """True once the due date has passed. The due date itself is not overdue."""
    today = _as_date(now)
    return today > due_date


def days_until_due(due_date: date, now: date | datetime | None = None) -> int:
    """Days remaining until the due date; negative once overdue."""
    today = _as_date(now)
    return (due_date - today).days


def upcoming_periods(count: int, anchor: date | datetime | None = None) -> list[FilingPeriod]:
    """
    Return ``count`` consecutive filing periods, oldest first, ending with
    the month before ``anchor`` (the period that has just closed and is due next).
    """
    if count <= 0:
        return []

    today = _as_date(anchor)
    year, month = _prev_month(today.year, today.month)

    periods: list[FilingPeriod] = []
    for _ in range(count):
        periods.append(filing_period(f"{year}-{month:02d}"))
        year, month = _prev_month(year, month)
    periods.reverse()
    return periods


def format_period(period: str) -> str:
    """'2024-01' → 'January 2024'."""
    year, month = parse_period(period)
    return f"{_MONTH_NAMES[month - 1]} {year}"


def format_fiscal_year(fy: str) -> str:
    return f"FY {fy}"
