# gst_compliance/domain/errors.py
"""
Domain errors raised by the compliance engine.

Every error carries a human-readable message that the UI layer can show
verbatim. Unknown-but-legitimate data (unmapped state codes, unclassifiable
transactions) is NOT an error: those paths return None / UNCLASSIFIED.
"""

from __future__ import annotations


class ComplianceError(Exception):
    """Base class for all engine errors."""
    pass


class InvalidPeriodError(ComplianceError, ValueError):
    """Raised when a filing period string is not a valid YYYY-MM month."""
    pass


class TaxComputationError(ComplianceError, ValueError):
    """Raised when a tax computation receives inputs that violate its contract."""
    pass


class MissingExchangeRateError(TaxComputationError):
    """Raised when a foreign-currency amount has no exchange rate to convert it."""

    def __init__(self, currency: str, on=None) -> None:
        self.currency = currency
        self.on = on
        when = f" on {on.isoformat()}" if on is not None else ""
        super().__init__(
            f"Exchange rate is required to convert {currency} to INR{when}"
        )


class LutValidationError(ComplianceError, ValueError):
    """Raised when LUT details are inconsistent (dates, number format)."""
    pass


class LutNotFoundError(ComplianceError, LookupError):
    """Raised when a LUT does not exist or belongs to another owner."""
    pass


class LutInUseError(ComplianceError):
    """Raised when deleting a LUT that is still referenced by invoices."""
    pass
