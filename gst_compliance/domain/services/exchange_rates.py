# gst_compliance/domain/services/exchange_rates.py
"""
Exchange-rate lookup contract used by the tax computation engine.

The rate source (RBI reference rates, a bank feed, a cached table) lives
outside this package. It only has to implement ``ExchangeRateProvider``.
A missing rate is always an error: there is no fallback to 1.0 or 0.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol

from gst_compliance.core.config import settings
from gst_compliance.domain.errors import MissingExchangeRateError, TaxComputationError


class ExchangeRateProvider(Protocol):
    def get_rate(self, currency: str, on: date) -> Decimal | None:
        """INR per one unit of ``currency`` on ``on``, or None if unknown."""
        ...


class StaticRateProvider:
    """In-memory rates keyed by (currency, date); useful for tests and batch jobs."""

    def __init__(self, rates: dict[tuple[str, date], Decimal | str | float] | None = None) -> None:
        self._rates: dict[tuple[str, date], Decimal] = {}
        for (currency, on), rate in (rates or {}).items():
            self.set_rate(currency, on, rate)

    def set_rate(self, currency: str, on: date, rate: Decimal | str | float) -> None:
        self._rates[(currency.upper(), on)] = Decimal(str(rate))

    def get_rate(self, currency: str, on: date) -> Decimal | None:
        return self._rates.get((currency.upper(), on))


def is_home_currency(currency: str | None) -> bool:
    return not currency or currency.upper() == settings.HOME_CURRENCY


def check_exchange_rate(currency: str, rate: Decimal | str | float | None, on: date | None = None) -> Decimal:
    """Return ``rate`` as a Decimal, rejecting missing and non-positive rates."""
    if rate is None:
        raise MissingExchangeRateError(currency, on)
    raw = rate
    try:
        rate = Decimal(str(raw))
    except Exception as exc:
        raise TaxComputationError(f"Exchange rate for {currency} '{raw}' is not a number") from exc
    if not rate.is_finite():
        raise TaxComputationError(f"Exchange rate for {currency} '{raw}' is not a finite number")
    if rate <= 0:
        raise TaxComputationError(
            f"Exchange rate for {currency} must be greater than 0 (got {rate})"
        )
    return rate


def resolve_exchange_rate(provider: ExchangeRateProvider, currency: str, on: date) -> Decimal:
    if is_home_currency(currency):
        return Decimal("1")
    return check_exchange_rate(currency, provider.get_rate(currency.upper(), on), on)


def convert_to_inr(
    amount: Decimal | str | float,
    currency: str,
    on: date,
    provider: ExchangeRateProvider,
) -> tuple[Decimal, Decimal]:
    """Convert ``amount`` to INR. Returns (inr_amount_rounded, rate_used)."""
    from gst_compliance.domain.services.tax_computation import round_money

    rate = resolve_exchange_rate(provider, currency, on)
    return round_money(Decimal(str(amount)) * rate), rate
