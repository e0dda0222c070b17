# tests/test_exchange_rates.py
"""Tests for the exchange-rate lookup contract."""

from datetime import date
from decimal import Decimal

import pytest

from gst_compliance.domain.errors import MissingExchangeRateError, TaxComputationError
from gst_compliance.domain.services.exchange_rates import (
    StaticRateProvider,
    check_exchange_rate,
    convert_to_inr,
    is_home_currency,
    resolve_exchange_rate,
)

ON = date(2025, 1, 15)


@pytest.fixture
def provider():
    return StaticRateProvider({("USD", ON): "83.1234", ("eur", ON): 90})


def test_home_currency():
    assert is_home_currency("INR")
    assert is_home_currency("inr")
    assert is_home_currency(None)
    assert not is_home_currency("USD")


def test_provider_lookup_is_case_insensitive(provider):
    assert provider.get_rate("usd", ON) == Decimal("83.1234")
    assert provider.get_rate("EUR", ON) == Decimal("90")
    assert provider.get_rate("USD", date(2025, 1, 16)) is None


def test_resolve_inr_is_one(provider):
    assert resolve_exchange_rate(provider, "INR", ON) == Decimal("1")


def test_resolve_missing_rate_names_currency_and_date(provider):
    with pytest.raises(MissingExchangeRateError) as exc:
        resolve_exchange_rate(provider, "GBP", ON)
    assert exc.value.currency == "GBP"
    assert "GBP" in str(exc.value)
    assert "2025-01-15" in str(exc.value)


def test_check_rejects_non_positive():
    with pytest.raises(TaxComputationError):
        check_exchange_rate("USD", "0")


@pytest.mark.parametrize("rate", ["NaN", "Infinity", "eighty"])
def test_check_rejects_non_finite_and_garbage(rate):
    with pytest.raises(TaxComputationError, match="Exchange rate for USD"):
        check_exchange_rate("USD", rate)


def test_convert_to_inr_rounds_to_paise(provider):
    inr, rate = convert_to_inr("10.50", "USD", ON, provider)
    # 10.50 × 83.1234 = 872.7957
    assert inr == Decimal("872.80")
    assert rate == Decimal("83.1234")


def test_convert_inr_passthrough(provider):
    assert convert_to_inr(100, "INR", ON, provider) == (Decimal("100.00"), Decimal("1"))


def test_set_rate_overrides(provider):
    provider.set_rate("USD", ON, "84")
    assert convert_to_inr(1, "USD", ON, provider)[0] == Decimal("84.00")
