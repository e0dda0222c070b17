"""Shared test fixtures for the GST compliance engine test suite."""

import asyncio
import uuid
from datetime import date
from decimal import Decimal

import pytest

from gst_compliance.domain.services.filing_validation import (
    TransactionForValidation,
    TransactionType,
)
from gst_compliance.domain.services.lut_lifecycle import Lut


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.UUID("11111111-2222-3333-4444-555555555555")


@pytest.fixture
def fy_lut(owner_id) -> Lut:
    """An active LUT covering FY 2024-25."""
    return Lut(
        owner_id=owner_id,
        lut_number="AD2704240012345",
        lut_date=date(2024, 3, 28),
        valid_from=date(2024, 4, 1),
        valid_till=date(2025, 3, 31),
    )


@pytest.fixture
def export_txn() -> TransactionForValidation:
    """Zero-rated export to a US client in January 2025, no LUT linked."""
    return TransactionForValidation(
        transaction_type=TransactionType.EXPORT,
        transaction_date=date(2025, 1, 15),
        counterparty_country="United States",
        total_inr=Decimal("420000.00"),
    )


@pytest.fixture
def b2b_txn() -> TransactionForValidation:
    """Intra-state B2B sale in January 2025 at 18%."""
    return TransactionForValidation(
        transaction_type=TransactionType.DOMESTIC_B2B,
        transaction_date=date(2025, 1, 10),
        counterparty_country="India",
        counterparty_gstin="27AAPFU0939F1ZV",
        total_inr=Decimal("100000.00"),
        cgst_amount=Decimal("9000.00"),
        sgst_amount=Decimal("9000.00"),
    )


@pytest.fixture
def import_rcm_txn() -> TransactionForValidation:
    """Self-invoice for a cloud subscription bought from abroad."""
    return TransactionForValidation(
        transaction_type=TransactionType.SELF_INVOICE,
        transaction_date=date(2025, 1, 5),
        is_reverse_charge=True,
        rcm_type="IMPORT_OF_SERVICES",
        counterparty_country="Ireland",
        total_inr=Decimal("8350.00"),
        igst_amount=Decimal("1503.00"),
        payment_voucher_id="PV-2025-001",
    )
