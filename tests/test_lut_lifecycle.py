# tests/test_lut_lifecycle.py
"""Tests for LUT validity, status, reminders and activation rules."""

from datetime import date, datetime, timedelta, timezone

import pytest

from gst_compliance.domain.errors import LutNotFoundError, LutValidationError
from gst_compliance.domain.services.lut_lifecycle import (
    Lut,
    LutStatus,
    activate_exclusively,
    days_until_expiry,
    expiry_warning,
    is_lut_valid,
    lut_status,
    resolve_active_lut_for_date,
    should_send_reminder,
    should_send_renewal_reminder,
    suggest_renewal_window,
    validate_lut_dates,
    validate_lut_number,
)

ONE_DAY = timedelta(days=1)


def _lut(owner_id, number, valid_from, valid_till, is_active=True):
    return Lut(
        owner_id=owner_id,
        lut_number=number,
        lut_date=valid_from,
        valid_from=valid_from,
        valid_till=valid_till,
        is_active=is_active,
    )


class TestValidity:
    def test_inclusive_bounds(self, fy_lut):
        assert is_lut_valid(fy_lut, fy_lut.valid_from)
        assert is_lut_valid(fy_lut, fy_lut.valid_till)

    def test_one_day_outside(self, fy_lut):
        assert not is_lut_valid(fy_lut, fy_lut.valid_from - ONE_DAY)
        assert not is_lut_valid(fy_lut, fy_lut.valid_till + ONE_DAY)

    def test_inactive_never_valid(self, fy_lut):
        fy_lut.is_active = False
        assert not is_lut_valid(fy_lut, date(2024, 10, 1))

    def test_accepts_datetime(self, fy_lut):
        assert is_lut_valid(fy_lut, datetime(2025, 3, 31, 23, 59, tzinfo=timezone.utc))


class TestStatus:
    def test_not_started(self, fy_lut):
        assert lut_status(fy_lut, date(2024, 3, 31)) is LutStatus.NOT_STARTED

    def test_valid(self, fy_lut):
        assert lut_status(fy_lut, date(2024, 10, 1)) is LutStatus.VALID

    def test_expiring_window(self, fy_lut):
        assert lut_status(fy_lut, date(2025, 3, 1)) is LutStatus.EXPIRING   # 30 days left
        assert lut_status(fy_lut, date(2025, 2, 28)) is LutStatus.VALID     # 31 days left
        assert lut_status(fy_lut, date(2025, 3, 31)) is LutStatus.EXPIRING

    def test_expired(self, fy_lut):
        assert lut_status(fy_lut, date(2025, 4, 1)) is LutStatus.EXPIRED

    def test_days_until_expiry_signed(self, fy_lut):
        assert days_until_expiry(fy_lut, date(2025, 3, 21)) == 10
        assert days_until_expiry(fy_lut, date(2025, 4, 2)) == -2


class TestWarnings:
    def test_no_warning_when_valid(self, fy_lut):
        assert expiry_warning(fy_lut, date(2024, 6, 1)) is None

    def test_expiring_warning(self, fy_lut):
        w = expiry_warning(fy_lut, date(2025, 3, 21))
        assert w.type == "warning"
        assert "expires in 10 days" in w.message
        assert fy_lut.lut_number in w.message

    def test_expiring_today(self, fy_lut):
        assert "expires today" in expiry_warning(fy_lut, date(2025, 3, 31)).message

    def test_expired_error(self, fy_lut):
        w = expiry_warning(fy_lut, date(2025, 4, 5))
        assert w.type == "error"
        assert "expired on 2025-03-31" in w.message
        assert w.to_dict() == {"type": "error", "message": w.message}


class TestReminders:
    def test_sent_inside_30_day_window(self, fy_lut):
        assert should_send_reminder(fy_lut, date(2025, 3, 1))
        assert not should_send_reminder(fy_lut, date(2025, 2, 28))

    def test_not_after_expiry(self, fy_lut):
        assert not should_send_reminder(fy_lut, date(2025, 4, 1))

    def test_sent_only_once(self, fy_lut):
        fy_lut.reminder_sent_at = datetime(2025, 3, 1, tzinfo=timezone.utc)
        assert not should_send_reminder(fy_lut, date(2025, 3, 10))

    def test_inactive_skipped(self, fy_lut):
        fy_lut.is_active = False
        assert not should_send_reminder(fy_lut, date(2025, 3, 10))

    def test_renewal_nudge_final_week(self, fy_lut):
        fy_lut.reminder_sent_at = datetime(2025, 3, 1, tzinfo=timezone.utc)
        assert should_send_renewal_reminder(fy_lut, date(2025, 3, 24))
        assert not should_send_renewal_reminder(fy_lut, date(2025, 3, 23))
        fy_lut.renewal_reminder_sent_at = datetime(2025, 3, 24, tzinfo=timezone.utc)
        assert not should_send_renewal_reminder(fy_lut, date(2025, 3, 25))


class TestResolveForDate:
    def test_picks_covering_active_lut(self, owner_id):
        old = _lut(owner_id, "AD2704230000001", date(2023, 4, 1), date(2024, 3, 31), is_active=False)
        new = _lut(owner_id, "AD2704240000002", date(2024, 4, 1), date(2025, 3, 31))
        assert resolve_active_lut_for_date([old, new], date(2024, 8, 1)) is new

    def test_inactive_not_used_as_fallback(self, owner_id):
        old = _lut(owner_id, "AD2704230000001", date(2023, 4, 1), date(2024, 3, 31), is_active=False)
        assert resolve_active_lut_for_date([old], date(2023, 8, 1)) is None


class TestWriteRules:
    def test_dates_ok(self):
        validate_lut_dates(date(2024, 3, 28), date(2024, 4, 1), date(2025, 3, 31))
        validate_lut_dates(date(2024, 4, 1), date(2024, 4, 1), date(2024, 4, 1))

    def test_from_after_till(self):
        with pytest.raises(LutValidationError, match="Valid from date must be before valid till date"):
            validate_lut_dates(date(2024, 3, 1), date(2025, 4, 1), date(2025, 3, 31))

    def test_lut_date_after_from(self):
        with pytest.raises(LutValidationError, match="LUT date must be before or equal"):
            validate_lut_dates(date(2024, 4, 2), date(2024, 4, 1), date(2025, 3, 31))

    def test_number_normalised(self):
        assert validate_lut_number(" ad2704240012345 ") == "AD2704240012345"

    @pytest.mark.parametrize(
        "number,msg",
        [
            ("AD27", "at least 10"),
            ("A" * 51, "must not exceed 50"),
            ("AD27#0424#0012", "Invalid LUT number format"),
        ],
    )
    def test_number_rejected(self, number, msg):
        with pytest.raises(LutValidationError, match=msg):
            validate_lut_number(number)

    def test_renewal_window(self, fy_lut):
        assert suggest_renewal_window(fy_lut) == (date(2025, 4, 1), date(2026, 3, 31))

    def test_renewal_window_mid_year_expiry(self, owner_id):
        lut = _lut(owner_id, "AD2704240000009", date(2024, 4, 1), date(2024, 12, 31))
        assert suggest_renewal_window(lut) == (date(2025, 1, 1), date(2025, 3, 31))


class TestActivateExclusively:
    def test_exactly_one_active_with_siblings(self, owner_id):
        a = _lut(owner_id, "AD2704220000001", date(2022, 4, 1), date(2023, 3, 31))
        b = _lut(owner_id, "AD2704230000002", date(2023, 4, 1), date(2024, 3, 31), is_active=False)
        c = _lut(owner_id, "AD2704240000003", date(2024, 4, 1), date(2025, 3, 31), is_active=False)

        activated = activate_exclusively([a, b, c], b.id)

        assert activated is b
        assert [lut.is_active for lut in (a, b, c)] == [False, True, False]

    def test_reactivating_active_lut_keeps_one(self, owner_id):
        a = _lut(owner_id, "AD2704220000001", date(2022, 4, 1), date(2023, 3, 31))
        b = _lut(owner_id, "AD2704230000002", date(2023, 4, 1), date(2024, 3, 31), is_active=False)
        activate_exclusively([a, b], a.id)
        assert sum(lut.is_active for lut in (a, b)) == 1

    def test_unknown_id(self, owner_id):
        a = _lut(owner_id, "AD2704220000001", date(2022, 4, 1), date(2023, 3, 31))
        with pytest.raises(LutNotFoundError):
            activate_exclusively([a], "missing")
