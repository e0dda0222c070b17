# tests/test_lut_repository.py
"""Tests for LutRepository against a mocked AsyncSession."""

import uuid
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from gst_compliance.domain.errors import LutInUseError, LutNotFoundError, LutValidationError
from gst_compliance.domain.services.lut_lifecycle import Lut as LutRecord
from gst_compliance.infrastructure.db.repositories import LutRepository


def _select_result(obj):
    result = MagicMock()
    result.scalar_one_or_none.return_value = obj
    result.scalars.return_value.first.return_value = obj
    return result


def _count_result(n):
    result = MagicMock()
    result.scalar_one.return_value = n
    return result


def _mock_db(*execute_results):
    db = AsyncMock()
    db.add = MagicMock()
    db.execute = AsyncMock(side_effect=list(execute_results) or None)
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.delete = AsyncMock()
    return db


@pytest.fixture
def stored_lut(owner_id):
    return LutRecord(
        owner_id=owner_id,
        lut_number="AD2704240012345",
        lut_date=date(2024, 3, 28),
        valid_from=date(2024, 4, 1),
        valid_till=date(2025, 3, 31),
        is_active=False,
    )


class TestCreate:
    def test_deactivates_siblings_then_adds_in_one_commit(self, event_loop, owner_id):
        db = _mock_db(MagicMock())
        repo = LutRepository(db)

        lut = event_loop.run_until_complete(
            repo.create(owner_id, "ad2704240012345", date(2024, 3, 28), date(2024, 4, 1), date(2025, 3, 31))
        )

        stmt = db.execute.await_args.args[0]
        assert "UPDATE luts SET is_active" in str(stmt)
        db.add.assert_called_once_with(lut)
        assert lut.is_active is True
        assert lut.lut_number == "AD2704240012345"
        db.commit.assert_awaited_once()
        db.rollback.assert_not_awaited()

    def test_rolls_back_when_commit_fails(self, event_loop, owner_id):
        db = _mock_db(MagicMock())
        db.commit = AsyncMock(side_effect=RuntimeError("connection lost"))
        repo = LutRepository(db)

        with pytest.raises(RuntimeError):
            event_loop.run_until_complete(
                repo.create(owner_id, "AD2704240012345", date(2024, 3, 28), date(2024, 4, 1), date(2025, 3, 31))
            )
        db.rollback.assert_awaited_once()

    def test_invalid_dates_never_touch_db(self, event_loop, owner_id):
        db = _mock_db()
        repo = LutRepository(db)
        with pytest.raises(LutValidationError):
            event_loop.run_until_complete(
                repo.create(owner_id, "AD2704240012345", date(2024, 3, 28), date(2025, 4, 1), date(2025, 3, 31))
            )
        db.execute.assert_not_awaited()
        db.commit.assert_not_awaited()


class TestActivate:
    def test_single_commit_after_sibling_update(self, event_loop, owner_id, stored_lut):
        db = _mock_db(_select_result(stored_lut), MagicMock())
        repo = LutRepository(db)

        result = event_loop.run_until_complete(repo.activate(stored_lut.id, owner_id))

        assert result is stored_lut
        assert stored_lut.is_active is True
        assert db.execute.await_count == 2
        assert "UPDATE luts" in str(db.execute.await_args_list[1].args[0])
        db.commit.assert_awaited_once()

    def test_rollback_on_failure(self, event_loop, owner_id, stored_lut):
        db = _mock_db(_select_result(stored_lut), RuntimeError("deadlock"))
        repo = LutRepository(db)

        with pytest.raises(RuntimeError):
            event_loop.run_until_complete(repo.activate(stored_lut.id, owner_id))
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    def test_unknown_lut(self, event_loop, owner_id):
        db = _mock_db(_select_result(None))
        with pytest.raises(LutNotFoundError, match="LUT not found"):
            event_loop.run_until_complete(LutRepository(db).activate(uuid.uuid4(), owner_id))

    def test_toggle_deactivates_active_lut(self, event_loop, owner_id, stored_lut):
        stored_lut.is_active = True
        db = _mock_db(_select_result(stored_lut))
        result = event_loop.run_until_complete(LutRepository(db).toggle_active(stored_lut.id, owner_id))
        assert result.is_active is False
        db.commit.assert_awaited_once()

    def test_rejects_stored_row_with_inverted_window(self, event_loop, owner_id, stored_lut):
        stored_lut.valid_from = date(2025, 4, 1)
        stored_lut.valid_till = date(2024, 4, 1)
        db = _mock_db(_select_result(stored_lut))

        with pytest.raises(LutValidationError, match="Valid from date must be before valid till date"):
            event_loop.run_until_complete(LutRepository(db).activate(stored_lut.id, owner_id))
        assert stored_lut.is_active is False
        assert db.execute.await_count == 1
        db.commit.assert_not_awaited()

    def test_toggle_on_checks_dates_too(self, event_loop, owner_id, stored_lut):
        stored_lut.lut_date = date(2024, 5, 1)
        db = _mock_db(_select_result(stored_lut), _select_result(stored_lut))

        with pytest.raises(LutValidationError, match="LUT date must be before"):
            event_loop.run_until_complete(LutRepository(db).toggle_active(stored_lut.id, owner_id))
        db.commit.assert_not_awaited()

    def test_toggle_off_rolls_back_on_failure(self, event_loop, owner_id, stored_lut):
        stored_lut.is_active = True
        db = _mock_db(_select_result(stored_lut))
        db.commit = AsyncMock(side_effect=RuntimeError("connection lost"))

        with pytest.raises(RuntimeError):
            event_loop.run_until_complete(LutRepository(db).toggle_active(stored_lut.id, owner_id))
        db.rollback.assert_awaited_once()


class TestRenewAndUpdate:
    def test_renew_requires_previous(self, event_loop, owner_id):
        db = _mock_db(_select_result(None))
        with pytest.raises(LutNotFoundError, match="Previous LUT not found"):
            event_loop.run_until_complete(
                LutRepository(db).renew(
                    owner_id, uuid.uuid4(), "AD2704250012345",
                    date(2025, 3, 28), date(2025, 4, 1), date(2026, 3, 31),
                )
            )

    def test_renew_links_previous(self, event_loop, owner_id, stored_lut):
        db = _mock_db(_select_result(stored_lut), MagicMock())
        new = event_loop.run_until_complete(
            LutRepository(db).renew(
                owner_id, stored_lut.id, "AD2704250012345",
                date(2025, 3, 28), date(2025, 4, 1), date(2026, 3, 31),
            )
        )
        assert new.previous_lut_id == stored_lut.id
        assert new.is_active is True

    def test_update_validates_merged_dates(self, event_loop, owner_id, stored_lut):
        db = _mock_db(_select_result(stored_lut))
        with pytest.raises(LutValidationError):
            event_loop.run_until_complete(
                LutRepository(db).update(stored_lut.id, owner_id, valid_from=date(2025, 6, 1))
            )
        db.commit.assert_not_awaited()
        assert stored_lut.valid_from == date(2024, 4, 1)

    def test_update_applies_changes(self, event_loop, owner_id, stored_lut):
        db = _mock_db(_select_result(stored_lut))
        event_loop.run_until_complete(
            LutRepository(db).update(stored_lut.id, owner_id, valid_till=date(2025, 2, 28))
        )
        assert stored_lut.valid_till == date(2025, 2, 28)
        db.commit.assert_awaited_once()

    def test_update_rolls_back_on_failure(self, event_loop, owner_id, stored_lut):
        db = _mock_db(_select_result(stored_lut))
        db.commit = AsyncMock(side_effect=RuntimeError("connection lost"))

        with pytest.raises(RuntimeError):
            event_loop.run_until_complete(
                LutRepository(db).update(stored_lut.id, owner_id, lut_number="AD2704240099999")
            )
        db.rollback.assert_awaited_once()
        db.refresh.assert_not_awaited()


class TestDelete:
    def test_blocked_while_referenced(self, event_loop, owner_id, stored_lut):
        db = _mock_db(_select_result(stored_lut), _count_result(3))
        with pytest.raises(LutInUseError, match="referenced by invoices"):
            event_loop.run_until_complete(LutRepository(db).delete(stored_lut.id, owner_id))
        db.delete.assert_not_awaited()

    def test_deletes_unreferenced(self, event_loop, owner_id, stored_lut):
        db = _mock_db(_select_result(stored_lut), _count_result(0))
        event_loop.run_until_complete(LutRepository(db).delete(stored_lut.id, owner_id))
        db.delete.assert_awaited_once_with(stored_lut)
        db.commit.assert_awaited_once()


class TestStatusAndReminders:
    def test_no_active_lut(self, event_loop, owner_id):
        db = _mock_db(_select_result(None))
        status = event_loop.run_until_complete(LutRepository(db).active_status(owner_id))
        assert status["has_active_lut"] is False
        assert status["warning"] is None

    def test_expiring_banner(self, event_loop, owner_id, stored_lut):
        stored_lut.is_active = True
        db = _mock_db(_select_result(stored_lut))
        status = event_loop.run_until_complete(
            LutRepository(db).active_status(owner_id, now=date(2025, 3, 21))
        )
        assert status["has_active_lut"] is True
        assert status["status"] == "expiring"
        assert status["days_remaining"] == 10
        assert status["warning"]["type"] == "warning"
        assert status["lut"]["valid_till"] == "2025-03-31"

    def test_mark_reminder_sent(self, event_loop, stored_lut):
        at = datetime(2025, 3, 1, tzinfo=timezone.utc)
        repo = LutRepository(_mock_db())
        event_loop.run_until_complete(repo.mark_reminder_sent(stored_lut, at=at))
        event_loop.run_until_complete(repo.mark_reminder_sent(stored_lut, kind="renewal", at=at))
        assert stored_lut.reminder_sent_at == at
        assert stored_lut.renewal_reminder_sent_at == at
