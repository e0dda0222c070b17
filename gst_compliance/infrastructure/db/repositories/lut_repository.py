# gst_compliance/infrastructure/db/repositories/lut_repository.py
"""Repository for LUT CRUD, renewal and the one-active-per-owner rule."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gst_compliance.domain.errors import LutInUseError, LutNotFoundError
from gst_compliance.domain.services.lut_lifecycle import (
    days_until_expiry,
    expiry_warning,
    lut_status,
    validate_lut_dates,
    validate_lut_number,
)
from gst_compliance.infrastructure.db.models import Invoice, Lut

logger = logging.getLogger("lut_repository")


class LutRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_for_owner(self, owner_id: uuid.UUID, active_only: bool = False) -> list[Lut]:
        """List an owner's LUTs, latest expiry first."""
        stmt = select(Lut).where(Lut.owner_id == owner_id)
        if active_only:
            stmt = stmt.where(Lut.is_active.is_(True))
        stmt = stmt.order_by(Lut.valid_till.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_for_owner(self, lut_id: uuid.UUID, owner_id: uuid.UUID) -> Lut:
        stmt = select(Lut).where(and_(Lut.id == lut_id, Lut.owner_id == owner_id))
        result = await self.db.execute(stmt)
        lut = result.scalar_one_or_none()
        if lut is None:
            raise LutNotFoundError("LUT not found")
        return lut

    async def get_active(self, owner_id: uuid.UUID) -> Lut | None:
        stmt = select(Lut).where(and_(Lut.owner_id == owner_id, Lut.is_active.is_(True)))
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def count_invoices(self, lut_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Invoice).where(Invoice.lut_id == lut_id)
        result = await self.db.execute(stmt)
        return int(result.scalar_one() or 0)

    async def active_status(self, owner_id: uuid.UUID, now: date | None = None) -> dict[str, Any]:
        """View model for the dashboard LUT banner."""
        lut = await self.get_active(owner_id)
        if lut is None:
            return {
                "has_active_lut": False,
                "lut": None,
                "status": None,
                "days_remaining": None,
                "warning": None,
            }
        warning = expiry_warning(lut, now)
        return {
            "has_active_lut": True,
            "lut": _lut_to_dict(lut),
            "status": lut_status(lut, now).value,
            "days_remaining": days_until_expiry(lut, now),
            "warning": warning.to_dict() if warning else None,
        }

    async def list_reminder_candidates(self) -> list[Lut]:
        """Active LUTs still missing their expiry reminder or their renewal nudge."""
        stmt = select(Lut).where(
            and_(
                Lut.is_active.is_(True),
                or_(Lut.reminder_sent_at.is_(None), Lut.renewal_reminder_sent_at.is_(None)),
            )
        ).order_by(Lut.valid_till)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(
        self,
        owner_id: uuid.UUID,
        lut_number: str,
        lut_date: date,
        valid_from: date,
        valid_till: date,
        previous_lut_id: uuid.UUID | None = None,
    ) -> Lut:
        """Create a new LUT as the owner's only active one."""
        number = validate_lut_number(lut_number)
        validate_lut_dates(lut_date, valid_from, valid_till)

        lut = Lut(
            id=uuid.uuid4(),
            owner_id=owner_id,
            lut_number=number,
            lut_date=lut_date,
            valid_from=valid_from,
            valid_till=valid_till,
            is_active=True,
            previous_lut_id=previous_lut_id,
        )
        try:
            await self._deactivate_siblings(owner_id, keep_id=lut.id)
            self.db.add(lut)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(lut)
        logger.info("LUT %s created for owner %s (valid %s to %s)", number, owner_id, valid_from, valid_till)
        return lut

    async def renew(
        self,
        owner_id: uuid.UUID,
        previous_lut_id: uuid.UUID,
        lut_number: str,
        lut_date: date,
        valid_from: date,
        valid_till: date,
    ) -> Lut:
        try:
            previous = await self.get_for_owner(previous_lut_id, owner_id)
        except LutNotFoundError:
            raise LutNotFoundError("Previous LUT not found") from None
        return await self.create(
            owner_id,
            lut_number,
            lut_date,
            valid_from,
            valid_till,
            previous_lut_id=previous.id,
        )

    async def update(
        self,
        lut_id: uuid.UUID,
        owner_id: uuid.UUID,
        *,
        lut_number: str | None = None,
        lut_date: date | None = None,
        valid_from: date | None = None,
        valid_till: date | None = None,
    ) -> Lut:
        """Edit an LUT; the merged dates must still satisfy the date rules."""
        lut = await self.get_for_owner(lut_id, owner_id)
        merged_lut_date = lut_date or lut.lut_date
        merged_from = valid_from or lut.valid_from
        merged_till = valid_till or lut.valid_till
        validate_lut_dates(merged_lut_date, merged_from, merged_till)

        if lut_number is not None:
            lut.lut_number = validate_lut_number(lut_number)
        lut.lut_date = merged_lut_date
        lut.valid_from = merged_from
        lut.valid_till = merged_till
        lut.updated_at = datetime.now(timezone.utc)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(lut)
        return lut

    async def activate(self, lut_id: uuid.UUID, owner_id: uuid.UUID) -> Lut:
        """Make ``lut_id`` the owner's only active LUT, in one commit."""
        lut = await self.get_for_owner(lut_id, owner_id)
        # stored rows may predate the date rules (imports, backfills)
        validate_lut_dates(lut.lut_date, lut.valid_from, lut.valid_till)
        try:
            await self._deactivate_siblings(owner_id, keep_id=lut.id)
            lut.is_active = True
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(lut)
        logger.info("LUT %s activated for owner %s", lut.lut_number, owner_id)
        return lut

    async def toggle_active(self, lut_id: uuid.UUID, owner_id: uuid.UUID) -> Lut:
        lut = await self.get_for_owner(lut_id, owner_id)
        if not lut.is_active:
            return await self.activate(lut_id, owner_id)
        lut.is_active = False
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(lut)
        return lut

    async def delete(self, lut_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        lut = await self.get_for_owner(lut_id, owner_id)
        if await self.count_invoices(lut.id) > 0:
            raise LutInUseError("Cannot delete LUT that is referenced by invoices")
        try:
            await self.db.delete(lut)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info("LUT %s deleted for owner %s", lut.lut_number, owner_id)

    async def mark_reminder_sent(self, lut: Lut, kind: str = "expiry", at: datetime | None = None) -> None:
        """Stamp the reminder so the sweep never sends it twice. Caller commits."""
        stamp = at or datetime.now(timezone.utc)
        if kind == "renewal":
            lut.renewal_reminder_sent_at = stamp
        else:
            lut.reminder_sent_at = stamp

    # ------------------------------------------------------------------

    async def _deactivate_siblings(self, owner_id: uuid.UUID, keep_id: uuid.UUID) -> None:
        await self.db.execute(
            update(Lut)
            .where(
                and_(
                    Lut.owner_id == owner_id,
                    Lut.is_active.is_(True),
                    Lut.id != keep_id,
                )
            )
            .values(is_active=False)
        )


def _lut_to_dict(lut: Lut) -> dict[str, Any]:
    return {
        "id": str(lut.id),
        "lut_number": lut.lut_number,
        "lut_date": lut.lut_date.isoformat() if lut.lut_date else None,
        "valid_from": lut.valid_from.isoformat() if lut.valid_from else None,
        "valid_till": lut.valid_till.isoformat() if lut.valid_till else None,
        "is_active": lut.is_active,
        "previous_lut_id": str(lut.previous_lut_id) if lut.previous_lut_id else None,
    }
