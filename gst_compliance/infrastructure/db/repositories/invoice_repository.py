# gst_compliance/infrastructure/db/repositories/invoice_repository.py
from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gst_compliance.infrastructure.db.models import Invoice, PurchaseInvoice


class InvoiceRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_for_period(self, owner_id: uuid.UUID, start: date, end: date) -> list[Invoice]:
        """Outward invoices and RCM self-invoices dated within [start, end], LUT preloaded."""
        stmt = (
            select(Invoice)
            .options(selectinload(Invoice.lut))
            .where(
                and_(
                    Invoice.owner_id == owner_id,
                    Invoice.invoice_date >= start,
                    Invoice.invoice_date <= end,
                )
            )
            .order_by(Invoice.invoice_date, Invoice.created_at)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_purchases_for_period(
        self,
        owner_id: uuid.UUID,
        start: date,
        end: date,
        eligible_only: bool = True,
    ) -> list[PurchaseInvoice]:
        stmt = select(PurchaseInvoice).where(
            and_(
                PurchaseInvoice.owner_id == owner_id,
                PurchaseInvoice.invoice_date >= start,
                PurchaseInvoice.invoice_date <= end,
            )
        )
        if eligible_only:
            stmt = stmt.where(PurchaseInvoice.itc_eligible.is_(True))
        stmt = stmt.order_by(PurchaseInvoice.invoice_date)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
