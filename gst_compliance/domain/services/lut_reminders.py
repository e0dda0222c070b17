# gst_compliance/domain/services/lut_reminders.py
"""
LUT expiry reminder sweep.

Runs periodically (e.g. daily). Each active LUT gets at most one 30-day
expiry reminder and at most one final-week renewal nudge; the sent
timestamps live on the LUT row so a second sweep never repeats them.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from gst_compliance.core.db import get_sessionmaker
from gst_compliance.domain.services.lut_lifecycle import (
    days_until_expiry,
    expiry_warning,
    should_send_reminder,
    should_send_renewal_reminder,
)
from gst_compliance.infrastructure.db.repositories import LutRepository

logger = logging.getLogger("lut_reminders")

CHECK_INTERVAL_SECONDS = 24 * 3600

Notifier = Callable[["LutReminder"], Awaitable[None]]


@dataclass(frozen=True)
class LutReminder:
    lut_id: Any
    owner_id: Any
    lut_number: str
    valid_till: date
    days_remaining: int
    kind: str          # "expiry" | "renewal"
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "lut_id": str(self.lut_id),
            "owner_id": str(self.owner_id),
            "lut_number": self.lut_number,
            "valid_till": self.valid_till.isoformat(),
            "days_remaining": self.days_remaining,
            "kind": self.kind,
            "message": self.message,
        }


def _build_reminder(lut: Any, kind: str, today: date) -> LutReminder:
    warning = expiry_warning(lut, today)
    return LutReminder(
        lut_id=lut.id,
        owner_id=lut.owner_id,
        lut_number=lut.lut_number,
        valid_till=lut.valid_till,
        days_remaining=days_until_expiry(lut, today),
        kind=kind,
        message=warning.message if warning else "",
    )


async def collect_lut_reminders(
    db: AsyncSession,
    now: date | datetime | None = None,
    notify: Notifier | None = None,
) -> list[LutReminder]:
    """
    Find LUTs due a reminder, stamp them and return the reminders.

    If ``notify`` is given it is awaited per reminder; a reminder whose
    delivery fails is logged and left unstamped so the next sweep retries it.
    """
    if isinstance(now, datetime):
        stamp, today = now, now.date()
    else:
        today = now or date.today()
        stamp = datetime.now(timezone.utc)

    repo = LutRepository(db)
    candidates = await repo.list_reminder_candidates()

    reminders: list[LutReminder] = []
    for lut in candidates:
        due: list[str] = []
        if should_send_reminder(lut, today):
            due.append("expiry")
        if should_send_renewal_reminder(lut, today):
            due.append("renewal")

        for kind in due:
            reminder = _build_reminder(lut, kind, today)
            if notify is not None:
                try:
                    await notify(reminder)
                except Exception:
                    logger.exception(
                        "Failed to deliver %s reminder for LUT %s", kind, lut.lut_number
                    )
                    continue
            await repo.mark_reminder_sent(lut, kind=kind, at=stamp)
            reminders.append(reminder)
            logger.info(
                "Queued %s reminder for LUT %s (owner %s, %d days left)",
                kind,
                lut.lut_number,
                lut.owner_id,
                reminder.days_remaining,
            )

    if reminders:
        await db.commit()
    logger.info("LUT reminder sweep complete: %d reminders", len(reminders))
    return reminders


async def start_lut_reminder_loop(
    notify: Notifier | None = None,
    interval_seconds: int = CHECK_INTERVAL_SECONDS,
) -> None:
    """Long-running loop; start once from the host application's lifespan."""
    logger.info("Starting LUT reminder loop (interval: %ds)", interval_seconds)
    session_factory = get_sessionmaker()
    while True:
        try:
            async with session_factory() as db:
                await collect_lut_reminders(db, notify=notify)
        except Exception:
            logger.exception("LUT reminder loop error")
        await asyncio.sleep(interval_seconds)
