"""Day-closing: finalize a date's open records and penalize misses."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dailyten import COMPLETION_THRESHOLD
from dailyten.db.models import DailyProgress, User

logger = logging.getLogger(__name__)


async def close_day(db: AsyncSession, day: date) -> int:
    """Close every still-open record dated `day`.

    Records that were neither completed nor reached the threshold cost their
    owner a missed day and reset the current streak (best streak is kept).
    All of the date's records are then marked closed, so a second run finds
    nothing left to penalize. Returns the number of users penalized.
    """
    result = await db.execute(
        select(DailyProgress)
        .where(
            DailyProgress.day == day,
            DailyProgress.is_completed.is_(False),
            DailyProgress.is_closed.is_(False),
            DailyProgress.answers_count < COMPLETION_THRESHOLD,
        )
        .with_for_update(of=DailyProgress)
    )
    missed = result.scalars().all()

    for record in missed:
        await db.execute(
            update(User)
            .where(User.id == record.user_id)
            .values(missed_days=User.missed_days + 1, current_streak=0)
        )

    await db.execute(
        update(DailyProgress)
        .where(DailyProgress.day == day, DailyProgress.is_closed.is_(False))
        .values(is_closed=True)
    )
    await db.commit()

    logger.info("Closed day %s: %d missed", day, len(missed))
    return len(missed)
