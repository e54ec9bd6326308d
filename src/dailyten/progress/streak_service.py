"""Streak tracking: contiguous-day arithmetic on completion."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from dailyten.db.models import Badge, User
from dailyten.progress.badge_service import award_eligible_badges

logger = logging.getLogger(__name__)


@dataclass
class StreakUpdate:
    """Outcome of applying one completed day to a user's streak."""

    previous_streak: int
    current_streak: int
    best_streak: int
    was_reset: bool
    badges: list[Badge] = field(default_factory=list)


def next_streak(last: date | None, today: date, current: int) -> int:
    """Streak length after completing `today`, given the last completed date.

    - no previous completion: 1
    - completed yesterday: current + 1
    - completed today already: unchanged (re-entry)
    - any other gap, including an earlier `today` than `last`: reset to 1
    """
    if last is None:
        return 1
    gap = (today - last).days
    if gap == 1:
        return current + 1
    if gap == 0:
        return current
    return 1


def effective_streak(user: User, today: date) -> int:
    """Streak as a reader should see it before the day has been closed.

    A stored streak whose last completion is older than yesterday is already
    broken, even if day-closing has not reset it yet.
    """
    last = user.last_completed_date
    if last is None or today - last > timedelta(days=1):
        return 0
    return user.current_streak


async def apply_completion(db: AsyncSession, user: User, day: date) -> StreakUpdate:
    """Update streak fields for a completed `day` and award qualifying badges.

    Writes go through the caller's session and are committed together with
    the record's completion flag.
    """
    previous = user.current_streak
    new_streak = next_streak(user.last_completed_date, day, previous)
    reentry = user.last_completed_date == day

    if user.last_completed_date is not None and day < user.last_completed_date:
        logger.warning(
            "Out-of-order completion for user %d: %s before last completed %s",
            user.id, day, user.last_completed_date,
        )

    user.current_streak = new_streak
    user.best_streak = max(user.best_streak, new_streak)
    user.last_completed_date = day

    badges = await award_eligible_badges(db, user.id, new_streak)

    update = StreakUpdate(
        previous_streak=previous,
        current_streak=new_streak,
        best_streak=user.best_streak,
        was_reset=not reentry and new_streak == 1 and previous > 0,
        badges=badges,
    )
    logger.info(
        "Streak for user %d: %d -> %d (best %d)",
        user.id, previous, new_streak, user.best_streak,
    )
    return update
