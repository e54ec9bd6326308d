"""Badge award service with duplicate prevention."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dailyten.clock import utcnow
from dailyten.db.models import Badge, UserBadge

logger = logging.getLogger(__name__)


async def list_badges(db: AsyncSession) -> list[Badge]:
    """All badge definitions ordered by requirement."""
    result = await db.execute(select(Badge).order_by(Badge.requirement))
    return list(result.scalars())


async def has_badge(db: AsyncSession, user_id: int, badge_id: int) -> bool:
    """Check if user already has a specific badge."""
    result = await db.execute(
        select(UserBadge.id).where(
            UserBadge.user_id == user_id,
            UserBadge.badge_id == badge_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def get_user_badges(db: AsyncSession, user_id: int) -> list[UserBadge]:
    """Earned badges for a user, oldest first."""
    result = await db.execute(
        select(UserBadge)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.earned_at, UserBadge.id)
    )
    return list(result.scalars())


async def next_badge(db: AsyncSession, streak: int) -> Badge | None:
    """The cheapest badge still above `streak`, if any."""
    result = await db.execute(
        select(Badge).where(Badge.requirement > streak).order_by(Badge.requirement).limit(1)
    )
    return result.scalar_one_or_none()


async def award_badge(db: AsyncSession, user_id: int, badge: Badge) -> bool:
    """Award a single badge.

    Returns True if awarded, False if the user already holds it. The insert
    runs inside a savepoint so a concurrent award (unique violation on
    user_id, badge_id) does not roll back the caller's transaction.
    """
    if await has_badge(db, user_id, badge.id):
        return False

    try:
        async with db.begin_nested():
            db.add(UserBadge(user_id=user_id, badge_id=badge.id, earned_at=utcnow()))
    except IntegrityError:
        logger.info("Badge %s already awarded to user %d concurrently", badge.name, user_id)
        return False

    logger.info("Awarded badge %s to user %d", badge.name, user_id)
    return True


async def award_eligible_badges(db: AsyncSession, user_id: int, streak: int) -> list[Badge]:
    """Award every badge whose requirement is met by `streak`.

    Idempotent: badges the user already holds are skipped, so re-running with
    the same streak never issues anything twice. Returns the newly awarded
    badges for notification.
    """
    result = await db.execute(
        select(Badge).where(Badge.requirement <= streak).order_by(Badge.requirement)
    )
    awarded = []
    for badge in result.scalars().all():
        if await award_badge(db, user_id, badge):
            awarded.append(badge)
    return awarded
