"""Scheduled batch jobs: issuance, reminders, day-closing and the weekly digest.

Every per-user step opens its own session, so one user's store or delivery
failure never touches another user's state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dailyten.clock import utcnow
from dailyten.database import session_scope
from dailyten.db.models import DailyProgress, User
from dailyten.messaging import templates
from dailyten.messaging.transport import Messenger
from dailyten.progress.day_close import close_day
from dailyten.progress.ledger import get_or_create_today, get_today, get_user
from dailyten.progress.stats_service import get_user_stats
from dailyten.scheduler.fanout import FanOutResult, fan_out

logger = logging.getLogger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]
ReminderPredicate = Callable[[DailyProgress | None], bool]


def needs_reminder(record: DailyProgress | None) -> bool:
    """Remind users with no record yet or an unfinished one."""
    return record is None or not (record.is_completed or record.is_closed)


async def reachable_user_ids(factory: SessionFactory) -> list[int]:
    """Platform ids of every user not marked unreachable."""
    async with session_scope(factory) as db:
        result = await db.execute(
            select(User.telegram_id).where(User.is_blocked.is_(False)).order_by(User.id)
        )
        return list(result.scalars())


async def mark_unreachable(factory: SessionFactory, telegram_ids: list[int]) -> int:
    """Flag users whose recipient is gone so later batches skip them."""
    if not telegram_ids:
        return 0
    async with session_scope(factory) as db:
        await db.execute(
            update(User)
            .where(User.telegram_id.in_(telegram_ids), User.is_blocked.is_(False))
            .values(is_blocked=True, blocked_at=utcnow())
        )
        await db.commit()
    logger.info("Marked %d users unreachable", len(telegram_ids))
    return len(telegram_ids)


async def _finish(factory: SessionFactory, result: FanOutResult) -> FanOutResult:
    await mark_unreachable(factory, result.unreachable)
    return result


async def run_daily_issuance(
    factory: SessionFactory,
    messenger: Messenger,
    day: date,
    concurrency: int = 8,
) -> FanOutResult:
    """Create `day`'s record for every reachable user and send the question."""

    async def issue(telegram_id: int) -> bool:
        async with session_scope(factory) as db:
            user = await get_user(db, telegram_id)
            if user is None:
                return False
            record, _ = await get_or_create_today(db, user, day)
            if record.is_completed:
                return False
            text, controls = templates.daily_question(record)
        await messenger.send(telegram_id, text, controls)
        return True

    users = await reachable_user_ids(factory)
    logger.info("Issuing questions for %s to %d users", day, len(users))
    result = await fan_out(users, issue, concurrency=concurrency, name="daily_issuance")
    return await _finish(factory, result)


async def run_reminder(
    factory: SessionFactory,
    messenger: Messenger,
    day: date,
    predicate: ReminderPredicate = needs_reminder,
    final: bool = False,
    concurrency: int = 8,
) -> FanOutResult:
    """Remind every reachable user whose `day` record satisfies `predicate`."""

    async def remind(telegram_id: int) -> bool:
        async with session_scope(factory) as db:
            user = await get_user(db, telegram_id)
            if user is None:
                return False
            record = await get_today(db, user.id, day)
            if not predicate(record):
                return False
            text, controls = templates.reminder(record, final=final)
        await messenger.send(telegram_id, text, controls)
        return True

    users = await reachable_user_ids(factory)
    name = "final_reminder" if final else "reminder"
    result = await fan_out(users, remind, concurrency=concurrency, name=name)
    return await _finish(factory, result)


async def run_day_close(factory: SessionFactory, day: date) -> int:
    """Close `day` for the whole population. Returns users penalized."""
    async with session_scope(factory) as db:
        return await close_day(db, day)


async def run_weekly_digest(
    factory: SessionFactory,
    messenger: Messenger,
    day: date,
    concurrency: int = 8,
) -> FanOutResult:
    """Send each reachable user a summary of their streak and badges."""

    async def digest(telegram_id: int) -> bool:
        async with session_scope(factory) as db:
            stats = await get_user_stats(db, telegram_id, day)
        text, controls = templates.weekly_digest(stats)
        await messenger.send(telegram_id, text, controls)
        return True

    users = await reachable_user_ids(factory)
    result = await fan_out(users, digest, concurrency=concurrency, name="weekly_digest")
    return await _finish(factory, result)
