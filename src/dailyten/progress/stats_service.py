"""Read-only accessors for streak, badge and catalog state."""

from __future__ import annotations

from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dailyten.db.models import DailyProgress, Question, User
from dailyten.errors import NotFound
from dailyten.progress.badge_service import get_user_badges, next_badge
from dailyten.progress.ledger import get_today, get_user
from dailyten.progress.streak_service import effective_streak


async def get_user_stats(db: AsyncSession, telegram_id: int, today: date) -> dict:
    """Counters, streaks, earned badges and today's record for one user."""
    user = await get_user(db, telegram_id)
    if user is None:
        raise NotFound(f"User {telegram_id} not found")

    streak = effective_streak(user, today)
    earned = await get_user_badges(db, user.id)
    upcoming = await next_badge(db, streak)
    record = await get_today(db, user.id, today)
    active_days, total_answers = (
        await db.execute(
            select(func.count(DailyProgress.id), func.coalesce(func.sum(DailyProgress.answers_count), 0))
            .where(DailyProgress.user_id == user.id, DailyProgress.answers_count > 0)
        )
    ).one()

    return {
        "telegram_id": user.telegram_id,
        "created_at": user.created_at,
        "completed_days": user.completed_days,
        "missed_days": user.missed_days,
        "current_streak": user.current_streak,
        "effective_streak": streak,
        "best_streak": user.best_streak,
        "active_days": active_days,
        "total_answers": int(total_answers),
        "last_completed_date": user.last_completed_date,
        "is_blocked": user.is_blocked,
        "badges": [
            {
                "name": ub.badge.name,
                "emoji": ub.badge.emoji,
                "description": ub.badge.description,
                "requirement": ub.badge.requirement,
                "earned_at": ub.earned_at,
            }
            for ub in earned
        ],
        "next_badge": (
            {"name": upcoming.name, "requirement": upcoming.requirement, "days_left": upcoming.requirement - streak}
            if upcoming else None
        ),
        "today": (
            {
                "date": record.day,
                "question": record.question.text,
                "answers_count": record.answers_count,
                "is_completed": record.is_completed,
                "question_changes_count": record.question_changes_count,
            }
            if record else None
        ),
    }


async def get_system_stats(db: AsyncSession, today: date) -> dict:
    """Population-wide counters for reporting."""
    total_users = (await db.execute(select(func.count(User.id)))).scalar_one()
    blocked_users = (
        await db.execute(select(func.count(User.id)).where(User.is_blocked.is_(True)))
    ).scalar_one()
    active_today = (
        await db.execute(select(func.count(DailyProgress.id)).where(DailyProgress.day == today))
    ).scalar_one()
    completed_today = (
        await db.execute(
            select(func.count(DailyProgress.id)).where(
                DailyProgress.day == today,
                DailyProgress.is_completed.is_(True),
            )
        )
    ).scalar_one()
    total_questions = (await db.execute(select(func.count(Question.id)))).scalar_one()
    best = (await db.execute(select(func.max(User.best_streak)))).scalar_one()

    return {
        "date": today,
        "total_users": total_users,
        "blocked_users": blocked_users,
        "active_today": active_today,
        "completed_today": completed_today,
        "completion_rate_today": round(completed_today / active_today * 100, 1) if active_today else 0.0,
        "total_questions": total_questions,
        "best_streak_overall": best or 0,
    }
