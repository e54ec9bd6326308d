"""Question catalog: random selection with exclusion sets."""

from __future__ import annotations

import logging
from collections.abc import Collection

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dailyten.db.models import DailyProgress, Question
from dailyten.errors import NotFound

logger = logging.getLogger(__name__)


async def get_question(db: AsyncSession, question_id: int) -> Question:
    question = await db.get(Question, question_id)
    if question is None:
        raise NotFound(f"Question {question_id} not found")
    return question


async def completed_question_ids(db: AsyncSession, user_id: int) -> set[int]:
    """Questions the user has already finished on some earlier day."""
    result = await db.execute(
        select(DailyProgress.question_id).where(
            DailyProgress.user_id == user_id,
            DailyProgress.is_completed.is_(True),
        )
    )
    return set(result.scalars())


async def _random_where(db: AsyncSession, *criteria) -> Question | None:  # type: ignore[no-untyped-def]
    result = await db.execute(
        select(Question).where(*criteria).order_by(func.random()).limit(1)
    )
    return result.scalar_one_or_none()


async def pick_random(db: AsyncSession, exclude: Collection[int] = ()) -> Question:
    """Pick a random question outside `exclude`.

    Falls back to an unconstrained pick once every question is excluded.
    Raises NotFound only when the catalog is empty.
    """
    question = None
    if exclude:
        question = await _random_where(db, Question.id.not_in(list(exclude)))
    if question is None:
        question = await _random_where(db)
    if question is None:
        raise NotFound("Question catalog is empty")
    return question


async def pick_random_except(
    db: AsyncSession,
    current_id: int,
    exclude: Collection[int] = (),
) -> Question:
    """Pick a random question other than `current_id`, preferring ones outside `exclude`.

    If every other question is excluded, the exclusion is relaxed but the
    current question is still never returned.
    """
    excluded = {current_id, *exclude}
    question = await _random_where(db, Question.id.not_in(list(excluded)))
    if question is None:
        logger.debug("No unseen question left besides %d, relaxing exclusion", current_id)
        question = await _random_where(db, Question.id != current_id)
    if question is None:
        raise NotFound(f"No question available other than {current_id}")
    return question


async def question_stats(db: AsyncSession) -> list[dict]:
    """Per-question assignment and completion counts, most assigned first."""
    assigned = func.count(DailyProgress.id)
    completed = func.coalesce(
        func.sum(case((DailyProgress.is_completed.is_(True), 1), else_=0)), 0
    )
    result = await db.execute(
        select(Question.id, Question.text, assigned.label("assigned"), completed.label("completed"))
        .outerjoin(DailyProgress, DailyProgress.question_id == Question.id)
        .group_by(Question.id, Question.text)
        .order_by(assigned.desc(), Question.id)
    )
    stats = []
    for row in result:
        rate = round(row.completed / row.assigned * 100, 1) if row.assigned else 0.0
        stats.append({
            "question_id": row.id,
            "text": row.text,
            "times_assigned": row.assigned,
            "times_completed": int(row.completed),
            "completion_rate": rate,
        })
    return stats
