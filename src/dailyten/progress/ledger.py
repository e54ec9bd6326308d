"""Progress ledger: one record per user per day.

Every operation that mutates a day record re-reads it with a row lock so
concurrent submissions for the same user are serialized by the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dailyten import COMPLETION_THRESHOLD, MAX_QUESTION_CHANGES
from dailyten.clock import utcnow
from dailyten.db.models import Badge, DailyProgress, Question, User
from dailyten.errors import AlreadyCompleted, LimitExceeded, NotFound, QuestionChanged
from dailyten.progress.catalog import completed_question_ids, pick_random, pick_random_except
from dailyten.progress.streak_service import StreakUpdate, apply_completion

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    record: DailyProgress
    streak: StreakUpdate

    @property
    def badges(self) -> list[Badge]:
        return self.streak.badges


@dataclass
class SubmissionResult:
    record: DailyProgress
    added: int
    completed_now: bool = False
    completion: CompletionResult | None = None
    badges: list[Badge] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        return max(COMPLETION_THRESHOLD - self.record.answers_count, 0)


def count_answers(text: str) -> int:
    """Count non-blank lines in a submitted message."""
    return sum(1 for line in text.split("\n") if line.strip())


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


async def get_user(db: AsyncSession, telegram_id: int) -> User | None:
    result = await db.execute(select(User).where(User.telegram_id == telegram_id))
    return result.scalar_one_or_none()


async def get_or_create_user(db: AsyncSession, telegram_id: int) -> tuple[User, bool]:
    """Fetch the user for a platform id, creating it on first interaction.

    Any interaction proves the recipient is reachable again, so a blocked
    flag is cleared here.
    """
    user = await get_user(db, telegram_id)
    if user is not None:
        if user.is_blocked:
            user.is_blocked = False
            user.blocked_at = None
            await db.commit()
            logger.info("User %d is reachable again", telegram_id)
        return user, False

    user = User(telegram_id=telegram_id, created_at=utcnow())
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        user = await get_user(db, telegram_id)
        if user is None:
            raise
        return user, False

    logger.info("Created user %d", telegram_id)
    return user, True


# ---------------------------------------------------------------------------
# Day records
# ---------------------------------------------------------------------------


async def get_today(db: AsyncSession, user_id: int, day: date) -> DailyProgress | None:
    result = await db.execute(
        select(DailyProgress).where(
            DailyProgress.user_id == user_id,
            DailyProgress.day == day,
        )
    )
    return result.scalar_one_or_none()


async def _release(db: AsyncSession) -> None:
    """End the transaction holding a row lock without discarding loaded state."""
    await db.commit()


async def _lock_record(db: AsyncSession, record_id: int) -> DailyProgress:
    """Re-read a record under a row lock, refreshing any stale identity-map copy."""
    result = await db.execute(
        select(DailyProgress)
        .where(DailyProgress.id == record_id)
        .with_for_update(of=DailyProgress)
        .execution_options(populate_existing=True)
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise NotFound(f"Progress record {record_id} not found")
    return record


async def get_or_create_today(db: AsyncSession, user: User, day: date) -> tuple[DailyProgress, bool]:
    """Return the user's record for `day`, creating it with a fresh question if absent.

    The (user_id, date) unique constraint guarantees a single record; if a
    concurrent caller wins the insert, its row is returned instead.
    """
    user_id = user.id
    record = await get_today(db, user_id, day)
    if record is not None:
        return record, False

    question = await pick_random(db, await completed_question_ids(db, user_id))
    record = DailyProgress(user_id=user_id, day=day, question_id=question.id, question=question)
    db.add(record)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        record = await get_today(db, user_id, day)
        if record is None:
            raise
        return record, False

    logger.info("Assigned question %d to user %d for %s", question.id, user.telegram_id, day)
    return record, True


async def record_answers(
    db: AsyncSession,
    record: DailyProgress,
    delta: int,
    expected_question_id: int | None = None,
) -> DailyProgress:
    """Add `delta` answers to a record.

    `expected_question_id` is the question the answers were written for; if
    the record's question was swapped in the meantime the increment is refused.
    A completed record keeps accepting surplus answers; a closed one does not.
    """
    if delta < 0:
        raise ValueError("Answer delta cannot be negative")

    locked = await _lock_record(db, record.id)
    if locked.is_closed:
        await _release(db)
        raise AlreadyCompleted(f"Day {locked.day} is closed")
    if expected_question_id is not None and locked.question_id != expected_question_id:
        await _release(db)
        raise QuestionChanged(
            f"Question changed from {expected_question_id} to {locked.question_id}"
        )

    if delta:
        await db.execute(
            update(DailyProgress)
            .where(DailyProgress.id == locked.id)
            .values(answers_count=DailyProgress.answers_count + delta)
        )
        await db.refresh(locked, ["answers_count"])
    # No transaction is left open once the new count is read back.
    await db.commit()
    return locked


async def change_question(db: AsyncSession, record: DailyProgress) -> Question:
    """Swap the record's question, resetting its answer count.

    Allowed at most MAX_QUESTION_CHANGES times per day and never on a
    completed or closed record. The record is left untouched on failure.
    """
    locked = await _lock_record(db, record.id)
    try:
        if locked.is_completed or locked.is_closed:
            raise AlreadyCompleted(f"Day {locked.day} already finished")
        if locked.question_changes_count >= MAX_QUESTION_CHANGES:
            raise LimitExceeded(
                f"Question already changed {locked.question_changes_count} times today"
            )
        exclude = await completed_question_ids(db, locked.user_id)
        question = await pick_random_except(db, locked.question_id, exclude)
    except (AlreadyCompleted, LimitExceeded, NotFound):
        await _release(db)
        raise

    previous = locked.question_id
    locked.question_id = question.id
    locked.question = question
    locked.answers_count = 0
    locked.question_changes_count += 1
    await db.commit()

    logger.info(
        "Record %d question %d -> %d (change %d/%d)",
        locked.id, previous, question.id, locked.question_changes_count, MAX_QUESTION_CHANGES,
    )
    return question


async def complete(db: AsyncSession, record: DailyProgress, user: User) -> CompletionResult | None:
    """Mark a record completed and apply the streak/badge update atomically.

    Returns None when the record was already completed.
    """
    locked = await _lock_record(db, record.id)
    if locked.is_completed:
        await _release(db)
        return None
    if locked.is_closed:
        await _release(db)
        raise AlreadyCompleted(f"Day {locked.day} is closed")
    if locked.answers_count < COMPLETION_THRESHOLD:
        await _release(db)
        raise ValueError(
            f"Record {locked.id} has {locked.answers_count}/{COMPLETION_THRESHOLD} answers"
        )

    result = await db.execute(
        select(User).where(User.id == locked.user_id).with_for_update()
        .execution_options(populate_existing=True)
    )
    owner = result.scalar_one()
    if owner.id != user.id:
        await _release(db)
        raise NotFound(f"Record {locked.id} does not belong to user {user.id}")

    locked.is_completed = True
    locked.completed_at = utcnow()
    owner.completed_days += 1
    streak = await apply_completion(db, owner, locked.day)
    await db.commit()

    logger.info("Day %s completed by user %d", locked.day, owner.telegram_id)
    return CompletionResult(record=locked, streak=streak)


async def submit_answers(db: AsyncSession, telegram_id: int, text: str, day: date) -> SubmissionResult:
    """Handle one inbound answer message: count, record and complete if due."""
    user, _ = await get_or_create_user(db, telegram_id)
    record, _ = await get_or_create_today(db, user, day)
    if record.is_completed:
        return SubmissionResult(record=record, added=0)

    delta = count_answers(text)
    record = await record_answers(db, record, delta, expected_question_id=record.question_id)

    submission = SubmissionResult(record=record, added=delta)
    if record.answers_count >= COMPLETION_THRESHOLD:
        completion = await complete(db, record, user)
        if completion is not None:
            submission.completed_now = True
            submission.completion = completion
            submission.badges = completion.badges
            submission.record = completion.record
    return submission


async def bonus_question(db: AsyncSession, user: User) -> Question:
    """A practice prompt for after the day is done, avoiding finished questions."""
    return await pick_random(db, await completed_question_ids(db, user.id))
