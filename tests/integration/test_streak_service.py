"""Streak engine tests — completion arithmetic and badge awards through the ledger."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from dailyten.db.models import UserBadge
from dailyten.progress.ledger import complete
from dailyten.progress.streak_service import apply_completion
from tests.conftest import DAY, give_badge, make_record, make_user

YESTERDAY = DAY - timedelta(days=1)


async def _badge_count(db, user) -> int:
    return await db.scalar(select(func.count(UserBadge.id)).where(UserBadge.user_id == user.id))


class TestApplyCompletion:
    @pytest.mark.asyncio
    async def test_continues_from_yesterday_and_earns_badge(self, seeded_db):
        user = await make_user(
            seeded_db, 1, current_streak=6, best_streak=9, last_completed_date=YESTERDAY,
        )
        await give_badge(seeded_db, user, "Beginner")
        record = await make_record(seeded_db, user, answers_count=10)

        result = await complete(seeded_db, record, user)

        await seeded_db.refresh(user)
        assert user.current_streak == 7
        assert user.best_streak == 9
        assert user.last_completed_date == DAY
        assert [b.name for b in result.badges] == ["Enthusiast"]
        assert result.streak.previous_streak == 6
        assert result.streak.was_reset is False

    @pytest.mark.asyncio
    async def test_gap_resets_to_one(self, seeded_db):
        user = await make_user(
            seeded_db, 1, current_streak=5, best_streak=5,
            last_completed_date=DAY - timedelta(days=2),
        )
        record = await make_record(seeded_db, user, answers_count=10)

        result = await complete(seeded_db, record, user)

        await seeded_db.refresh(user)
        assert user.current_streak == 1
        assert user.best_streak == 5
        assert result.streak.was_reset is True

    @pytest.mark.asyncio
    async def test_first_completion(self, seeded_db):
        user = await make_user(seeded_db, 1)
        update = await apply_completion(seeded_db, user, DAY)
        assert update.current_streak == 1
        assert update.best_streak == 1
        assert update.was_reset is False
        assert update.badges == []

    @pytest.mark.asyncio
    async def test_same_day_reentry_unchanged(self, seeded_db):
        user = await make_user(seeded_db, 1, current_streak=4, best_streak=4, last_completed_date=DAY)
        update = await apply_completion(seeded_db, user, DAY)
        assert update.current_streak == 4
        assert update.was_reset is False

    @pytest.mark.asyncio
    async def test_best_tracks_new_high(self, seeded_db):
        user = await make_user(
            seeded_db, 1, current_streak=9, best_streak=9, last_completed_date=YESTERDAY,
        )
        update = await apply_completion(seeded_db, user, DAY)
        assert update.current_streak == 10
        assert update.best_streak == 10
        assert user.best_streak >= user.current_streak

    @pytest.mark.asyncio
    async def test_out_of_order_day_resets(self, seeded_db):
        user = await make_user(seeded_db, 1, current_streak=3, best_streak=3, last_completed_date=DAY)
        update = await apply_completion(seeded_db, user, YESTERDAY)
        assert update.current_streak == 1
        assert user.best_streak == 3
        assert user.last_completed_date == YESTERDAY

    @pytest.mark.asyncio
    async def test_catch_up_awards_all_missing_badges(self, seeded_db):
        user = await make_user(
            seeded_db, 1, current_streak=29, best_streak=29, last_completed_date=YESTERDAY,
        )
        update = await apply_completion(seeded_db, user, DAY)
        await seeded_db.commit()
        assert [b.name for b in update.badges] == ["Beginner", "Enthusiast", "Master"]
        assert await _badge_count(seeded_db, user) == 3

    @pytest.mark.asyncio
    async def test_no_duplicate_badges(self, seeded_db):
        user = await make_user(
            seeded_db, 1, current_streak=2, best_streak=2, last_completed_date=YESTERDAY,
        )
        first = await apply_completion(seeded_db, user, DAY)
        await seeded_db.commit()
        again = await apply_completion(seeded_db, user, DAY)
        await seeded_db.commit()

        assert [b.name for b in first.badges] == ["Beginner"]
        assert again.badges == []
        assert await _badge_count(seeded_db, user) == 1
