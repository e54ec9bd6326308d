"""Scheduled job tests — issuance, reminders, day-close and digest against a real store."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from dailyten.db.models import DailyProgress, User
from dailyten.errors import RecipientUnreachable
from dailyten.messaging.transport import CHANGE_QUESTION_ACTION
from dailyten.scheduler.jobs import (
    needs_reminder,
    run_daily_issuance,
    run_day_close,
    run_reminder,
    run_weekly_digest,
)
from tests.conftest import DAY, give_badge, make_record, make_user


def _recipients(messenger) -> list[int]:
    return sorted(call.args[0] for call in messenger.send.await_args_list)


class TestDailyIssuance:
    @pytest.mark.asyncio
    async def test_creates_record_and_sends_question(self, seeded_db, session_factory, messenger):
        await make_user(seeded_db, 1)
        await make_user(seeded_db, 2)

        result = await run_daily_issuance(session_factory, messenger, DAY, concurrency=1)

        assert result.sent == 2
        assert _recipients(messenger) == [1, 2]
        count = await seeded_db.scalar(select(func.count(DailyProgress.id)).where(DailyProgress.day == DAY))
        assert count == 2
        text, controls = messenger.send.await_args_list[0].args[1:]
        assert text.startswith("Question of the day:")
        assert controls[0].action == CHANGE_QUESTION_ACTION

    @pytest.mark.asyncio
    async def test_rerun_does_not_duplicate(self, seeded_db, session_factory, messenger):
        await make_user(seeded_db, 1)
        await run_daily_issuance(session_factory, messenger, DAY, concurrency=1)
        await run_daily_issuance(session_factory, messenger, DAY, concurrency=1)

        count = await seeded_db.scalar(select(func.count(DailyProgress.id)))
        assert count == 1

    @pytest.mark.asyncio
    async def test_skips_blocked_and_completed(self, seeded_db, session_factory, messenger):
        await make_user(seeded_db, 1, is_blocked=True)
        done = await make_user(seeded_db, 2)
        await make_record(seeded_db, done, answers_count=10, is_completed=True)
        await make_user(seeded_db, 3)

        result = await run_daily_issuance(session_factory, messenger, DAY, concurrency=1)

        assert _recipients(messenger) == [3]
        assert result.skipped == 1

    @pytest.mark.asyncio
    async def test_delivery_failure_isolated(self, seeded_db, session_factory, messenger):
        for telegram_id in (1, 2, 3):
            await make_user(seeded_db, telegram_id)

        async def send(user_id, text, controls=None):
            if user_id == 2:
                raise RuntimeError("network down")

        messenger.send.side_effect = send
        result = await run_daily_issuance(session_factory, messenger, DAY, concurrency=1)

        assert result.sent == 2
        assert result.failed == 1
        count = await seeded_db.scalar(select(func.count(DailyProgress.id)))
        assert count == 3

    @pytest.mark.asyncio
    async def test_unreachable_users_marked_blocked(self, seeded_db, session_factory, messenger):
        await make_user(seeded_db, 1)
        await make_user(seeded_db, 2)

        async def send(user_id, text, controls=None):
            if user_id == 1:
                raise RecipientUnreachable(user_id, "bot was blocked by the user")

        messenger.send.side_effect = send
        result = await run_daily_issuance(session_factory, messenger, DAY, concurrency=1)

        assert result.unreachable == [1]
        blocked = list(
            (await seeded_db.execute(select(User.telegram_id).where(User.is_blocked.is_(True)))).scalars()
        )
        assert blocked == [1]


class TestReminders:
    def test_default_predicate(self):
        assert needs_reminder(None) is True
        assert needs_reminder(DailyProgress(answers_count=3, is_completed=False, is_closed=False)) is True
        assert needs_reminder(DailyProgress(answers_count=10, is_completed=True, is_closed=False)) is False
        assert needs_reminder(DailyProgress(answers_count=3, is_completed=False, is_closed=True)) is False

    @pytest.mark.asyncio
    async def test_only_unfinished_users_reminded(self, seeded_db, session_factory, messenger):
        done = await make_user(seeded_db, 1)
        await make_record(seeded_db, done, answers_count=10, is_completed=True)
        partial = await make_user(seeded_db, 2)
        await make_record(seeded_db, partial, answers_count=4)
        await make_user(seeded_db, 3)

        result = await run_reminder(session_factory, messenger, DAY, concurrency=1)

        assert _recipients(messenger) == [2, 3]
        assert result.skipped == 1
        texts = {call.args[0]: call.args[1] for call in messenger.send.await_args_list}
        assert "4/10" in texts[2]

    @pytest.mark.asyncio
    async def test_custom_predicate_and_final_wording(self, seeded_db, session_factory, messenger):
        user = await make_user(seeded_db, 1)
        await make_record(seeded_db, user, answers_count=4)
        await make_user(seeded_db, 2)

        await run_reminder(
            session_factory, messenger, DAY,
            predicate=lambda record: record is not None and not record.is_completed,
            final=True, concurrency=1,
        )

        assert _recipients(messenger) == [1]
        assert "Last reminder" in messenger.send.await_args.args[1]


class TestDayCloseJob:
    @pytest.mark.asyncio
    async def test_closes_through_factory(self, seeded_db, session_factory):
        user = await make_user(seeded_db, 1, current_streak=3, best_streak=3)
        await make_record(seeded_db, user, answers_count=5)

        assert await run_day_close(session_factory, DAY) == 1
        assert await run_day_close(session_factory, DAY) == 0

        await seeded_db.refresh(user)
        assert user.missed_days == 1
        assert user.current_streak == 0


class TestWeeklyDigest:
    @pytest.mark.asyncio
    async def test_sends_summary_to_reachable_users(self, seeded_db, session_factory, messenger):
        user = await make_user(
            seeded_db, 1, current_streak=4, best_streak=5, completed_days=8, last_completed_date=DAY,
        )
        await give_badge(seeded_db, user, "Beginner")
        await make_user(seeded_db, 2, is_blocked=True)

        result = await run_weekly_digest(session_factory, messenger, DAY, concurrency=1)

        assert result.sent == 1
        assert _recipients(messenger) == [1]
        text = messenger.send.await_args.args[1]
        assert "Beginner" in text
        assert "Enthusiast" in text
