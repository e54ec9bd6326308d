"""Worker schedule tests — cron jobs built from settings."""

from datetime import datetime, timezone

from dailyten.clock import get_zone, today
from dailyten.config import Settings
from dailyten.scheduler.worker import build_cron_jobs


def _by_name(jobs):
    return {job.name: job for job in jobs}


class TestBuildCronJobs:
    def test_default_schedule(self):
        jobs = _by_name(build_cron_jobs(Settings()))
        assert jobs["cron:daily_issuance"].hour == 10
        assert jobs["cron:daily_issuance"].minute == 0
        assert jobs["cron:day_close"].hour == 23
        assert jobs["cron:day_close"].minute == 59
        assert jobs["cron:reminder"].hour == {18}
        assert jobs["cron:final_reminder"].hour == 22
        assert jobs["cron:weekly_digest"].weekday == 4

    def test_single_reminder_is_final(self):
        jobs = _by_name(build_cron_jobs(Settings(reminder_hours=[21])))
        assert "cron:reminder" not in jobs
        assert jobs["cron:final_reminder"].hour == 21

    def test_no_reminders(self):
        jobs = _by_name(build_cron_jobs(Settings(reminder_hours=[])))
        assert "cron:reminder" not in jobs
        assert "cron:final_reminder" not in jobs


class TestToday:
    def test_today_follows_configured_zone(self):
        # 22:30 UTC is already the next day in Moscow (UTC+3)
        now = datetime(2026, 3, 10, 22, 30, tzinfo=timezone.utc)
        assert today(get_zone("Europe/Moscow"), now=now).isoformat() == "2026-03-11"
        assert today(get_zone("UTC"), now=now).isoformat() == "2026-03-10"
