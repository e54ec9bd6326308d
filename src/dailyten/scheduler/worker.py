"""arq worker for the daily schedule.

Import path for arq CLI: arq dailyten.scheduler.worker.WorkerSettings

All cron instants are local times in the configured timezone; "today" for a
job is the calendar date of its enqueue time in that zone, so a run that
starts late still acts on the day it was scheduled for.
"""

from __future__ import annotations

import logging
from datetime import date

from arq import cron
from arq.connections import RedisSettings

from dailyten.clock import get_zone, today
from dailyten.config import Settings, get_settings
from dailyten.database import close_db, get_session_factory, init_db
from dailyten.logging_config import setup_logging
from dailyten.messaging.transport import TelegramMessenger
from dailyten.scheduler.jobs import (
    run_daily_issuance,
    run_day_close,
    run_reminder,
    run_weekly_digest,
)

logger = logging.getLogger(__name__)


def _job_day(ctx: dict) -> date:  # type: ignore[type-arg]
    return today(ctx["tz"], now=ctx.get("enqueue_time"))


async def startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Initialize DB and messaging on worker startup."""
    settings = get_settings()
    setup_logging(settings, component="worker")
    await init_db(settings.database_url)

    messenger = TelegramMessenger.from_token(settings.telegram_bot_token)
    await messenger.start()

    ctx["settings"] = settings
    ctx["tz"] = get_zone(settings.timezone)
    ctx["session_factory"] = get_session_factory()
    ctx["messenger"] = messenger
    logger.info("Scheduler worker started (timezone=%s)", settings.timezone)


async def shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    messenger: TelegramMessenger | None = ctx.get("messenger")
    if messenger:
        await messenger.close()
    await close_db()
    logger.info("Scheduler worker shut down")


async def daily_issuance(ctx: dict) -> dict:  # type: ignore[type-arg]
    """Scheduled task: send every user a fresh question for today."""
    result = await run_daily_issuance(
        ctx["session_factory"], ctx["messenger"], _job_day(ctx),
        concurrency=ctx["settings"].fanout_concurrency,
    )
    return result.as_dict()


async def reminder(ctx: dict) -> dict:  # type: ignore[type-arg]
    """Scheduled task: nudge users who have not finished today."""
    result = await run_reminder(
        ctx["session_factory"], ctx["messenger"], _job_day(ctx),
        concurrency=ctx["settings"].fanout_concurrency,
    )
    return result.as_dict()


async def final_reminder(ctx: dict) -> dict:  # type: ignore[type-arg]
    """Scheduled task: last nudge before the day closes."""
    result = await run_reminder(
        ctx["session_factory"], ctx["messenger"], _job_day(ctx), final=True,
        concurrency=ctx["settings"].fanout_concurrency,
    )
    return result.as_dict()


async def day_close(ctx: dict) -> int:  # type: ignore[type-arg]
    """Scheduled task: close the ending day and record misses."""
    day = _job_day(ctx)
    try:
        missed = await run_day_close(ctx["session_factory"], day)
    except Exception:
        logger.exception("Failed to close day %s", day)
        raise
    logger.info("Day %s closed, %d missed", day, missed)
    return missed


async def weekly_digest(ctx: dict) -> dict:  # type: ignore[type-arg]
    """Scheduled task: weekly streak and badge summary."""
    result = await run_weekly_digest(
        ctx["session_factory"], ctx["messenger"], _job_day(ctx),
        concurrency=ctx["settings"].fanout_concurrency,
    )
    return result.as_dict()


def build_cron_jobs(settings: Settings) -> list:
    """Cron schedule from settings. The last reminder hour is the final one."""
    jobs = [
        cron(daily_issuance, hour=settings.issuance_hour, minute=settings.issuance_minute),
        cron(day_close, hour=settings.day_close_hour, minute=settings.day_close_minute),
        cron(weekly_digest, weekday=settings.digest_weekday, hour=settings.digest_hour, minute=0),
    ]
    hours = sorted(settings.reminder_hours)
    if hours:
        *regular, last = hours
        if regular:
            jobs.append(cron(reminder, hour=set(regular), minute=0))
        jobs.append(cron(final_reminder, hour=last, minute=0))
    return jobs


_settings = get_settings()


class WorkerSettings:
    """arq worker settings for the daily scheduler."""

    functions = [daily_issuance, reminder, final_reminder, day_close, weekly_digest]
    cron_jobs = build_cron_jobs(_settings)
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(_settings.redis_url)
    timezone = get_zone(_settings.timezone)
    max_jobs = 4
    job_timeout = _settings.job_timeout_seconds
