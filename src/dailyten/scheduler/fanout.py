"""Bounded-concurrency fan-out with a failure boundary per item."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

import structlog

from dailyten.errors import RecipientUnreachable

logger = structlog.get_logger()


@dataclass
class FanOutResult:
    name: str
    processed: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    unreachable: list[int] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "job": self.name,
            "processed": self.processed,
            "sent": self.sent,
            "skipped": self.skipped,
            "failed": self.failed,
            "unreachable": len(self.unreachable),
        }


async def fan_out(
    user_ids: Iterable[int],
    job: Callable[[int], Awaitable[bool]],
    *,
    concurrency: int = 8,
    name: str = "fan_out",
) -> FanOutResult:
    """Run `job(user_id)` for every user, at most `concurrency` at a time.

    `job` returns True when it delivered something and False when it had
    nothing to do. No exception escapes: unreachable recipients are collected
    for the caller, every other error is logged and counted.
    """
    result = FanOutResult(name=name)
    semaphore = asyncio.Semaphore(max(concurrency, 1))

    async def _run(user_id: int) -> None:
        async with semaphore:
            try:
                delivered = await job(user_id)
            except RecipientUnreachable as e:
                result.unreachable.append(user_id)
                logger.info("recipient_unreachable", job=name, user_id=user_id, reason=e.reason)
            except Exception as e:  # noqa: BLE001
                result.failed += 1
                logger.error("fan_out_job_failed", job=name, user_id=user_id, error=str(e), exc_info=e)
            else:
                if delivered:
                    result.sent += 1
                else:
                    result.skipped += 1
            finally:
                result.processed += 1

    await asyncio.gather(*(_run(user_id) for user_id in user_ids))
    logger.info("fan_out_complete", **result.as_dict())
    return result
