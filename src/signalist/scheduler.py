"""
Daily trigger for the news summary pipeline.

Equivalent to the cron expression ``0 12 * * *`` (UTC) by default.  The
loop sleeps until the next fire time, runs the pipeline, and keeps going
when a run fails.  Delivery is at-least-once: a restart right after a run
may repeat it, which only re-sends email.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Optional

from .config import get_settings
from .logging_utils import get_logger
from .time_utils import now as utc_now

log = get_logger("scheduler")


@dataclass(frozen=True)
class DailySchedule:
    hour: int = 12
    minute: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23 or not 0 <= self.minute <= 59:
            raise ValueError(f"invalid daily schedule {self.hour:02d}:{self.minute:02d}")

    @classmethod
    def from_settings(cls) -> "DailySchedule":
        s = get_settings()
        return cls(hour=s.daily_news_utc_hour, minute=s.daily_news_utc_minute)

    @property
    def cron(self) -> str:
        return f"{self.minute} {self.hour} * * *"

    def next_run(self, after: datetime) -> datetime:
        """First fire time strictly after ``after``."""
        candidate = after.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)
        if candidate <= after:
            candidate += timedelta(days=1)
        return candidate


async def run_scheduler(
    job: Callable[[], Awaitable[Dict[str, Any]]],
    schedule: Optional[DailySchedule] = None,
    max_runs: Optional[int] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    clock: Callable[[], datetime] = utc_now,
) -> int:
    """Run ``job`` at every fire time of ``schedule``.

    Returns the number of runs performed (only reached when ``max_runs`` is
    set).
    """
    schedule = schedule or DailySchedule.from_settings()
    runs = 0
    log.info("scheduler_started cron=%r", schedule.cron)

    while max_runs is None or runs < max_runs:
        current = clock()
        fire_at = schedule.next_run(current)
        wait_s = max(0.0, (fire_at - current).total_seconds())
        log.info("scheduler_waiting next_run=%s wait_s=%.0f", fire_at.isoformat(), wait_s)
        await sleep(wait_s)

        runs += 1
        try:
            result = await job()
            log.info("scheduled_run_complete run=%d result=%s", runs, result)
        except Exception as e:
            log.error("scheduled_run_failed run=%d err=%s", runs, e, exc_info=True)

    return runs
