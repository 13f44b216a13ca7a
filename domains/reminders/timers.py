"""Wake-up timers backed by APScheduler date-trigger jobs.

One job per reminder key. Registering a key that already has a job
replaces it, so at most one timer exists per reminder at any time.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Awaitable, Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from logger import logger
from . import config

FireHandler = Callable[[dict], Awaitable]


class TimerService(ABC):
    """Platform timer facility used by the alarm scheduler."""

    @abstractmethod
    def can_schedule_exact(self) -> bool:
        """Whether exact wake-ups are currently permitted."""

    @abstractmethod
    def register_exact(self, key: int, when: datetime, payload: dict) -> None:
        """Fire payload at exactly `when`. Raises PermissionError if refused."""

    @abstractmethod
    def register_inexact(self, key: int, when: datetime, payload: dict) -> None:
        """Fire payload at or after `when`, even if late."""

    @abstractmethod
    def cancel(self, key: int) -> bool:
        """Remove the timer for key. Returns False if there was none."""


def job_id(key: int) -> str:
    return f"{config.JOB_PREFIX}:{key}"


class APSchedulerTimers(TimerService):
    """TimerService on an AsyncIOScheduler."""

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        handler: Optional[FireHandler] = None,
        exact_allowed: Optional[bool] = None,
    ):
        self.scheduler = scheduler
        self._handler = handler
        self.exact_allowed = config.EXACT_ALARMS_ALLOWED if exact_allowed is None else exact_allowed

    def set_handler(self, handler: FireHandler) -> None:
        """Set the coroutine called with the payload when a timer fires."""
        self._handler = handler

    async def _fire(self, payload: dict) -> None:
        if self._handler is None:
            logger.warning(f"Timer fired for {payload.get('unique_id')} but no handler is set")
            return
        await self._handler(payload)

    def can_schedule_exact(self) -> bool:
        return self.exact_allowed

    def register_exact(self, key: int, when: datetime, payload: dict) -> None:
        if not self.exact_allowed:
            raise PermissionError("Exact wake-ups are not permitted")
        self._add(key, when, payload, misfire_grace_time=config.EXACT_MISFIRE_GRACE_SECONDS, kind="exact")

    def register_inexact(self, key: int, when: datetime, payload: dict) -> None:
        self._add(key, when, payload, misfire_grace_time=None, kind="inexact")

    def _add(self, key: int, when: datetime, payload: dict, misfire_grace_time, kind: str) -> None:
        jid = job_id(key)
        # Jobs added before the scheduler starts are not deduplicated by
        # replace_existing, so drop any existing one explicitly
        if self.scheduler.get_job(jid):
            self.scheduler.remove_job(jid)

        self.scheduler.add_job(
            self._fire,
            trigger=DateTrigger(run_date=when),
            args=[payload],
            id=jid,
            name=f"reminder:{str(payload.get('message', ''))[:30]}",
            replace_existing=True,
            misfire_grace_time=misfire_grace_time,
            coalesce=True,
        )
        logger.debug(f"Registered {kind} timer {jid} for {when.isoformat()}")

    def cancel(self, key: int) -> bool:
        try:
            self.scheduler.remove_job(job_id(key))
            return True
        except JobLookupError:
            return False

    def next_run(self, key: int) -> Optional[datetime]:
        """When the timer for key will fire, or None if there is none."""
        job = self.scheduler.get_job(job_id(key))
        if job is None:
            return None
        return getattr(job, "next_run_time", None) or job.trigger.run_date
