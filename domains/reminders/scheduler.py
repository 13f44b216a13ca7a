"""Turn reminder preferences into timer registrations."""

from datetime import datetime, timedelta, tzinfo
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from logger import logger
from . import config
from .models import ReminderPayload, ReminderPreference
from .timers import TimerService


def at_wall_clock(day: datetime, hour: int, minute: int) -> datetime:
    """`day`'s date at hour:minute:00.000 in the same timezone."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=day.tzinfo)


def next_fire_time(hour: int, minute: int, now: datetime) -> datetime:
    """Next time hour:minute falls due relative to now.

    Today's occurrence counts if it is less than the grace window in the
    past; otherwise the same wall-clock time tomorrow.
    """
    candidate = at_wall_clock(now, hour, minute)
    if candidate <= now - timedelta(seconds=config.GRACE_SECONDS):
        candidate = at_wall_clock(now + timedelta(days=1), hour, minute)
    return candidate


def following_day(hour: int, minute: int, now: datetime) -> datetime:
    """hour:minute on the calendar day after now."""
    return at_wall_clock(now + timedelta(days=1), hour, minute)


class AlarmScheduler:
    """Registers and cancels the timer for each reminder preference."""

    def __init__(
        self,
        timers: TimerService,
        tz: Optional[tzinfo] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.timers = timers
        self.tz = tz or ZoneInfo(config.TIMEZONE)
        self._clock = clock

    def now(self) -> datetime:
        if self._clock is not None:
            return self._clock()
        return datetime.now(self.tz)

    def schedule(self, pref: ReminderPreference) -> bool:
        """Arm the timer for pref. Disabled or unsaved preferences are skipped.

        Returns:
            True if a timer was registered
        """
        if not pref.is_enabled:
            logger.debug(f"Skipped reminder {pref.unique_id} (disabled)")
            return False
        if not pref.is_persisted:
            logger.warning("Skipped reminder with no id (not saved yet)")
            return False

        fire_at = next_fire_time(pref.hour, pref.minute, self.now())
        payload = ReminderPayload.from_preference(pref)
        return self.register(pref.unique_id, fire_at, payload)

    def register(self, key: int, fire_at: datetime, payload: ReminderPayload) -> bool:
        """Register payload at fire_at, falling back to an inexact timer.

        Permission failures are logged, never raised.
        """
        data = payload.to_dict()
        try:
            if self.timers.can_schedule_exact():
                try:
                    self.timers.register_exact(key, fire_at, data)
                    logger.info(f"Scheduled reminder {key} ({payload.type.value}) for {fire_at:%a %d %b %H:%M}")
                    return True
                except PermissionError as e:
                    logger.warning(f"Exact timer refused for {key}: {e}. Using inexact fallback")
            else:
                logger.warning(f"Exact timers not permitted, scheduling {key} inexactly")

            self.timers.register_inexact(key, fire_at, data)
            logger.info(f"Scheduled reminder {key} ({payload.type.value}) for ~{fire_at:%a %d %b %H:%M} (inexact)")
            return True
        except PermissionError as e:
            logger.error(f"Failed to schedule reminder {key}: {e}")
            return False

    def cancel(self, pref: ReminderPreference) -> None:
        """Cancel pref's timer. Safe to call when nothing is scheduled."""
        self.cancel_key(pref.unique_id)

    def cancel_key(self, key: int) -> None:
        try:
            if self.timers.cancel(key):
                logger.info(f"Cancelled reminder {key}")
        except Exception as e:
            logger.error(f"Error cancelling reminder {key}: {e}")
