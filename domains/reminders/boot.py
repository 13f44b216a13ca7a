"""Re-arm reminder timers after a restart.

Timers live in the scheduler's memory and are lost when the process
stops, so every enabled preference is scheduled again at startup.
"""

from typing import Callable, Optional

from logger import logger
from .scheduler import AlarmScheduler
from .store import PreferenceStore


class BootRecovery:
    """Restores timers for the signed-in user's enabled reminders."""

    def __init__(
        self,
        store: PreferenceStore,
        scheduler: AlarmScheduler,
        user_provider: Callable[[], Optional[str]],
    ):
        self.store = store
        self.scheduler = scheduler
        self.user_provider = user_provider

    async def on_boot(self) -> int:
        """Schedule every enabled preference.

        Returns:
            Count of reminders scheduled
        """
        user_id = self.user_provider()
        if user_id is None:
            logger.info("No signed-in user, skipping reminder reschedule")
            return 0

        try:
            preferences = await self.store.get_preferences(user_id)
        except Exception as e:
            logger.error(f"Failed to fetch reminder preferences: {e}")
            return 0

        enabled = [p for p in preferences if p.is_enabled]
        scheduled = 0
        for pref in enabled:
            try:
                if self.scheduler.schedule(pref):
                    scheduled += 1
            except Exception as e:
                logger.error(f"Failed to reschedule reminder {pref.id}: {e}")

        logger.info(f"Rescheduled {scheduled} of {len(enabled)} enabled reminders")
        return scheduled
