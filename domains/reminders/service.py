"""Save, delete and toggle reminders, keeping timers in step with the store."""

from typing import AsyncIterator

from logger import logger
from . import config
from .models import ReminderPreference
from .scheduler import AlarmScheduler
from .store import PreferenceStore


class ReminderService:
    """Preference operations for the command surface."""

    def __init__(self, store: PreferenceStore, scheduler: AlarmScheduler):
        self.store = store
        self.scheduler = scheduler

    async def get_preferences(self, user_id: str) -> list[ReminderPreference]:
        return await self.store.get_preferences(user_id)

    async def save(self, user_id: str, pref: ReminderPreference) -> ReminderPreference:
        """Persist pref, then arm or disarm its timer.

        Raises:
            PreferenceStoreError: If the store write fails (no timer change)
        """
        saved = await self.store.save(user_id, pref)
        if saved.is_enabled:
            self.scheduler.schedule(saved)
        else:
            self.scheduler.cancel(saved)
        return saved

    async def delete(self, user_id: str, pref: ReminderPreference) -> bool:
        """Cancel the timer and remove the preference.

        If the store delete fails the timer is re-armed and the error raised.

        Returns:
            False for an unsaved preference, True once deleted
        """
        if not pref.is_persisted:
            return False

        self.scheduler.cancel(pref)
        try:
            await self.store.delete(user_id, pref)
        except Exception as e:
            logger.error(f"Error deleting reminder {pref.id}: {e}")
            self._apply_timer(pref)
            raise
        logger.info(f"Deleted reminder {pref.id}")
        return True

    async def toggle(self, user_id: str, pref: ReminderPreference, enabled: bool) -> bool:
        """Enable or disable a reminder.

        The timer changes first; if the store write then fails the timer
        goes back to the preference's previous state.

        Returns:
            True if the store was updated
        """
        updated = pref.with_enabled(enabled)
        self._apply_timer(updated)

        try:
            await self.store.set_enabled(user_id, pref.id, enabled)
            return True
        except Exception as e:
            logger.error(f"Error toggling reminder {pref.id}: {e}")
            self._apply_timer(pref)
            return False

    def _apply_timer(self, pref: ReminderPreference) -> None:
        if pref.is_enabled:
            self.scheduler.schedule(pref)
        else:
            self.scheduler.cancel(pref)

    def observe(
        self,
        user_id: str,
        interval: float = config.POLL_INTERVAL_SECONDS,
    ) -> AsyncIterator[list[ReminderPreference]]:
        """Stream of the user's preferences, emitted on change."""
        return self.store.observe(user_id, interval)
