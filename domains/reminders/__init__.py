"""Meal and weight logging reminders.

Uses APScheduler date triggers with Supabase persistence.
"""

from .models import ReminderPreference, ReminderPayload, RepetitionMode, ReminderType, unique_id_for
from .store import (
    PreferenceStore,
    PreferenceStoreError,
    InMemoryPreferenceStore,
    SupabasePreferenceStore,
    create_store,
)
from .timers import TimerService, APSchedulerTimers
from .scheduler import AlarmScheduler, next_fire_time
from .notifications import NotificationPresenter, DiscordPresenter
from .dispatcher import ReminderDispatcher, on_fire
from .boot import BootRecovery
from .service import ReminderService
from .handler import handle_reminder_intent

__all__ = [
    "ReminderPreference",
    "ReminderPayload",
    "RepetitionMode",
    "ReminderType",
    "unique_id_for",
    "PreferenceStore",
    "PreferenceStoreError",
    "InMemoryPreferenceStore",
    "SupabasePreferenceStore",
    "create_store",
    "TimerService",
    "APSchedulerTimers",
    "AlarmScheduler",
    "next_fire_time",
    "NotificationPresenter",
    "DiscordPresenter",
    "ReminderDispatcher",
    "on_fire",
    "BootRecovery",
    "ReminderService",
    "handle_reminder_intent",
]
