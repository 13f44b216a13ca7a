"""Reminders domain configuration."""

import os

# Discord channel that reminder notifications and commands live in
CHANNEL_ID = int(os.environ.get("REMINDERS_CHANNEL_ID", 0))

# Preferences are scoped per user; the bot acts for a single signed-in user
USER_ID = os.environ.get("REMINDERS_USER_ID") or None

# Wall-clock timezone that reminder hours/minutes are expressed in
TIMEZONE = os.environ.get("REMINDERS_TIMEZONE", "Europe/London")

# Whether exact wake-ups are permitted. When false every registration
# goes through the inexact path.
EXACT_ALARMS_ALLOWED = os.environ.get("REMINDERS_EXACT_ALARMS", "true").lower() in ("1", "true", "yes")

# Supabase table holding reminder preferences
TABLE = "reminder_preferences"
STORE_TIMEOUT = 10  # seconds

# A target time up to this many seconds in the past still counts as "now"
GRACE_SECONDS = 60

# Exact timers may start at most this late; inexact timers have no limit
EXACT_MISFIRE_GRACE_SECONDS = 60

# Change-stream polling interval for observe()
POLL_INTERVAL_SECONDS = 60

# Job id prefix for timers in APScheduler
JOB_PREFIX = "reminder"

# Fallbacks used when a fired payload is missing fields
DEFAULT_PAYLOAD_MESSAGE = "Time to log!"
DEFAULT_MEAL_MESSAGE = "Time to log your meal!"
DEFAULT_WEIGHT_MESSAGE = "Time to log your weight!"

# Notification channels
MEAL_CHANNEL_ID = "meal_reminder_channel"
MEAL_CHANNEL_NAME = "Meal Reminders"
MEAL_CHANNEL_DESCRIPTION = "Reminders to log your daily meals"
MEAL_TITLE = "Meal Logging Reminder"
MEAL_DEEP_LINK = "dietapp://add_meal"

WEIGHT_CHANNEL_ID = "weight_reminder_channel"
WEIGHT_CHANNEL_NAME = "Weight Reminders"
WEIGHT_CHANNEL_DESCRIPTION = "Reminders to log your weight"
WEIGHT_TITLE = "Weight Log Reminder"
WEIGHT_DEEP_LINK = "dietapp://weight_tracker?openWeightLog=true"

IMPORTANCE_HIGH = "high"
